"""Content items (podcast episodes and videos) scanned for athlete mentions."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ContentType(str, Enum):
    """Kind of content item a mention is attached to."""

    PODCAST = "podcast"
    """A podcast episode; body text is the episode content/description."""

    VIDEO = "video"
    """A video; body text is the video description."""


class ContentItem(BaseModel, frozen=True):
    """A podcast episode or video as held by the content store."""

    content_id: str
    content_type: ContentType
    title: str
    body: str | None = None
    processed: bool | None = Field(
        default=None,
        description="Tri-state: None and False both mean unprocessed.",
    )
    published_at: datetime | None = Field(
        default=None,
        description="Episode pubDate or video creation time; drives batch window selection.",
    )
    parent_id: str | None = Field(
        default=None,
        description="Podcast id for episodes, channel id for videos.",
    )

    @property
    def is_processed(self) -> bool:
        return self.processed is True

    def to_text(self) -> "ContentText":
        return ContentText(
            content_id=self.content_id,
            content_type=self.content_type,
            title=self.title,
            body=self.body,
        )


class ContentText(BaseModel, frozen=True):
    """The text fields of a single content item, as returned by the content store."""

    content_id: str
    content_type: ContentType
    title: str
    body: str | None = Field(
        default=None,
        description="Episode content or video description. None when absent.",
    )


class ContentSummary(BaseModel, frozen=True):
    """A candidate row returned by batch selection."""

    content_id: str
    title: str
    published_at: datetime | None = None


class ProcessingStats(BaseModel):
    """Backlog counters for one content type.

    Attributes:
        total: Items with a publication timestamp.
        processed: Items whose processed flag is true.
        unprocessed: Items whose processed flag is null or false.
        total_mentions: Persisted mentions for this content type.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    content_type: ContentType
    total: int = Field(ge=0)
    processed: int = Field(ge=0)
    unprocessed: int = Field(ge=0)
    total_mentions: int = Field(ge=0)
