"""Collaborator interfaces consumed by the detection engine.

The engine never talks to a database directly. It reads the athlete roster,
reads and selects content items, and reconciles mention rows through these
three interfaces. `rcmentions.storage.memory` implements them in memory;
`rcserver.storage` implements them on top of SQLModel.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from rcmentions.athlete import Athlete
from rcmentions.content import ContentSummary, ContentText, ContentType, ProcessingStats
from rcmentions.mention import AthleteMention


class AthleteRosterInterface(ABC):
    """Read access to the athlete directory."""

    @abstractmethod
    async def list_athletes(self) -> list[Athlete]:
        """Return every roster entry, including entries without an identifier.

        Raises:
            UpstreamFetchError: If the roster cannot be read.
        """


class ContentStoreInterface(ABC):
    """Read access to podcast episodes and videos, plus the processed flag."""

    @abstractmethod
    async def get_content_text(self, content_id: str, content_type: ContentType) -> ContentText:
        """Fetch the title and body text of one content item.

        Raises:
            ContentNotFoundError: If no item with this id and type exists.
            UpstreamFetchError: If the store cannot be reached.
        """

    @abstractmethod
    async def select_unprocessed(
        self,
        content_type: ContentType,
        max_age_hours: float,
        limit: int,
        now: datetime,
    ) -> list[ContentSummary]:
        """Select items published within ``max_age_hours`` of ``now`` whose processed flag is null or false.

        Results are ordered by publication time, newest first, and capped at ``limit``.
        """

    @abstractmethod
    async def count_unprocessed(
        self,
        content_type: ContentType,
        max_age_hours: float,
        now: datetime,
    ) -> int:
        """Count unprocessed items in the same window as `select_unprocessed`, ignoring any limit."""

    @abstractmethod
    async def mark_processed(self, content_id: str, content_type: ContentType) -> bool:
        """Set the processed flag. Returns False if the item does not exist."""

    @abstractmethod
    async def list_content_ids(
        self,
        content_type: ContentType,
        parent_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[ContentSummary]:
        """Page through items newest first, optionally restricted to one podcast or channel."""

    @abstractmethod
    async def processing_stats(self, content_type: ContentType) -> ProcessingStats:
        """Return backlog counters for one content type."""


class MentionStorageInterface(ABC):
    """Persistence for athlete mention rows."""

    @abstractmethod
    async def delete_mentions(self, content_id: str, content_type: ContentType) -> int:
        """Delete every mention of one content item. Returns the number of rows removed."""

    @abstractmethod
    async def insert_mention(self, mention: AthleteMention) -> None:
        """Insert one mention row.

        Raises:
            PersistenceError: If a row with the same (athlete_id, content_id,
                content_type, source) already exists or the write fails.
        """

    @abstractmethod
    async def list_for_content(self, content_id: str, content_type: ContentType) -> list[AthleteMention]:
        """Return the mentions of one content item, highest confidence first."""

    @abstractmethod
    async def count(self, content_type: ContentType | None = None) -> int:
        """Return the number of stored mentions, optionally for one content type."""
