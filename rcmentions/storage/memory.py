"""In-memory collaborator implementations for testing and development.

These keep everything in dictionaries and mirror the behavior the engine
relies on from a real database:

- mention inserts enforce uniqueness on (athlete, content, content type, source)
- batch selection filters by publication window and the tri-state processed flag
- missing content raises `ContentNotFoundError`

**Not recommended for production**: no persistence, no concurrency control,
and O(n) scans for every query.
"""

from datetime import datetime
from typing import Iterable

from rcmentions.athlete import Athlete
from rcmentions.clock import DetectionClock
from rcmentions.content import ContentItem, ContentSummary, ContentText, ContentType, ProcessingStats
from rcmentions.errors import ContentNotFoundError, PersistenceError
from rcmentions.mention import AthleteMention
from rcmentions.storage.interfaces import (
    AthleteRosterInterface,
    ContentStoreInterface,
    MentionStorageInterface,
)


class InMemoryAthleteRoster(AthleteRosterInterface):
    """Roster backed by a list, preserving insertion order.

    Example:
        ```python
        roster = InMemoryAthleteRoster([Athlete(athlete_id="14208194", name="Eliud Kipchoge")])
        index = AthleteNameIndex.from_roster(await roster.list_athletes())
        ```
    """

    def __init__(self, athletes: Iterable[Athlete] = ()) -> None:
        self._athletes: list[Athlete] = list(athletes)
        self.reads = 0

    def add(self, athlete: Athlete) -> None:
        self._athletes.append(athlete)

    async def list_athletes(self) -> list[Athlete]:
        self.reads += 1
        return list(self._athletes)


class InMemoryContentStore(ContentStoreInterface):
    """Content store keyed by (content type, content id)."""

    def __init__(self, items: Iterable[ContentItem] = ()) -> None:
        self._items: dict[tuple[ContentType, str], ContentItem] = {}
        for item in items:
            self.add(item)

    def add(self, item: ContentItem) -> None:
        """Add or replace a content item."""
        self._items[(item.content_type, item.content_id)] = item

    def get(self, content_id: str, content_type: ContentType) -> ContentItem | None:
        return self._items.get((content_type, content_id))

    def _of_type(self, content_type: ContentType) -> list[ContentItem]:
        return [item for (kind, _), item in self._items.items() if kind == content_type]

    def _in_window(self, content_type: ContentType, max_age_hours: float, now: datetime) -> list[ContentItem]:
        start = DetectionClock(now=now).window_start(max_age_hours)
        return [
            item
            for item in self._of_type(content_type)
            if item.published_at is not None and item.published_at >= start and not item.is_processed
        ]

    async def get_content_text(self, content_id: str, content_type: ContentType) -> ContentText:
        item = self.get(content_id, content_type)
        if item is None:
            raise ContentNotFoundError(content_id, content_type.value)
        return item.to_text()

    async def select_unprocessed(
        self,
        content_type: ContentType,
        max_age_hours: float,
        limit: int,
        now: datetime,
    ) -> list[ContentSummary]:
        candidates = self._in_window(content_type, max_age_hours, now)
        candidates.sort(key=lambda item: item.published_at, reverse=True)  # type: ignore[arg-type, return-value]
        return [
            ContentSummary(content_id=item.content_id, title=item.title, published_at=item.published_at)
            for item in candidates[:limit]
        ]

    async def count_unprocessed(self, content_type: ContentType, max_age_hours: float, now: datetime) -> int:
        return len(self._in_window(content_type, max_age_hours, now))

    async def mark_processed(self, content_id: str, content_type: ContentType) -> bool:
        item = self.get(content_id, content_type)
        if item is None:
            return False
        self.add(item.model_copy(update={"processed": True}))
        return True

    async def list_content_ids(
        self,
        content_type: ContentType,
        parent_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[ContentSummary]:
        items = [item for item in self._of_type(content_type) if parent_id is None or item.parent_id == parent_id]
        # Items without a publication time sort last, as NULLS LAST would.
        items.sort(key=lambda item: (item.published_at is not None, item.published_at or datetime.min), reverse=True)
        return [
            ContentSummary(content_id=item.content_id, title=item.title, published_at=item.published_at)
            for item in items[offset : offset + limit]
        ]

    async def processing_stats(self, content_type: ContentType) -> ProcessingStats:
        dated = [item for item in self._of_type(content_type) if item.published_at is not None]
        processed = sum(1 for item in dated if item.is_processed)
        return ProcessingStats(
            content_type=content_type,
            total=len(dated),
            processed=processed,
            unprocessed=len(dated) - processed,
            total_mentions=0,
        )


class InMemoryMentionStorage(MentionStorageInterface):
    """Mention storage keyed by the unique (athlete, content, content type, source) tuple.

    A second insert with the same key raises `PersistenceError`, matching a
    unique index in a relational backend.
    """

    def __init__(self) -> None:
        self._mentions: dict[tuple[str, str, str, str], AthleteMention] = {}

    async def delete_mentions(self, content_id: str, content_type: ContentType) -> int:
        doomed = [
            key for key, mention in self._mentions.items()
            if mention.content_id == content_id and mention.content_type == content_type
        ]
        for key in doomed:
            del self._mentions[key]
        return len(doomed)

    async def insert_mention(self, mention: AthleteMention) -> None:
        key = mention.unique_key
        if key in self._mentions:
            raise PersistenceError(f"Duplicate mention for athlete {mention.athlete_id} in {mention.content_id} ({mention.source.value})")
        self._mentions[key] = mention

    async def list_for_content(self, content_id: str, content_type: ContentType) -> list[AthleteMention]:
        mentions = [
            mention for mention in self._mentions.values()
            if mention.content_id == content_id and mention.content_type == content_type
        ]
        mentions.sort(key=lambda m: m.confidence, reverse=True)
        return mentions

    async def count(self, content_type: ContentType | None = None) -> int:
        if content_type is None:
            return len(self._mentions)
        return sum(1 for mention in self._mentions.values() if mention.content_type == content_type)
