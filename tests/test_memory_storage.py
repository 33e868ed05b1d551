"""Tests for the in-memory storage implementations.

This module verifies:
- Mention inserts enforce the (athlete, content, type, source) unique key
- Deletes are scoped to one content item and type
- Content listing supports parent filters and pagination
- Batch selection windows start at the reference time minus the maximum age
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from rcmentions.clock import DetectionClock
from rcmentions.content import ContentType
from rcmentions.errors import ContentNotFoundError, PersistenceError
from rcmentions.mention import AthleteMention, MentionSource
from rcmentions.storage.memory import InMemoryContentStore, InMemoryMentionStorage

from tests.conftest import NOW, make_item


def make_mention(
    athlete_id: str = "a1",
    content_id: str = "ep-1",
    content_type: ContentType = ContentType.PODCAST,
    source: MentionSource = MentionSource.TITLE,
    confidence: float = 1.0,
) -> AthleteMention:
    return AthleteMention(
        athlete_id=athlete_id,
        content_id=content_id,
        content_type=content_type,
        source=source,
        confidence=confidence,
        context="...",
        created_at=datetime(2026, 10, 17, tzinfo=timezone.utc),
    )


class TestInMemoryMentionStorage:
    async def test_duplicate_insert_raises(self) -> None:
        storage = InMemoryMentionStorage()
        await storage.insert_mention(make_mention())

        with pytest.raises(PersistenceError):
            await storage.insert_mention(make_mention(confidence=0.9))

    async def test_same_athlete_different_source_allowed(self) -> None:
        storage = InMemoryMentionStorage()
        await storage.insert_mention(make_mention())
        await storage.insert_mention(make_mention(source=MentionSource.DESCRIPTION))

        assert await storage.count() == 2

    async def test_delete_scoped_to_content_and_type(self) -> None:
        storage = InMemoryMentionStorage()
        await storage.insert_mention(make_mention())
        await storage.insert_mention(make_mention(content_id="ep-2"))
        await storage.insert_mention(make_mention(content_type=ContentType.VIDEO))

        deleted = await storage.delete_mentions("ep-1", ContentType.PODCAST)

        assert deleted == 1
        assert await storage.count(ContentType.PODCAST) == 1
        assert await storage.count(ContentType.VIDEO) == 1

    async def test_list_orders_by_confidence(self) -> None:
        storage = InMemoryMentionStorage()
        await storage.insert_mention(make_mention(athlete_id="a1", confidence=0.85))
        await storage.insert_mention(make_mention(athlete_id="a2", confidence=1.0))

        mentions = await storage.list_for_content("ep-1", ContentType.PODCAST)

        assert [m.athlete_id for m in mentions] == ["a2", "a1"]


class TestInMemoryContentStore:
    async def test_get_missing_raises(self) -> None:
        store = InMemoryContentStore()

        with pytest.raises(ContentNotFoundError):
            await store.get_content_text("ep-1", ContentType.PODCAST)

    async def test_type_is_part_of_identity(self) -> None:
        store = InMemoryContentStore([make_item("x", title="Episode")])

        with pytest.raises(ContentNotFoundError):
            await store.get_content_text("x", ContentType.VIDEO)

    async def test_mark_processed_missing_returns_false(self) -> None:
        assert await InMemoryContentStore().mark_processed("nope", ContentType.PODCAST) is False

    async def test_list_content_ids_filters_and_pages(self) -> None:
        store = InMemoryContentStore(
            [
                make_item("ep-1", hours_ago=1, parent_id="pod-1"),
                make_item("ep-2", hours_ago=2, parent_id="pod-1"),
                make_item("ep-3", hours_ago=3, parent_id="pod-2"),
                make_item("ep-4", hours_ago=None, parent_id="pod-1"),
            ]
        )

        first = await store.list_content_ids(ContentType.PODCAST, parent_id="pod-1", limit=2)
        rest = await store.list_content_ids(ContentType.PODCAST, parent_id="pod-1", limit=2, offset=2)

        assert [c.content_id for c in first] == ["ep-1", "ep-2"]
        assert [c.content_id for c in rest] == ["ep-4"]

    async def test_window_start_is_inclusive(self) -> None:
        store = InMemoryContentStore([make_item("ep-edge", hours_ago=24), make_item("ep-old", hours_ago=25)])

        selected = await store.select_unprocessed(ContentType.PODCAST, 24, 10, NOW)

        assert [c.content_id for c in selected] == ["ep-edge"]
        assert selected[0].published_at == DetectionClock(now=NOW).window_start(24)

    async def test_naive_reference_time_rejected(self) -> None:
        store = InMemoryContentStore([make_item("ep-1")])

        with pytest.raises(ValidationError, match="timezone-aware"):
            await store.count_unprocessed(ContentType.PODCAST, 24, datetime(2026, 10, 17, 12, 0))
