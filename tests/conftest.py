"""Test fixtures and factories for the mention detection engine.

This module provides:
- Pytest fixtures that instantiate the in-memory roster, content store and
  mention storage, and an orchestrator wired to them
- A fixed detection clock so batch windows are deterministic
- Helper factory functions for athletes and content items
- A failing roster for exercising upstream error handling
"""

from datetime import datetime, timedelta, timezone

import pytest

from rcmentions.athlete import Athlete
from rcmentions.clock import DetectionClock
from rcmentions.content import ContentItem, ContentType
from rcmentions.errors import UpstreamFetchError
from rcmentions.name_index import AthleteNameIndex
from rcmentions.orchestrator import MentionOrchestrator
from rcmentions.storage.interfaces import AthleteRosterInterface
from rcmentions.storage.memory import (
    InMemoryAthleteRoster,
    InMemoryContentStore,
    InMemoryMentionStorage,
)

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


def make_athlete(athlete_id: str | None, name: str) -> Athlete:
    """Create a roster entry."""
    return Athlete(athlete_id=athlete_id, name=name)


def make_item(
    content_id: str,
    title: str = "Untitled",
    body: str | None = None,
    content_type: ContentType = ContentType.PODCAST,
    hours_ago: float | None = 1,
    processed: bool | None = None,
    parent_id: str | None = "pod-1",
) -> ContentItem:
    """Create a content item published ``hours_ago`` hours before `NOW`."""
    return ContentItem(
        content_id=content_id,
        content_type=content_type,
        title=title,
        body=body,
        processed=processed,
        published_at=None if hours_ago is None else NOW - timedelta(hours=hours_ago),
        parent_id=parent_id,
    )


def make_index(*pairs: tuple[str, str]) -> AthleteNameIndex:
    """Build an index from ``(athlete_id, name)`` pairs."""
    return AthleteNameIndex.from_roster(make_athlete(athlete_id, name) for athlete_id, name in pairs)


class UnreachableRoster(AthleteRosterInterface):
    """Roster whose reads always fail as if the directory were down."""

    async def list_athletes(self) -> list[Athlete]:
        raise UpstreamFetchError("athlete directory unreachable")


@pytest.fixture
def athletes() -> list[Athlete]:
    return [
        make_athlete("a1", "Eliud Kipchoge"),
        make_athlete("a2", "Faith Kipyegon"),
        make_athlete("a3", "Jakob Ingebrigtsen"),
        make_athlete(None, "Unlinked Runner"),
    ]


@pytest.fixture
def roster(athletes: list[Athlete]) -> InMemoryAthleteRoster:
    return InMemoryAthleteRoster(athletes)


@pytest.fixture
def content_store() -> InMemoryContentStore:
    return InMemoryContentStore()


@pytest.fixture
def mention_storage() -> InMemoryMentionStorage:
    return InMemoryMentionStorage()


@pytest.fixture
def clock() -> DetectionClock:
    return DetectionClock(now=NOW)


@pytest.fixture
def orchestrator(
    roster: InMemoryAthleteRoster,
    content_store: InMemoryContentStore,
    mention_storage: InMemoryMentionStorage,
    clock: DetectionClock,
) -> MentionOrchestrator:
    """Create an orchestrator over in-memory collaborators with a fixed clock."""
    return MentionOrchestrator(
        roster=roster,
        content_store=content_store,
        mention_storage=mention_storage,
        clock=lambda: clock,
    )
