"""
Pytest configuration and shared fixtures for service tests.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from rcserver.storage.models import AthleteRow, EpisodeRow, VideoRow
from rcserver.storage.sql import SQLStorage


def hours_ago(hours: float) -> datetime:
    return datetime.now(timezone.utc) - timedelta(hours=hours)


@pytest.fixture
def engine():
    """In-memory SQLite engine shared across threads for TestClient."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def storage(session) -> SQLStorage:
    return SQLStorage(session)


@pytest.fixture
def seeded(session):
    """Athletes, three recent episodes (one already processed) and one video."""
    session.add_all(
        [
            AthleteRow(id="1", world_athletics_id="14208194", name="Eliud Kipchoge"),
            AthleteRow(id="2", world_athletics_id="14504382", name="Faith Kipyegon"),
            AthleteRow(id="3", world_athletics_id=None, name="Unlinked Runner"),
            EpisodeRow(
                id="ep-1",
                podcast_id="pod-1",
                title="Eliud Kipchoge on Berlin",
                content="With a cameo from Faith Kipyegon.",
                pub_date=hours_ago(1),
            ),
            EpisodeRow(
                id="ep-2",
                podcast_id="pod-1",
                title="Track talk",
                content=None,
                pub_date=hours_ago(2),
                athlete_mentions_processed=False,
            ),
            EpisodeRow(
                id="ep-3",
                podcast_id="pod-2",
                title="Faith Kipyegon",
                content=None,
                pub_date=hours_ago(3),
                athlete_mentions_processed=True,
            ),
            EpisodeRow(id="ep-old", podcast_id="pod-2", title="Archive", pub_date=hours_ago(100)),
            VideoRow(
                id="v-1",
                channel_id="ch-1",
                title="Workout",
                description="Eliud Kipchoge long run",
                created_at=hours_ago(1),
            ),
        ]
    )
    session.commit()
    return session


@pytest.fixture
def client(storage, seeded):
    """Create test client with storage dependency override."""
    from rcserver.server import app
    from rcserver.storage_factory import get_storage

    def override_get_storage():
        yield storage

    app.dependency_overrides[get_storage] = override_get_storage
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
