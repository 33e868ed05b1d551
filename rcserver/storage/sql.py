"""
SQL implementation of the detection engine's storage collaborators.

One `SQLStorage` wraps a SQLModel session and serves as athlete roster,
content store and mention storage at once. Database errors are translated
into the engine's error types:

- ``IntegrityError`` on a mention insert becomes `PersistenceError`
- ``OperationalError`` anywhere becomes `UpstreamFetchError`
- any other SQLAlchemy error becomes `PersistenceError`

The session is rolled back before any of these is raised, so it stays usable
for the next operation.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from sqlalchemy import delete, func, or_
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlmodel import Session, col, select

from rcmentions.athlete import Athlete
from rcmentions.clock import DetectionClock
from rcmentions.content import ContentSummary, ContentText, ContentType, ProcessingStats
from rcmentions.errors import ContentNotFoundError, PersistenceError, UpstreamFetchError
from rcmentions.mention import AthleteMention, MentionSource
from rcmentions.storage.interfaces import (
    AthleteRosterInterface,
    ContentStoreInterface,
    MentionStorageInterface,
)
from rcserver.storage.models import AthleteMentionRow, AthleteRow, EpisodeRow, VideoRow

# Per content type: (table, body column, publication column, parent column)
_CONTENT_TABLES = {
    ContentType.PODCAST: (EpisodeRow, "content", "pub_date", "podcast_id"),
    ContentType.VIDEO: (VideoRow, "description", "created_at", "channel_id"),
}


class SQLStorage(AthleteRosterInterface, ContentStoreInterface, MentionStorageInterface):
    """
    SQLModel-backed roster, content store and mention storage sharing one session.
    """

    def __init__(self, session: Session):
        self._session = session

    @contextmanager
    def _translate_errors(self) -> Iterator[None]:
        try:
            yield
        except OperationalError as e:
            self._session.rollback()
            raise UpstreamFetchError(f"Database unavailable: {e.orig}") from e
        except SQLAlchemyError as e:
            self._session.rollback()
            raise PersistenceError(f"Database error: {e}") from e

    def _content_table(self, content_type: ContentType):
        model, body, published, parent = _CONTENT_TABLES[content_type]
        return model, getattr(model, body), getattr(model, published), getattr(model, parent)

    async def list_athletes(self) -> list[Athlete]:
        with self._translate_errors():
            rows = self._session.exec(select(AthleteRow)).all()
        return [Athlete(athlete_id=row.world_athletics_id, name=row.name) for row in rows]

    async def get_content_text(self, content_id: str, content_type: ContentType) -> ContentText:
        model, body_column, _, _ = self._content_table(content_type)
        with self._translate_errors():
            row = self._session.get(model, content_id)
        if row is None:
            raise ContentNotFoundError(content_id, content_type.value)
        return ContentText(
            content_id=row.id,
            content_type=content_type,
            title=row.title,
            body=getattr(row, body_column.key),
        )

    def _unprocessed_in_window(self, content_type: ContentType, max_age_hours: float, now: datetime):
        model, _, published, _ = self._content_table(content_type)
        start = DetectionClock(now=now).window_start(max_age_hours).astimezone(timezone.utc)
        return model, published, (
            published >= start,
            or_(col(model.athlete_mentions_processed).is_(None), col(model.athlete_mentions_processed).is_(False)),
        )

    async def select_unprocessed(
        self,
        content_type: ContentType,
        max_age_hours: float,
        limit: int,
        now: datetime,
    ) -> list[ContentSummary]:
        model, published, conditions = self._unprocessed_in_window(content_type, max_age_hours, now)
        statement = select(model).where(*conditions).order_by(published.desc()).limit(limit)
        with self._translate_errors():
            rows = self._session.exec(statement).all()
        return [
            ContentSummary(content_id=row.id, title=row.title, published_at=getattr(row, published.key))
            for row in rows
        ]

    async def count_unprocessed(self, content_type: ContentType, max_age_hours: float, now: datetime) -> int:
        model, _, conditions = self._unprocessed_in_window(content_type, max_age_hours, now)
        statement = select(func.count()).select_from(model).where(*conditions)
        with self._translate_errors():
            return self._session.exec(statement).one()

    async def mark_processed(self, content_id: str, content_type: ContentType) -> bool:
        model, _, _, _ = self._content_table(content_type)
        with self._translate_errors():
            row = self._session.get(model, content_id)
            if row is None:
                return False
            row.athlete_mentions_processed = True
            self._session.add(row)
            self._session.commit()
        return True

    async def list_content_ids(
        self,
        content_type: ContentType,
        parent_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[ContentSummary]:
        model, _, published, parent = self._content_table(content_type)
        statement = select(model)
        if parent_id is not None:
            statement = statement.where(parent == parent_id)
        statement = statement.order_by(published.desc().nulls_last(), col(model.id)).offset(offset).limit(limit)
        with self._translate_errors():
            rows = self._session.exec(statement).all()
        return [
            ContentSummary(content_id=row.id, title=row.title, published_at=getattr(row, published.key))
            for row in rows
        ]

    async def processing_stats(self, content_type: ContentType) -> ProcessingStats:
        model, _, published, _ = self._content_table(content_type)
        dated = select(func.count()).select_from(model).where(published.is_not(None))
        done = dated.where(col(model.athlete_mentions_processed).is_(True))
        with self._translate_errors():
            total = self._session.exec(dated).one()
            processed = self._session.exec(done).one()
        return ProcessingStats(
            content_type=content_type,
            total=total,
            processed=processed,
            unprocessed=total - processed,
            total_mentions=0,
        )

    async def delete_mentions(self, content_id: str, content_type: ContentType) -> int:
        statement = delete(AthleteMentionRow).where(
            col(AthleteMentionRow.content_id) == content_id,
            col(AthleteMentionRow.content_type) == content_type.value,
        )
        with self._translate_errors():
            result = self._session.execute(statement)
            self._session.commit()
        return result.rowcount

    async def insert_mention(self, mention: AthleteMention) -> None:
        row = AthleteMentionRow(
            athlete_id=mention.athlete_id,
            content_id=mention.content_id,
            content_type=mention.content_type.value,
            source=mention.source.value,
            confidence=mention.confidence,
            context=mention.context,
            created_at=mention.created_at,
        )
        with self._translate_errors():
            try:
                self._session.add(row)
                self._session.commit()
            except IntegrityError as e:
                self._session.rollback()
                raise PersistenceError(f"Could not insert mention {mention.unique_key}: {e.orig}") from e

    async def list_for_content(self, content_id: str, content_type: ContentType) -> list[AthleteMention]:
        statement = (
            select(AthleteMentionRow)
            .where(
                col(AthleteMentionRow.content_id) == content_id,
                col(AthleteMentionRow.content_type) == content_type.value,
            )
            .order_by(col(AthleteMentionRow.confidence).desc(), col(AthleteMentionRow.id))
        )
        with self._translate_errors():
            rows = self._session.exec(statement).all()
        return [
            AthleteMention(
                athlete_id=row.athlete_id,
                content_id=row.content_id,
                content_type=ContentType(row.content_type),
                source=MentionSource(row.source),
                confidence=row.confidence,
                context=row.context,
                created_at=row.created_at,
            )
            for row in rows
        ]

    async def count(self, content_type: ContentType | None = None) -> int:
        statement = select(func.count()).select_from(AthleteMentionRow)
        if content_type is not None:
            statement = statement.where(col(AthleteMentionRow.content_type) == content_type.value)
        with self._translate_errors():
            return self._session.exec(statement).one()

    def close(self) -> None:
        self._session.close()
