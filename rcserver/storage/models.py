"""
SQLModel tables read and written by the mention detection service.

Athletes, episodes and videos are owned by the wider application; the
detection engine only reads them and flips ``athlete_mentions_processed``.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Column, DateTime, Numeric, UniqueConstraint
from sqlmodel import Field, SQLModel


class AthleteRow(SQLModel, table=True):
    """One athlete in the roster."""

    __tablename__ = "athletes"

    id: str = Field(primary_key=True)
    world_athletics_id: Optional[str] = Field(default=None, index=True, unique=True)
    name: str = Field()


class EpisodeRow(SQLModel, table=True):
    """A podcast episode."""

    __tablename__ = "episodes"

    id: str = Field(primary_key=True)
    podcast_id: str = Field(index=True)
    title: str = Field()
    content: Optional[str] = Field(default=None)
    pub_date: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), index=True))
    athlete_mentions_processed: Optional[bool] = Field(default=None)


class VideoRow(SQLModel, table=True):
    """A YouTube video."""

    __tablename__ = "videos"

    id: str = Field(primary_key=True)
    channel_id: str = Field(index=True)
    title: str = Field()
    description: Optional[str] = Field(default=None)
    created_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), index=True))
    athlete_mentions_processed: Optional[bool] = Field(default=None)


class AthleteMentionRow(SQLModel, table=True):
    """One athlete found in the title or description of an episode or video."""

    __tablename__ = "athlete_mentions"
    __table_args__ = (
        UniqueConstraint("athlete_id", "content_id", "content_type", "source", name="athlete_mentions_unique_idx"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    athlete_id: str = Field(index=True)
    content_id: str = Field(index=True)
    content_type: str = Field()
    source: str = Field()
    confidence: Decimal = Field(sa_column=Column(Numeric(5, 4), nullable=False))
    context: str = Field()
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
