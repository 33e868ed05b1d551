"""
Engine, storage and orchestrator factories for the mention service.
"""

import os
from functools import lru_cache
from typing import Generator

from fastapi import Depends
from sqlalchemy import create_engine
from sqlmodel import Session, SQLModel

from rcmentions.config import DetectionSettings, load_settings
from rcmentions.logging import setup_logging
from rcmentions.orchestrator import MentionOrchestrator
from rcserver.storage.sql import SQLStorage

logger = setup_logging(prefix="")

DEFAULT_DATABASE_URL = "sqlite:///./rcmentions.db"

# Singleton engine and db_url
_engine = None
_db_url = None


def get_engine():
    """
    Returns a singleton instance of the SQLAlchemy engine and db_url.
    """
    global _engine, _db_url
    if _engine is None:
        _db_url = os.getenv("DATABASE_URL")
        if not _db_url:
            logger.info(f"DATABASE_URL not set, defaulting to {DEFAULT_DATABASE_URL}")
            _db_url = DEFAULT_DATABASE_URL

        connect_args = {}
        if _db_url.startswith("sqlite://"):
            connect_args["check_same_thread"] = False  # Needed for SQLite with FastAPI

        _engine = create_engine(_db_url, connect_args=connect_args)
    return _engine, _db_url


def create_tables(engine) -> None:
    """Create any missing tables. Existing tables are left alone."""
    SQLModel.metadata.create_all(engine)


@lru_cache(maxsize=1)
def get_settings() -> DetectionSettings:
    return load_settings()


def get_storage() -> Generator[SQLStorage, None, None]:
    """
    FastAPI dependency that provides a storage instance with a request-scoped session.
    """
    engine, _ = get_engine()
    session = Session(engine)
    try:
        yield SQLStorage(session)
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_orchestrator(
    storage: SQLStorage = Depends(get_storage),
    settings: DetectionSettings = Depends(get_settings),
) -> MentionOrchestrator:
    """
    FastAPI dependency that wires one storage instance into all three collaborator roles.
    """
    return MentionOrchestrator(
        roster=storage,
        content_store=storage,
        mention_storage=storage,
        settings=settings,
    )


def close_storage():
    """
    Closes the engine connection.
    """
    global _engine, _db_url
    if _engine:
        _engine.dispose()
        _engine = None
        _db_url = None
