"""
Athlete mention detection service.

Run with: uvicorn rcserver.server:app --host 0.0.0.0 --port 8000
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from rcmentions import __version__
from rcmentions.logging import setup_logging

from .routers import mentions_api
from .storage_factory import close_storage, create_tables, get_engine

logger = setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Creates missing tables on startup and disposes of the engine on shutdown.
    """
    engine, db_url = get_engine()
    create_tables(engine)
    logger.info(f"Mention service using {db_url.split('@')[-1]}")
    yield
    close_storage()


app = FastAPI(
    title="Athlete Mention Detection API",
    description="Detects athlete mentions in podcast episodes and videos.",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(mentions_api.router)


@app.get("/health")
async def health_check():
    """
    Health check endpoint to verify that the server is running.
    """
    return {"status": "ok"}
