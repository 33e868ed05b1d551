"""Load detection settings from TOML (e.g. rcmentions.toml).

Config file is looked up in order:
  1. Path in RCMENTIONS_CONFIG env var (if set)
  2. rcmentions.toml in the current working directory

If no file is found, built-in defaults are used. Unknown keys are ignored
so that one TOML file can carry settings for other tools as well.

Example file:

    [matcher]
    fuzzy_enabled = true
    fuzzy_threshold = 0.8

    [batch]
    max_age_hours = 48

    [queue]
    concurrency = 5
    operations_per_second = 50
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from rcmentions.logging import setup_logging

logger = setup_logging(prefix="")

CONFIG_ENV_VAR = "RCMENTIONS_CONFIG"
CONFIG_FILENAME = "rcmentions.toml"


class MatcherConfig(BaseModel, frozen=True):
    """Tuning knobs for exact and fuzzy matching."""

    fuzzy_enabled: bool = Field(True, description="Run the fuzzy n-gram pass after exact matching.")
    fuzzy_threshold: float = Field(0.8, gt=0.0, le=1.0, description="Minimum similarity for a fuzzy match.")
    window_tokens: int = Field(3, ge=1, description="Maximum tokens per fuzzy candidate phrase.")
    context_radius: int = Field(50, ge=0, description="Characters of context kept on each side of a match.")


class BatchConfig(BaseModel, frozen=True):
    """Defaults for batch selection."""

    limit: int = Field(10, ge=1, description="Maximum items selected per batch run.")
    max_age_hours: float = Field(24, gt=0, description="Publication window for batch selection.")
    video_description_limit: int | None = Field(
        500,
        ge=0,
        description="Only the first N characters of a video description are scanned. None disables truncation.",
    )


class QueueConfig(BaseModel, frozen=True):
    """Job-level policy for the queue worker."""

    concurrency: int = Field(5, ge=1)
    operations_per_second: float = Field(50, gt=0)
    max_attempts: int = Field(3, ge=1)
    backoff_initial_seconds: float = Field(1.0, ge=0)


class IndexConfig(BaseModel, frozen=True):
    """Name index caching. A TTL of 0 rebuilds the index on every request."""

    ttl_seconds: float = Field(0, ge=0)


class DetectionSettings(BaseModel, frozen=True):
    matcher: MatcherConfig = Field(default_factory=MatcherConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    queue: QueueConfig = Field(default_factory=QueueConfig)
    index: IndexConfig = Field(default_factory=IndexConfig)


def _default_config_paths() -> list[Path]:
    """Return paths to check for rcmentions.toml (first existing wins)."""
    paths: list[Path] = []
    if os.environ.get(CONFIG_ENV_VAR):
        paths.append(Path(os.environ[CONFIG_ENV_VAR]))
    paths.append(Path.cwd() / CONFIG_FILENAME)
    return paths


def _known_sections(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if key in DetectionSettings.model_fields and isinstance(value, dict)}


def load_settings(path: Path | None = None) -> DetectionSettings:
    """Load detection settings from a TOML file.

    Args:
        path: Explicit config file. When omitted the default lookup order applies.

    Returns:
        Validated settings. Missing files or sections fall back to defaults.

    Raises:
        ValueError: If a config file exists but holds invalid values.
    """
    candidates = [path] if path is not None else _default_config_paths()
    for candidate in candidates:
        if not candidate.is_file():
            continue
        with open(candidate, "rb") as f:
            data = tomllib.load(f)
        try:
            settings = DetectionSettings.model_validate(_known_sections(data))
        except ValidationError as e:
            raise ValueError(f"Invalid settings in {candidate}: {e}") from e
        logger.debug("Loaded detection settings from %s", candidate)
        return settings
    return DetectionSettings()
