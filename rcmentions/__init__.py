"""Athlete mention detection for podcast episodes and videos.

Builds a case-insensitive athlete name index from a roster, finds athletes
in text with exact and fuzzy matching, and reconciles persisted mentions
per content item.
"""

from rcmentions.athlete import Athlete
from rcmentions.config import DetectionSettings, MatcherConfig, load_settings
from rcmentions.content import ContentItem, ContentType, ProcessingStats
from rcmentions.errors import (
    ContentNotFoundError,
    MentionDetectionError,
    PersistenceError,
    UpstreamFetchError,
)
from rcmentions.matcher import AthleteMatcher
from rcmentions.mention import AthleteMention, DetectedAthlete, MentionSource
from rcmentions.name_index import AthleteNameIndex, NameIndexProvider
from rcmentions.orchestrator import BatchResult, ContentResult, MentionOrchestrator
from rcmentions.queue import MentionQueueWorker

__version__ = "0.1.0"

__all__ = [
    "Athlete",
    "AthleteMatcher",
    "AthleteMention",
    "AthleteNameIndex",
    "BatchResult",
    "ContentResult",
    "ContentItem",
    "ContentNotFoundError",
    "ContentType",
    "DetectedAthlete",
    "DetectionSettings",
    "MatcherConfig",
    "MentionDetectionError",
    "MentionOrchestrator",
    "MentionQueueWorker",
    "MentionSource",
    "NameIndexProvider",
    "PersistenceError",
    "ProcessingStats",
    "UpstreamFetchError",
    "load_settings",
]

