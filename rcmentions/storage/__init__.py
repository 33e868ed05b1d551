"""Storage interfaces and in-memory implementations for the detection engine."""

from rcmentions.storage.interfaces import (
    AthleteRosterInterface,
    ContentStoreInterface,
    MentionStorageInterface,
)
from rcmentions.storage.memory import (
    InMemoryAthleteRoster,
    InMemoryContentStore,
    InMemoryMentionStorage,
)

__all__ = [
    "AthleteRosterInterface",
    "ContentStoreInterface",
    "MentionStorageInterface",
    "InMemoryAthleteRoster",
    "InMemoryContentStore",
    "InMemoryMentionStorage",
]
