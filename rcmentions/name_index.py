"""Case-insensitive lookup from athlete name to athlete identifier.

The index is a pure transformation of the roster. Each instance also owns
the compiled word-boundary patterns for its names, so scanning many texts
with one index compiles every pattern exactly once.

`NameIndexProvider` decides how long an index may be reused. The default
TTL of zero rebuilds from the roster on every request, which keeps
detection fresh against roster edits; batch runs and long-lived workers
can opt into a positive TTL and call `reset()` to force a rebuild.
"""

import re
import time
from typing import Callable, Iterable, Iterator

from rcmentions.athlete import Athlete
from rcmentions.logging import setup_logging
from rcmentions.storage.interfaces import AthleteRosterInterface

logger = setup_logging()


class AthleteNameIndex:
    """Mapping of ``name.lower()`` to athlete identifier.

    When two roster entries share a lowercased name, the later entry wins.
    Such collisions are kept in `collisions` as ``(name, replaced_id, kept_id)``
    so callers can surface them for review.
    """

    def __init__(self, names: dict[str, str], collisions: Iterable[tuple[str, str, str]] = ()) -> None:
        self._names = dict(names)
        self.collisions: tuple[tuple[str, str, str], ...] = tuple(collisions)
        self._patterns: list[tuple[re.Pattern[str], str, str]] | None = None

    @classmethod
    def from_roster(cls, athletes: Iterable[Athlete]) -> "AthleteNameIndex":
        names: dict[str, str] = {}
        collisions: list[tuple[str, str, str]] = []
        for athlete in athletes:
            if athlete.athlete_id is None:
                continue
            key = athlete.name.lower()
            previous = names.get(key)
            if previous is not None and previous != athlete.athlete_id:
                collisions.append((key, previous, athlete.athlete_id))
                logger.warning(
                    {
                        "message": "Duplicate athlete name in roster; later entry wins",
                        "name": key,
                        "replaced_id": previous,
                        "kept_id": athlete.athlete_id,
                    }
                )
            names[key] = athlete.athlete_id
        return cls(names, collisions)

    def get(self, name: str) -> str | None:
        """Look up an identifier by name, ignoring case."""
        return self._names.get(name.lower())

    def names(self) -> list[str]:
        """Lowercased names in roster order."""
        return list(self._names)

    def items(self) -> Iterator[tuple[str, str]]:
        return iter(self._names.items())

    def exact_patterns(self) -> list[tuple[re.Pattern[str], str, str]]:
        """Compiled ``(pattern, name, athlete_id)`` triples for whole-word matching.

        Names are escaped, so punctuation such as ``"T.J."`` matches literally.
        """
        if self._patterns is None:
            self._patterns = [
                (re.compile(rf"\b{re.escape(name)}\b", re.IGNORECASE), name, athlete_id)
                for name, athlete_id in self._names.items()
                if name.strip()
            ]
        return self._patterns

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._names


class NameIndexProvider:
    """Builds `AthleteNameIndex` instances from the roster, optionally caching one.

    Args:
        roster: Athlete roster collaborator.
        ttl_seconds: How long a built index may be reused. 0 disables caching.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        roster: AthleteRosterInterface,
        ttl_seconds: float = 0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._roster = roster
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._cached: AthleteNameIndex | None = None
        self._built_at = 0.0
        self._hits = 0
        self._misses = 0

    async def get(self) -> AthleteNameIndex:
        """Return a cached index if still fresh, otherwise rebuild from the roster."""
        now = self._clock()
        if self._cached is not None and self._ttl_seconds > 0 and now - self._built_at < self._ttl_seconds:
            self._hits += 1
            return self._cached

        self._misses += 1
        athletes = await self._roster.list_athletes()
        index = AthleteNameIndex.from_roster(athletes)
        logger.debug(f"Built athlete name index with {len(index)} names")
        if self._ttl_seconds > 0:
            self._cached = index
            self._built_at = now
        return index

    def reset(self) -> None:
        """Drop the cached index so the next `get()` reads the roster again."""
        self._cached = None
        self._built_at = 0.0

    def get_stats(self) -> dict[str, int]:
        return {
            "hits": self._hits,
            "misses": self._misses,
            "cached": int(self._cached is not None),
        }
