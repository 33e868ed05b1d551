"""Tests for the athlete name index and its provider.

This module verifies:
- Names are keyed case-insensitively and roster entries without ids are skipped
- Duplicate names resolve to the later roster entry and are recorded
- Exact-match patterns are compiled once per index
- The provider rebuilds per call by default and caches under a positive TTL
"""

from rcmentions.athlete import Athlete
from rcmentions.name_index import AthleteNameIndex, NameIndexProvider
from rcmentions.storage.memory import InMemoryAthleteRoster

from tests.conftest import make_athlete


class TestAthleteNameIndex:
    """Tests for building the lowercased name map from a roster."""

    def test_keys_are_lowercased(self) -> None:
        """Lookups ignore case in both the roster name and the query."""
        index = AthleteNameIndex.from_roster([make_athlete("a1", "Eliud Kipchoge")])

        assert index.names() == ["eliud kipchoge"]
        assert index.get("ELIUD KIPCHOGE") == "a1"
        assert "Eliud kipchoge" in index

    def test_entries_without_id_are_skipped(self) -> None:
        """Roster rows with no identifier never reach the index."""
        index = AthleteNameIndex.from_roster(
            [make_athlete(None, "Unlinked Runner"), make_athlete("a2", "Faith Kipyegon")]
        )

        assert len(index) == 1
        assert index.get("unlinked runner") is None

    def test_duplicate_name_last_entry_wins(self) -> None:
        """Two athletes sharing a name resolve to the later one, and the collision is kept."""
        index = AthleteNameIndex.from_roster(
            [make_athlete("a1", "Sam Smith"), make_athlete("a2", "SAM SMITH")]
        )

        assert index.get("sam smith") == "a2"
        assert index.collisions == (("sam smith", "a1", "a2"),)

    def test_same_athlete_listed_twice_is_not_a_collision(self) -> None:
        index = AthleteNameIndex.from_roster(
            [make_athlete("a1", "Sam Smith"), make_athlete("a1", "Sam Smith")]
        )

        assert index.collisions == ()

    def test_empty_roster(self) -> None:
        index = AthleteNameIndex.from_roster([])

        assert len(index) == 0
        assert index.exact_patterns() == []

    def test_patterns_compiled_once(self) -> None:
        """Repeated scans with the same index reuse the compiled patterns."""
        index = AthleteNameIndex.from_roster([make_athlete("a1", "Eliud Kipchoge")])

        assert index.exact_patterns() is index.exact_patterns()

    def test_pattern_escapes_punctuation(self) -> None:
        """Regex metacharacters in names match literally."""
        index = AthleteNameIndex.from_roster([make_athlete("a1", "T.J. Jones")])
        pattern, name, athlete_id = index.exact_patterns()[0]

        assert pattern.search("with T.J. Jones today")
        assert not pattern.search("with TxJx Jones today")
        assert (name, athlete_id) == ("t.j. jones", "a1")


class TestNameIndexProvider:
    """Tests for per-call rebuilds, TTL caching and reset."""

    async def test_default_rebuilds_every_call(self) -> None:
        """With no TTL each request reads the roster again."""
        roster = InMemoryAthleteRoster([make_athlete("a1", "Eliud Kipchoge")])
        provider = NameIndexProvider(roster)

        await provider.get()
        await provider.get()

        assert roster.reads == 2
        assert provider.get_stats() == {"hits": 0, "misses": 2, "cached": 0}

    async def test_default_sees_roster_edits(self) -> None:
        roster = InMemoryAthleteRoster([make_athlete("a1", "Eliud Kipchoge")])
        provider = NameIndexProvider(roster)
        await provider.get()

        roster.add(Athlete(athlete_id="a2", name="Faith Kipyegon"))
        index = await provider.get()

        assert index.get("faith kipyegon") == "a2"

    async def test_ttl_caches_until_expiry(self) -> None:
        """A positive TTL reuses the index until the clock passes the TTL."""
        now = [100.0]
        roster = InMemoryAthleteRoster([make_athlete("a1", "Eliud Kipchoge")])
        provider = NameIndexProvider(roster, ttl_seconds=60, clock=lambda: now[0])

        first = await provider.get()
        now[0] = 159.0
        second = await provider.get()
        now[0] = 161.0
        third = await provider.get()

        assert first is second
        assert third is not first
        assert roster.reads == 2
        assert provider.get_stats()["hits"] == 1

    async def test_reset_forces_rebuild(self) -> None:
        roster = InMemoryAthleteRoster([make_athlete("a1", "Eliud Kipchoge")])
        provider = NameIndexProvider(roster, ttl_seconds=3600)

        first = await provider.get()
        provider.reset()
        second = await provider.get()

        assert first is not second
        assert roster.reads == 2
