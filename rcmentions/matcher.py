"""Exact and fuzzy athlete-name matching over a block of text.

Matching runs in two passes:

1. **Exact**: each indexed name is searched as a whole word, ignoring case.
   Every occurrence yields confidence 1.0.
2. **Fuzzy** (optional): the text is split on whitespace and every window of
   up to ``window_tokens`` consecutive tokens is scored against every indexed
   name with normalized Levenshtein similarity. Windows scoring at or above
   ``fuzzy_threshold`` yield that score as confidence.

Candidates are then reduced to one per athlete, keeping the highest
confidence. Exact candidates are collected first, so an exact hit always
survives a fuzzy hit for the same athlete.
"""

from rapidfuzz.distance import Levenshtein

from rcmentions.config import MatcherConfig
from rcmentions.mention import DetectedAthlete
from rcmentions.name_index import AthleteNameIndex


def context_window(text: str, start: int, length: int, radius: int = 50) -> str:
    """Slice ``text`` around a match, clipped to the text bounds.

    Args:
        text: The full source text.
        start: Character offset where the match begins.
        length: Length of the matched name or phrase.
        radius: Characters kept on each side of the match.

    Returns:
        ``text[max(0, start - radius) : min(len(text), start + length + radius)]``
    """
    return text[max(0, start - radius) : min(len(text), start + length + radius)]


def similarity(a: str, b: str) -> float:
    """Case-insensitive similarity in [0, 1]: ``1 - distance / max(len(a), len(b))``."""
    return Levenshtein.normalized_similarity(a.lower(), b.lower())


def dedupe_by_athlete(candidates: list[DetectedAthlete]) -> list[DetectedAthlete]:
    """Keep one candidate per athlete, the highest confidence, first-seen on ties.

    Output order follows the first appearance of each athlete.
    """
    best: dict[str, DetectedAthlete] = {}
    for candidate in candidates:
        current = best.get(candidate.athlete_id)
        if current is None or current.confidence < candidate.confidence:
            best[candidate.athlete_id] = candidate
    return list(best.values())


class AthleteMatcher:
    """Finds athletes from an `AthleteNameIndex` in free text.

    The matcher itself is stateless apart from its configuration; the
    compiled patterns live on the index, so one index can be shared across
    every text in a batch.

    Example:
        ```python
        matcher = AthleteMatcher()
        found = matcher.detect("Eliud Kipchoge set a world record", index)
        # [DetectedAthlete(athlete_id="a1", confidence=1.0, context="Eliud Kipchoge set a world record")]
        ```
    """

    def __init__(self, config: MatcherConfig | None = None) -> None:
        self.config = config or MatcherConfig()

    def with_fuzzy(self, enabled: bool) -> "AthleteMatcher":
        """Return a matcher with the fuzzy pass switched on or off."""
        return AthleteMatcher(self.config.model_copy(update={"fuzzy_enabled": enabled}))

    def detect(self, text: str | None, index: AthleteNameIndex) -> list[DetectedAthlete]:
        if not text or len(index) == 0:
            return []
        candidates = self.exact_matches(text, index)
        if self.config.fuzzy_enabled:
            candidates.extend(self.fuzzy_matches(text, index))
        return dedupe_by_athlete(candidates)

    def exact_matches(self, text: str, index: AthleteNameIndex) -> list[DetectedAthlete]:
        radius = self.config.context_radius
        found: list[DetectedAthlete] = []
        for pattern, name, athlete_id in index.exact_patterns():
            for match in pattern.finditer(text):
                found.append(
                    DetectedAthlete(
                        athlete_id=athlete_id,
                        confidence=1.0,
                        context=context_window(text, match.start(), len(name), radius),
                    )
                )
        return found

    def fuzzy_matches(self, text: str, index: AthleteNameIndex) -> list[DetectedAthlete]:
        threshold = self.config.fuzzy_threshold
        width = self.config.window_tokens
        radius = self.config.context_radius
        words = text.split()
        found: list[DetectedAthlete] = []
        for i in range(len(words)):
            phrase = " ".join(words[i : i + width])
            for name, athlete_id in index.items():
                if not name.strip():
                    continue
                score = similarity(phrase, name)
                if score < threshold:
                    continue
                # A phrase rebuilt from tokens may not occur verbatim if the
                # text had runs of whitespace; anchor at the start then.
                start = max(text.find(phrase), 0)
                found.append(
                    DetectedAthlete(
                        athlete_id=athlete_id,
                        confidence=score,
                        context=context_window(text, start, len(phrase), radius),
                    )
                )
        return found
