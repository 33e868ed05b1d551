"""Detected and persisted athlete mentions.

`DetectedAthlete` is the ephemeral output of the matcher. `AthleteMention`
is the persisted row written by the orchestrator; its confidence is a
fixed-point `Decimal` so that stored values compare and sort exactly.
"""

from datetime import datetime
from decimal import ROUND_HALF_EVEN, Decimal
from enum import Enum

from pydantic import BaseModel, Field, field_serializer, field_validator

from rcmentions.content import ContentType

CONFIDENCE_QUANTUM = Decimal("0.0001")


def to_confidence_decimal(value: float | Decimal | str) -> Decimal:
    """Convert a confidence score to its stored fixed-point form.

    Floats go through ``repr`` so that 0.8 becomes ``Decimal("0.8000")``
    rather than the binary expansion of 0.8.
    """
    if isinstance(value, float):
        value = repr(value)
    return Decimal(value).quantize(CONFIDENCE_QUANTUM, rounding=ROUND_HALF_EVEN)


class MentionSource(str, Enum):
    """Which text field of a content item the athlete was found in."""

    TITLE = "title"
    DESCRIPTION = "description"


class DetectedAthlete(BaseModel, frozen=True):
    """A single athlete found in a block of text."""

    athlete_id: str
    confidence: float = Field(
        gt=0.0,
        le=1.0,
        description="1.0 for exact matches, the similarity score for fuzzy matches.",
    )
    context: str = Field(description="Snippet of the source text around the match.")


class AthleteMention(BaseModel, frozen=True):
    """A persisted link between an athlete and a content item."""

    athlete_id: str
    content_id: str
    content_type: ContentType
    source: MentionSource
    confidence: Decimal
    context: str
    created_at: datetime

    @field_validator("confidence", mode="before")
    @classmethod
    def quantize_confidence(cls, value: float | Decimal | str) -> Decimal:
        confidence = to_confidence_decimal(value)
        if not Decimal(0) < confidence <= Decimal(1):
            raise ValueError(f"confidence must be in (0, 1], got {confidence}")
        return confidence

    @field_serializer("confidence")
    def serialize_confidence(self, value: Decimal) -> str:
        return str(value)

    @property
    def unique_key(self) -> tuple[str, str, str, str]:
        """The (athlete, content, content type, source) key that must be unique in storage."""
        return (self.athlete_id, self.content_id, self.content_type.value, self.source.value)
