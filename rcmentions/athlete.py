"""Roster entries consumed by the athlete name index."""

from pydantic import BaseModel, Field


class Athlete(BaseModel, frozen=True):
    """An athlete as listed by the roster collaborator.

    Only the identifier and display name matter to detection. Roster rows
    without an identifier are tolerated here and skipped by the index.
    """

    athlete_id: str | None = Field(
        description="Stable athlete identifier (World Athletics ID), or None if not yet linked."
    )
    name: str = Field(description="Display name; the only matchable attribute.")
