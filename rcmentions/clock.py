from __future__ import annotations

from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, field_validator


class DetectionClock(BaseModel, frozen=True):
    """Reference time for a batch run, used to compute the publication window."""

    now: datetime

    @field_validator('now')
    @classmethod
    def now_must_be_timezone_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None or value.utcoffset() is None:
            raise ValueError('DetectionClock value must be timezone-aware')
        return value

    @classmethod
    def utcnow(cls) -> DetectionClock:
        return cls(now=datetime.now(timezone.utc))

    def window_start(self, max_age_hours: float) -> datetime:
        """Earliest publication time that still falls inside the batch window."""
        return self.now - timedelta(hours=max_age_hours)
