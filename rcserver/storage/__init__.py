from rcserver.storage.models import AthleteMentionRow, AthleteRow, EpisodeRow, VideoRow
from rcserver.storage.sql import SQLStorage

__all__ = ["AthleteMentionRow", "AthleteRow", "EpisodeRow", "VideoRow", "SQLStorage"]
