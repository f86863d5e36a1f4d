# app/core/media.py
from __future__ import annotations

from typing import Tuple

MEDIA_TYPES: Tuple[str, ...] = ("movie", "tv")

# Movies are binary: a row exists ("watched") or it doesn't.
MOVIE_WATCHED = "watched"
MOVIE_UNWATCHED = "unwatched"

# TV rows only ever store one of these; the frontend uses the same values.
TV_STATUSES: Tuple[str, ...] = ("watching", "completed", "on_hold", "dropped", "plan_to_watch")
PREFERRED_TV_STATUS = "watching"
