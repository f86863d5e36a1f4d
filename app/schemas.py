from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


# ── Favorites ────────────────────────────────────────────────────────────────

class FavoriteIn(BaseModel):
    # Required-ness is checked by the service so the client gets the
    # "Missing required fields" message instead of a schema dump.
    model_config = ConfigDict(extra="ignore")

    imdb_id: Optional[str] = None
    title: Optional[str] = None
    poster_url: Optional[str] = None
    media_type: Optional[str] = None


class FavoriteOut(BaseModel):
    imdb_id: str
    title: str
    poster_url: Optional[str] = None
    media_type: str
    added_date: Optional[datetime] = None


# ── Watched progress ─────────────────────────────────────────────────────────

class EpisodeToggle(BaseModel):
    """Single-episode delta: {season, episode, watched}."""
    season: Optional[int] = None
    episode: Optional[int] = None
    watched: Optional[bool] = None


class WatchedProgressIn(BaseModel):
    """
    POST /api/watched body.

    `watched_episodes` / `last_watched_episode` are full-object overrides
    (bulk reset). Whether the client *sent* them matters, not their value:
    use `overrides_watched_episodes` / `overrides_last_watched_episode`.
    """
    model_config = ConfigDict(extra="ignore")

    imdb_id: Optional[str] = None
    media_type: Optional[str] = None
    title: Optional[str] = None
    poster_url: Optional[str] = None
    # Any type: unknown TV statuses are normalised, not rejected
    status: Optional[Any] = None

    watched_episode: Optional[EpisodeToggle] = None
    # Raw: non-numeric values are dropped by the merge, not rejected
    total_seasons: Optional[Any] = None
    episodes_in_season: Optional[Dict[str, Any]] = None

    watched_episodes: Optional[Dict[str, Any]] = None
    last_watched_episode: Optional[Dict[str, Any]] = None

    @property
    def overrides_watched_episodes(self) -> bool:
        return "watched_episodes" in self.model_fields_set

    @property
    def overrides_last_watched_episode(self) -> bool:
        return "last_watched_episode" in self.model_fields_set


class WatchedProgressOut(BaseModel):
    imdb_id: str
    media_type: str
    title: Optional[str] = None
    poster_url: Optional[str] = None
    status: Optional[str] = None
    watched_episodes: Optional[Dict[str, Any]] = Field(default_factory=dict)
    total_seasons: Optional[int] = None
    episodes_in_season: Optional[Dict[str, Any]] = Field(default_factory=dict)
    last_watched_episode: Optional[Dict[str, Any]] = None
    last_interaction_date: Optional[datetime] = None
