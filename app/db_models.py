# app/db_models.py
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    JSON,
    String,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base


# Single MetaData for both tables (Alembic + ensure_schema read it from here)
Base = declarative_base()

# JSONB on Postgres, plain JSON everywhere else (tests run on SQLite)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Favorite(Base):
    """
    A bookmarked title, independent of watch state.
    Rows are created or deleted, never updated.
    """
    __tablename__ = "favorites"

    imdb_id = Column(String(32), primary_key=True)
    title = Column(String(500), nullable=False)
    poster_url = Column(String(1000), nullable=True)
    media_type = Column(String(10), nullable=False)
    added_date = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("media_type IN ('movie', 'tv')", name="ck_favorites_media_type"),
    )


class WatchedProgress(Base):
    """
    Per-title watch state.
    Movies: the row exists only while watched.
    TV: per-episode map + season metadata, merged on every POST.
    """
    __tablename__ = "watched_progress"

    imdb_id = Column(String(32), primary_key=True)
    media_type = Column(String(10), nullable=False)
    title = Column(String(500), nullable=True)
    poster_url = Column(String(1000), nullable=True)
    status = Column(String(32), nullable=True)

    # {"S1E3": true, ...}
    watched_episodes = Column(JSONType, nullable=False, default=dict)
    total_seasons = Column(Integer, nullable=True)
    # {"1": 10, "2": 8}
    episodes_in_season = Column(JSONType, nullable=False, default=dict)
    # {"season": 1, "episode": 3, "timestamp": "..."} or NULL
    last_watched_episode = Column(JSONType, nullable=True)

    last_interaction_date = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True
    )

    __table_args__ = (
        CheckConstraint("media_type IN ('movie', 'tv')", name="ck_watched_progress_media_type"),
    )


__all__ = [
    "Base",
    "JSONType",
    "Favorite",
    "WatchedProgress",
    "utcnow",
]
