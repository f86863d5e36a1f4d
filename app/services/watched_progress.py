# app/services/watched_progress.py
"""
Watched-progress upsert.

Movies: a single-statement upsert or delete.
TV: read (FOR UPDATE) -> merge -> write inside one transaction; the
`async with db.begin()` block is the only place a rollback happens.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import and_, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AppError, PersistenceError, ValidationError
from app.core.media import MEDIA_TYPES, MOVIE_UNWATCHED, MOVIE_WATCHED
from app.db.crud.watched import fetch_progress_row, serialize_progress
from app.db.upsert import dialect_insert
from app.db_models import WatchedProgress
from app.schemas import WatchedProgressIn
from app.services.progress_merge import merge_tv_progress

log = logging.getLogger(__name__)

SAVE_FAILED = "Failed to save watched progress"


@dataclass
class UpsertResult:
    # "upserted" | "deleted" | "noop" (movie unwatched, nothing tracked)
    operation: str
    row: Optional[Dict[str, Any]] = None


def validate_request(req: WatchedProgressIn) -> None:
    if not req.imdb_id or not req.media_type or not req.title:
        raise ValidationError("Missing required fields: imdb_id, media_type, title")
    if req.media_type not in MEDIA_TYPES:
        raise ValidationError('Invalid media_type. Must be "movie" or "tv".')
    ep = req.watched_episode
    if ep is not None and (ep.season is None or ep.episode is None or ep.watched is None):
        raise ValidationError("Invalid watched_episode structure. Required: { season, episode, watched }")


async def upsert_progress(db: AsyncSession, req: WatchedProgressIn) -> UpsertResult:
    validate_request(req)
    now = datetime.now(timezone.utc)
    try:
        if req.media_type == "movie":
            return await _upsert_movie(db, req, now)
        return await _upsert_tv(db, req, now)
    except AppError:
        raise
    except SQLAlchemyError:
        log.exception("Error posting/updating watched progress. imdb_id=%s media_type=%s", req.imdb_id, req.media_type)
        raise PersistenceError(SAVE_FAILED)
    except (TypeError, ValueError):
        # Malformed stored JSON (e.g. watched_episodes not an object); already rolled back
        log.exception("Could not merge stored watched progress. imdb_id=%s", req.imdb_id)
        raise PersistenceError(SAVE_FAILED)


# ─────────────────────────── movies ───────────────────────────

async def _upsert_movie(db: AsyncSession, req: WatchedProgressIn, now: datetime) -> UpsertResult:
    table = WatchedProgress.__table__

    if req.status == MOVIE_UNWATCHED:
        async with db.begin():
            removed = (
                await db.execute(
                    delete(table)
                    .where(and_(table.c.imdb_id == req.imdb_id, table.c.media_type == "movie"))
                    .returning(*table.c)
                )
            ).mappings().first()
        if removed is None:
            log.info("Movie %s marked unwatched but nothing was tracked", req.imdb_id)
            return UpsertResult("noop")
        row = serialize_progress(removed)
        row["operation_type"] = "deleted"
        return UpsertResult("deleted", row)

    # Keyed by imdb_id only: an id stored as TV keeps media_type=tv but takes the movie status.
    stmt = dialect_insert(db, WatchedProgress).values(
        imdb_id=req.imdb_id,
        media_type=req.media_type,
        title=req.title,
        poster_url=req.poster_url,
        status=req.status if isinstance(req.status, str) and req.status else MOVIE_WATCHED,
        watched_episodes={},
        episodes_in_season={},
        last_interaction_date=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["imdb_id"],
        set_=dict(
            title=stmt.excluded.title,
            poster_url=stmt.excluded.poster_url,
            status=stmt.excluded.status,
            last_interaction_date=stmt.excluded.last_interaction_date,
        ),
    ).returning(WatchedProgress)

    async with db.begin():
        saved = (
            await db.scalars(stmt, execution_options={"populate_existing": True})
        ).first()
        if saved is None:
            # Shouldn't happen with DO UPDATE ... RETURNING; answer with whatever is stored
            log.warning("Watched progress upsert returned no row. imdb_id=%s", req.imdb_id)
            saved = await fetch_progress_row(db, req.imdb_id)
        if saved is None:
            raise PersistenceError(SAVE_FAILED)
        return UpsertResult("upserted", serialize_progress(saved))


# ─────────────────────────── TV ───────────────────────────

async def _upsert_tv(db: AsyncSession, req: WatchedProgressIn, now: datetime) -> UpsertResult:
    async with db.begin():
        existing = await fetch_progress_row(db, req.imdb_id, for_update=True)
        state = merge_tv_progress(req, existing, now=now)

        log.debug(
            "TV progress for %s: status=%s total_seasons=%s episodes=%s seasons=%s last=%s",
            req.imdb_id,
            state["status"],
            state["total_seasons"],
            state["watched_episodes"],
            state["episodes_in_season"],
            state["last_watched_episode"],
        )

        if existing is not None:
            for key, value in state.items():
                setattr(existing, key, value)
            row = existing
        else:
            row = WatchedProgress(imdb_id=req.imdb_id, media_type=req.media_type, **state)
            db.add(row)

        await db.flush()
        return UpsertResult("upserted", serialize_progress(row))
