# app/db/crud/favorites.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, NotFoundError, PersistenceError, ValidationError
from app.core.media import MEDIA_TYPES
from app.db.upsert import dialect_insert
from app.db_models import Favorite, utcnow
from app.schemas import FavoriteOut

log = logging.getLogger(__name__)


def _payload_get(payload: Any, key: str, default=None):
    # Accept both Pydantic models (attribute) and dict (key)
    if isinstance(payload, dict):
        return payload.get(key, default)
    if hasattr(payload, key):
        return getattr(payload, key)
    return default


def _serialize(row: Favorite) -> Dict[str, Any]:
    return FavoriteOut.model_validate(row, from_attributes=True).model_dump(mode="json")


def validate_favorite(payload: Any) -> Tuple[str, str, Optional[str], str]:
    imdb_id = _payload_get(payload, "imdb_id")
    title = _payload_get(payload, "title")
    media_type = _payload_get(payload, "media_type")
    if not imdb_id or not title or not media_type:
        raise ValidationError("Missing required fields: imdb_id, title, media_type")
    if media_type not in MEDIA_TYPES:
        raise ValidationError('Invalid media_type. Must be "movie" or "tv".')
    return imdb_id, title, _payload_get(payload, "poster_url"), media_type


async def list_favorites(db: AsyncSession) -> List[Dict[str, Any]]:
    try:
        res = await db.execute(select(Favorite).order_by(Favorite.added_date.desc()))
        rows = res.scalars().all()
    except SQLAlchemyError:
        log.exception("Error fetching favorites")
        raise PersistenceError("Failed to fetch favorites")
    return [_serialize(r) for r in rows]


async def add_favorite(db: AsyncSession, payload: Any) -> Tuple[Dict[str, Any], bool]:
    """
    Insert-if-absent keyed by imdb_id.
    Returns (row, created); created=False means the favorite was already there.
    """
    imdb_id, title, poster_url, media_type = validate_favorite(payload)

    stmt = (
        dialect_insert(db, Favorite)
        .values(
            imdb_id=imdb_id,
            title=title,
            poster_url=poster_url,
            media_type=media_type,
            added_date=utcnow(),
        )
        .on_conflict_do_nothing(index_elements=["imdb_id"])
        .returning(Favorite)
    )

    try:
        async with db.begin():
            inserted = (await db.scalars(stmt)).first()
            if inserted is not None:
                return _serialize(inserted), True

            # Conflict: hand back what's already stored
            existing = (
                await db.execute(select(Favorite).where(Favorite.imdb_id == imdb_id))
            ).scalar_one_or_none()
    except SQLAlchemyError:
        log.exception("Error adding favorite. imdb_id=%s", imdb_id)
        raise PersistenceError("Failed to add favorite")

    if existing is None:
        # Conflicted on insert, then vanished (concurrent delete)
        log.warning("Favorite %s conflicted on insert but could not be re-read", imdb_id)
        raise ConflictError("Favorite already exists or failed to add.")
    return _serialize(existing), False


async def remove_favorite(db: AsyncSession, imdb_id: str) -> Dict[str, Any]:
    if not imdb_id:
        raise ValidationError("IMDB ID is required")
    try:
        async with db.begin():
            removed = (
                await db.execute(
                    delete(Favorite.__table__)
                    .where(Favorite.imdb_id == imdb_id)
                    .returning(*Favorite.__table__.c)
                )
            ).mappings().first()
    except SQLAlchemyError:
        log.exception("Error removing favorite. imdb_id=%s", imdb_id)
        raise PersistenceError("Failed to remove favorite")

    if removed is None:
        raise NotFoundError("Favorite not found")
    return FavoriteOut.model_validate(dict(removed)).model_dump(mode="json")
