# app/db/crud/watched.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import PersistenceError
from app.db_models import WatchedProgress
from app.schemas import WatchedProgressOut

log = logging.getLogger(__name__)


def serialize_progress(row: Union[WatchedProgress, Mapping[str, Any]]) -> Dict[str, Any]:
    if isinstance(row, Mapping):
        return WatchedProgressOut.model_validate(dict(row)).model_dump(mode="json")
    return WatchedProgressOut.model_validate(row, from_attributes=True).model_dump(mode="json")


async def fetch_progress_row(
    db: AsyncSession, imdb_id: str, *, for_update: bool = False
) -> Optional[WatchedProgress]:
    stmt = select(WatchedProgress).where(WatchedProgress.imdb_id == imdb_id)
    if for_update:
        # Row lock on Postgres; ignored by SQLite
        stmt = stmt.with_for_update()
    return (await db.execute(stmt)).scalar_one_or_none()


async def list_progress(db: AsyncSession) -> List[Dict[str, Any]]:
    try:
        rows = (
            await db.execute(
                select(WatchedProgress).order_by(WatchedProgress.last_interaction_date.desc())
            )
        ).scalars().all()
    except SQLAlchemyError:
        log.exception("Error fetching watched progress")
        raise PersistenceError("Failed to fetch watched progress")
    return [serialize_progress(r) for r in rows]


async def get_progress(db: AsyncSession, imdb_id: str) -> Optional[Dict[str, Any]]:
    try:
        row = await fetch_progress_row(db, imdb_id)
    except SQLAlchemyError:
        log.exception("Error fetching watched progress for %s", imdb_id)
        raise PersistenceError("Failed to fetch watched progress for item")
    return serialize_progress(row) if row is not None else None
