# app/routes/watched.py
from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, Path, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_db
from app.db.crud.watched import get_progress, list_progress
from app.schemas import WatchedProgressIn
from app.services.watched_progress import upsert_progress

router = APIRouter(prefix="/watched", tags=["watched"])


@router.get("")
async def list_watched(db: AsyncSession = Depends(get_async_db)) -> List[Dict[str, Any]]:
    """Most recently touched first."""
    return await list_progress(db)


@router.get("/{imdb_id}")
async def get_watched(
    imdb_id: str = Path(..., min_length=1),
    db: AsyncSession = Depends(get_async_db),
) -> Dict[str, Any]:
    # Untracked titles answer {} rather than 404 (the frontend relies on it)
    return await get_progress(db, imdb_id) or {}


@router.post("")
async def post_watched(
    payload: WatchedProgressIn = Body(...),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Movies: mark watched (upsert) or `status="unwatched"` (delete).
    TV: merge episode toggle / overrides / season counts into the stored row.
    """
    result = await upsert_progress(db, payload)
    if result.operation == "noop":
        return Response(status_code=204)
    return result.row
