# app/routes/favorites.py
from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, Path
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_db
from app.db.crud import favorites as crud
from app.schemas import FavoriteIn

router = APIRouter(prefix="/favorites", tags=["favorites"])


@router.get("")
async def list_favorites(db: AsyncSession = Depends(get_async_db)) -> List[Dict[str, Any]]:
    """Newest first."""
    return await crud.list_favorites(db)


@router.post("", status_code=201)
async def add_favorite(
    payload: FavoriteIn = Body(...),
    db: AsyncSession = Depends(get_async_db),
):
    row, created = await crud.add_favorite(db, payload)
    if created:
        return row
    return JSONResponse(
        status_code=200,
        content={"message": "Favorite already exists.", "favorite": row},
    )


@router.delete("/{imdb_id}")
async def remove_favorite(
    imdb_id: str = Path(..., min_length=1),
    db: AsyncSession = Depends(get_async_db),
) -> Dict[str, Any]:
    removed = await crud.remove_favorite(db, imdb_id)
    return {"message": "Favorite removed successfully", "removed_favorite": removed}
