# app/routes/health.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_db

log = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


# --- simple DB ping ---------------------------------------------------------
async def ping_db(db: AsyncSession) -> bool:
    try:
        res = await db.execute(text("SELECT 1"))
        return res.scalar() == 1
    except Exception as e:
        log.warning("DB ping failed: %s", e)
        return False


@router.get("/health", summary="Liveness")
async def health():
    # super cheap liveness (no external deps)
    return {"ok": True}


@router.get("/ready", summary="Readiness")
async def ready(db: AsyncSession = Depends(get_async_db)):
    db_ok = await ping_db(db)
    return JSONResponse(status_code=200 if db_ok else 503, content={"ok": db_ok, "database": db_ok})
