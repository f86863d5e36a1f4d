# app/db/ensure_schema.py
from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from app.db_models import Base

log = logging.getLogger(__name__)


async def ensure_schema(engine: AsyncEngine) -> bool:
    """Idempotent, non-fatal CREATE TABLE IF NOT EXISTS for favorites / watched_progress.
    Never raises; logs and continues so the app can start even if DB is unavailable.
    Alembic stays the source of truth in prod; this is for fresh/dev/test databases.
    """
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        log.info("ensure_schema: schema verified/updated.")
        return True
    except Exception as e:
        log.error("ensure_schema: failed (continuing startup). err=%s", e)
        return False


async def log_db_time(engine: AsyncEngine) -> None:
    """Startup connectivity check; logs the server clock like a `SELECT NOW()` would."""
    try:
        async with engine.connect() as conn:
            now = (await conn.execute(text("SELECT CURRENT_TIMESTAMP"))).scalar()
        log.info("Successfully connected to database. Server time: %s", now)
    except Exception as e:
        log.error("Error connecting to the database: %s", e)
