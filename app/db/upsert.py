# app/db/upsert.py
from __future__ import annotations

from typing import Any

from sqlalchemy.dialects.postgresql import insert as pg_insert  # PG UPSERT
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession


def dialect_insert(db: AsyncSession, entity: Any):
    """
    INSERT construct with .on_conflict_do_nothing / .on_conflict_do_update
    for whichever backend the session is bound to (Postgres in prod, SQLite in tests).
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert(entity)
    if dialect == "sqlite":
        return sqlite_insert(entity)
    raise RuntimeError(f"ON CONFLICT upsert not supported for dialect {dialect!r}")
