# app/database.py
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

# ✅ add these for correct typing of generator dependencies
from collections.abc import AsyncGenerator

from app.core.settings import settings


def _normalise_url(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return value.strip().strip('"').strip("'")


def _to_async_driver(url: str) -> str:
    """
    Ensure the SQLAlchemy URL uses the async driver.
    - postgres://            -> postgresql+asyncpg://
    - postgresql+psycopg://  -> postgresql+asyncpg://
    - postgresql://          -> postgresql+asyncpg://
    - postgresql+asyncpg://  -> (as is)
    """
    if url.startswith("postgresql+asyncpg://"):
        return url
    if url.startswith("postgres://"):
        return "postgresql+asyncpg://" + url[len("postgres://"):]
    if url.startswith("postgresql+psycopg://"):
        return "postgresql+asyncpg://" + url.split("postgresql+psycopg://", 1)[1]
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url.split("postgresql://", 1)[1]
    # Fallback: do nothing (sqlite+aiosqlite:// etc.)
    return url


def build_engine(url: Optional[str] = None, *, ssl: bool = False) -> AsyncEngine:
    dsn = _normalise_url(url or settings.database_url)
    if not dsn:
        raise RuntimeError("DATABASE_URL not set (use postgresql+asyncpg://...)")
    dsn = _to_async_driver(dsn)

    connect_args: Dict[str, Any] = {}
    if ssl and dsn.startswith("postgresql+asyncpg://"):
        # Hosted Postgres with a self-signed chain; same as rejectUnauthorized=false
        connect_args["ssl"] = "require"

    return create_async_engine(dsn, future=True, pool_pre_ping=True, connect_args=connect_args)


# --- One engine / pool per process
async_engine = build_engine(settings.database_url, ssl=settings.database_ssl)
AsyncSessionLocal: async_sessionmaker[AsyncSession] = async_sessionmaker(
    bind=async_engine, expire_on_commit=False, autoflush=False
)


# FastAPI dependency
async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session
