# app/tests/conftest.py
import os

# Must be set before app.* is imported: settings / engine are module-level.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ.setdefault("FRONTEND_URL", "http://localhost:5173")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.database import get_async_db
from app.db.ensure_schema import ensure_schema
from app.main import app


@pytest.fixture
async def engine():
    """
    Fresh in-memory SQLite per test. StaticPool keeps a single connection,
    otherwise every checkout would see a brand-new empty database.
    """
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    assert await ensure_schema(eng)
    try:
        yield eng
    finally:
        await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def client(session_factory):
    async def _override_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_db] = _override_db
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
