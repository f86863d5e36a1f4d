# alembic/env.py
from __future__ import annotations

import logging
import os, sys
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool
from sqlalchemy.engine import make_url

# --- Make sure we can import the app, and load .env ---
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))   # .../alembic
PROJECT_PARENT = os.path.dirname(PROJECT_ROOT)              # project root
if PROJECT_PARENT not in sys.path:
    sys.path.insert(0, PROJECT_PARENT)

from dotenv import load_dotenv  # noqa: E402

# IMPORTANT: do NOT override shell env vars
load_dotenv(override=False)

from app.core.settings import settings  # noqa: E402
from app.db_models import Base          # noqa: E402

target_metadata = Base.metadata
config = context.config

# ----------------------------
# Logging
# ----------------------------

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

log = logging.getLogger("alembic.env")


# ----------------------------
# URL normalization helpers
# ----------------------------

def _to_sync_psycopg(url: str) -> str:
    """Normalize to sync psycopg v3 URL for Alembic."""
    u = (url or "").strip()
    if not u:
        return u

    # Accept postgres:// shorthand
    if u.startswith("postgres://"):
        u = "postgresql://" + u[len("postgres://"):]

    # Ensure psycopg v3 driver
    if u.startswith("postgresql://"):
        u = "postgresql+psycopg://" + u[len("postgresql://"):]

    # Convert async -> sync
    u = u.replace("postgresql+asyncpg://", "postgresql+psycopg://")
    u = u.replace("+asyncpg", "+psycopg")

    return u


def _choose_sync_url() -> str:
    """
    Priority:
    1) ALEMBIC_SYNC_URL
    2) DATABASE_URL
    3) settings.database_url
    """
    for key in ("ALEMBIC_SYNC_URL", "DATABASE_URL"):
        v = os.getenv(key)
        if v:
            log.info("ALEMBIC picked env var %s", key)
            return _to_sync_psycopg(v)

    if getattr(settings, "database_url", None):
        log.info("ALEMBIC fell back to settings.database_url")
        return _to_sync_psycopg(settings.database_url)

    return ""


# ----------------------------
# Final URL selection
# ----------------------------

url_sync = _choose_sync_url()

if not url_sync:
    raise RuntimeError(
        "No DB URL found for Alembic. "
        "Set ALEMBIC_SYNC_URL (recommended) or DATABASE_URL."
    )

# '%' must be escaped for configparser interpolation
config.set_main_option("sqlalchemy.url", url_sync.replace("%", "%%"))

log.info("ALEMBIC using database URL: %s", make_url(url_sync).render_as_string(hide_password=True))


# ----------------------------
# Migration runners
# ----------------------------

def run_migrations_offline() -> None:
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connect_args = {"sslmode": "require"} if settings.database_ssl else {}
    connectable = create_engine(
        config.get_main_option("sqlalchemy.url"),
        poolclass=pool.NullPool,
        connect_args=connect_args,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
