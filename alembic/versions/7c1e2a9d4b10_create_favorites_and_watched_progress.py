"""create favorites and watched_progress

Revision ID: 7c1e2a9d4b10
Revises:
Create Date: 2025-06-02 18:41:07.112934

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '7c1e2a9d4b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Idempotent: tables may already exist on the hosted DB.
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS favorites (
            imdb_id VARCHAR(32) PRIMARY KEY,
            title VARCHAR(500) NOT NULL,
            poster_url VARCHAR(1000),
            media_type VARCHAR(10) NOT NULL,
            added_date TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
            CONSTRAINT ck_favorites_media_type CHECK (media_type IN ('movie', 'tv'))
        )
        """
    )

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS watched_progress (
            imdb_id VARCHAR(32) PRIMARY KEY,
            media_type VARCHAR(10) NOT NULL,
            title VARCHAR(500),
            poster_url VARCHAR(1000),
            status VARCHAR(32),
            watched_episodes JSONB NOT NULL DEFAULT '{}'::jsonb,
            total_seasons INTEGER,
            episodes_in_season JSONB NOT NULL DEFAULT '{}'::jsonb,
            last_watched_episode JSONB,
            last_interaction_date TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
            CONSTRAINT ck_watched_progress_media_type CHECK (media_type IN ('movie', 'tv'))
        )
        """
    )

    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_watched_progress_last_interaction_date "
        "ON watched_progress (last_interaction_date)"
    )


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS ix_watched_progress_last_interaction_date")
    op.execute("DROP TABLE IF EXISTS watched_progress")
    op.execute("DROP TABLE IF EXISTS favorites")
