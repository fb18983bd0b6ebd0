"""Database migrations, tracked with SQLite's user_version."""

import logging
from pathlib import Path

import aiosqlite

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "schema.sql"

# Bump when schema.sql changes in a way CREATE ... IF NOT EXISTS can't apply
SCHEMA_VERSION = 1


async def get_schema_version(db: aiosqlite.Connection) -> int:
    async with db.execute("PRAGMA user_version") as cursor:
        row = await cursor.fetchone()
        return row[0] if row else 0


async def run_migrations(db_path: Path | str) -> int:
    """Bring the database at ``db_path`` up to the current schema.

    Returns:
        Schema version the database was at before migrating
    """
    async with aiosqlite.connect(db_path) as db:
        version = await get_schema_version(db)
        if version > SCHEMA_VERSION:
            raise RuntimeError(
                f"Database schema v{version} is newer than this release (v{SCHEMA_VERSION})"
            )

        await db.executescript(SCHEMA_PATH.read_text())
        await db.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        await db.commit()

    if version < SCHEMA_VERSION:
        logger.info(f"Database at {db_path} migrated v{version} -> v{SCHEMA_VERSION}")
    return version
