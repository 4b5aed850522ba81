"""
Canonical schema definition (version=1).

Schema definitions for the VAC bot's database. This module centralizes
all table creation logic to ensure consistency and avoid duplication.
"""

import aiosqlite

from utils.logging import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = 1


async def init_schema(db: aiosqlite.Connection) -> None:
    """
    Initialize the database schema with all required tables.

    Args:
        db: An open database connection
    """
    await db.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version INTEGER PRIMARY KEY,
            applied_at INTEGER DEFAULT (strftime('%s','now'))
        )
        """
    )

    await db.execute(
        """
        INSERT OR IGNORE INTO schema_migrations (version, applied_at)
        VALUES (?, strftime('%s','now'))
        """,
        (SCHEMA_VERSION,),
    )

    # One row per guild and id set; value is a JSON array of channel ids
    await db.execute(
        """
        CREATE TABLE IF NOT EXISTS vac_registry (
            guild_id INTEGER NOT NULL,
            field TEXT NOT NULL
                CHECK (field IN ('trigger_channel_ids', 'auto_created_channel_ids')),
            value TEXT NOT NULL,
            updated_at INTEGER DEFAULT (strftime('%s','now')),
            PRIMARY KEY (guild_id, field)
        )
        """
    )

    await db.commit()
    logger.debug("Schema initialized (version %s)", SCHEMA_VERSION)
