"""
Repository layer for the VAC registry table.

``BaseRepository`` wraps connection handling; ``RegistryRepository`` owns
every statement that touches ``vac_registry`` so the service layer never
builds SQL itself.

Usage:
    async with RegistryRepository.immediate_transaction() as db:
        ids = await RegistryRepository.read_ids(db, guild_id, field)
        await RegistryRepository.write_ids(db, guild_id, field, [*ids, new_id])
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from utils.types import RegistryField

from .database import Database

if TYPE_CHECKING:
    import aiosqlite
    from aiosqlite import Row


class BaseRepository:
    """Connection handling shared by repositories."""

    @staticmethod
    @asynccontextmanager
    async def immediate_transaction():
        """
        Open a write-locked transaction.

        BEGIN IMMEDIATE takes the write lock before the first read, so a
        read-modify-write inside the block is atomic across connections and
        processes. Commits on success, rolls back on any exception.
        """
        async with Database.get_connection() as db:
            await db.execute("BEGIN IMMEDIATE")
            try:
                yield db
                await db.commit()
            except BaseException:
                await db.rollback()
                raise

    @staticmethod
    async def fetch_one(query: str, params: tuple[Any, ...] = ()) -> Row | None:
        async with Database.get_connection() as db:
            cursor = await db.execute(query, params)
            return await cursor.fetchone()

    @staticmethod
    async def fetch_all(query: str, params: tuple[Any, ...] = ()) -> list[Row]:
        async with Database.get_connection() as db:
            cursor = await db.execute(query, params)
            return list(await cursor.fetchall())

    @staticmethod
    async def execute(query: str, params: tuple[Any, ...] = ()) -> int:
        """Run a single write statement. Returns the affected row count."""
        async with Database.get_connection() as db:
            cursor = await db.execute(query, params)
            await db.commit()
            return cursor.rowcount


_SELECT_IDS = "SELECT value FROM vac_registry WHERE guild_id = ? AND field = ?"

_UPSERT_IDS = """
    INSERT INTO vac_registry (guild_id, field, value, updated_at)
    VALUES (?, ?, ?, strftime('%s','now'))
    ON CONFLICT(guild_id, field) DO UPDATE SET
        value = excluded.value,
        updated_at = excluded.updated_at
"""


class RegistryRepository(BaseRepository):
    """Reads and writes the per-guild channel id arrays."""

    @staticmethod
    def _decode(row: Row | None) -> list[int] | None:
        if row is None:
            return None
        return [int(channel_id) for channel_id in parse_json_list(row[0])]

    @classmethod
    async def get_ids(cls, guild_id: int, field: RegistryField) -> list[int] | None:
        """Read one id array on its own connection. None if never stored."""
        return cls._decode(await cls.fetch_one(_SELECT_IDS, (guild_id, field.value)))

    @classmethod
    async def put_ids(cls, guild_id: int, field: RegistryField, ids: list[int]) -> None:
        await cls.execute(_UPSERT_IDS, (guild_id, field.value, encode_json(ids)))

    @classmethod
    async def read_ids(
        cls, db: aiosqlite.Connection, guild_id: int, field: RegistryField
    ) -> list[int] | None:
        """Read one id array inside an open transaction."""
        cursor = await db.execute(_SELECT_IDS, (guild_id, field.value))
        return cls._decode(await cursor.fetchone())

    @staticmethod
    async def write_ids(
        db: aiosqlite.Connection, guild_id: int, field: RegistryField, ids: list[int]
    ) -> None:
        """Upsert one id array inside an open transaction."""
        await db.execute(_UPSERT_IDS, (guild_id, field.value, encode_json(ids)))

    @classmethod
    async def guild_ids(cls) -> list[int]:
        rows = await cls.fetch_all(
            "SELECT DISTINCT guild_id FROM vac_registry ORDER BY guild_id"
        )
        return [int(row[0]) for row in rows]


# -----------------------------------------------------------------------------
# JSON helpers
# -----------------------------------------------------------------------------


def parse_json_list(value: str | None, default: list | None = None) -> list:
    """Parse a JSON array, falling back to ``default`` (empty list) on bad input."""
    if default is None:
        default = []
    if not value:
        return default
    try:
        result = json.loads(value)
    except (json.JSONDecodeError, TypeError):
        return default
    return result if isinstance(result, list) else default


def encode_json(value: Any) -> str:
    return json.dumps(value)


__all__ = [
    "BaseRepository",
    "RegistryRepository",
    "encode_json",
    "parse_json_list",
]
