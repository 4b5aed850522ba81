"""
VAC registry: durable per-guild store of trigger and auto-created channel ids.

Each guild has up to two rows in ``vac_registry``, one per RegistryField,
holding a JSON array of channel ids in insertion order. A missing row means
"not configured yet" and reads as ``None``.

All mutations are read-modify-write sequences guarded twice: a per
(guild, field) asyncio.Lock serializes callers inside this process, and a
BEGIN IMMEDIATE transaction serializes writers across processes sharing the
database file.
"""

import asyncio
import sqlite3
import time
from collections.abc import Callable
from contextlib import AsyncExitStack
from typing import Any

from services.db.database import Database
from services.db.repository import RegistryRepository
from utils.errors import RegistryError
from utils.types import GuildVacState, RegistryField

from .base import BaseService

Mutator = Callable[[list[int] | None], list[int] | None]

# Unlocked per-(guild, field) locks idle this long are dropped
LOCK_IDLE_SECONDS = 300


def _dedupe(ids: list[int]) -> list[int]:
    seen: set[int] = set()
    result: list[int] = []
    for channel_id in ids:
        channel_id = int(channel_id)
        if channel_id not in seen:
            seen.add(channel_id)
            result.append(channel_id)
    return result


class VacRegistry(BaseService):
    """Data access for the per-guild VAC id sets. No policy lives here."""

    def __init__(self, db_path: str | None = None) -> None:
        super().__init__("vac_registry")
        self._db_path = db_path
        self._locks: dict[tuple[int, RegistryField], asyncio.Lock] = {}
        self._lock_last_used: dict[tuple[int, RegistryField], float] = {}
        self._last_lock_sweep = time.monotonic()

    async def _initialize_impl(self) -> None:
        await Database.initialize(self._db_path)

    def _lock_for(self, guild_id: int, field: RegistryField) -> asyncio.Lock:
        now = time.monotonic()
        if now - self._last_lock_sweep >= LOCK_IDLE_SECONDS:
            self._cleanup_stale_locks(now)
        key = (guild_id, field)
        self._lock_last_used[key] = now
        return self._locks.setdefault(key, asyncio.Lock())

    def _cleanup_stale_locks(self, now: float | None = None) -> int:
        """Remove lock objects that are unlocked and have not been used recently."""
        now = time.monotonic() if now is None else now
        cutoff = now - LOCK_IDLE_SECONDS
        removed = 0
        for key in list(self._lock_last_used):
            if self._lock_last_used[key] >= cutoff:
                continue
            lock = self._locks.get(key)
            if lock and lock.locked():
                continue
            self._locks.pop(key, None)
            self._lock_last_used.pop(key, None)
            removed += 1
        self._last_lock_sweep = now
        return removed

    # -------------------------------------------------------------------------
    # Store contract
    # -------------------------------------------------------------------------

    async def get(self, guild_id: int, field: RegistryField) -> list[int] | None:
        """
        Read one id set for a guild.

        Returns:
            The ordered ids, or None if the guild never stored this field
        """
        self._ensure_initialized()
        try:
            return await RegistryRepository.get_ids(guild_id, field)
        except sqlite3.Error as e:
            raise RegistryError(
                f"Failed to read {field.value} for guild {guild_id}"
            ) from e

    async def set(self, guild_id: int, field: RegistryField, ids: list[int]) -> None:
        """Overwrite one id set for a guild. Duplicates are dropped, order is kept."""
        self._ensure_initialized()
        async with self._lock_for(guild_id, field):
            try:
                await RegistryRepository.put_ids(guild_id, field, _dedupe(ids))
            except sqlite3.Error as e:
                raise RegistryError(
                    f"Failed to write {field.value} for guild {guild_id}"
                ) from e
        self.logger.debug(f"Set guild {guild_id} {field.value} = {ids}")

    async def update(
        self, guild_id: int, field: RegistryField, mutator: Mutator
    ) -> list[int] | None:
        """
        Atomically read, transform and write back one id set.

        The mutator receives the current ids (a fresh list, or None when the
        field is absent) and returns the new ids, or None to leave the stored
        value untouched.

        Returns:
            The value stored after the update (None if the field is still absent)
        """
        self._ensure_initialized()
        async with self._lock_for(guild_id, field):
            try:
                async with RegistryRepository.immediate_transaction() as db:
                    return await self._update_in_tx(db, guild_id, field, mutator)
            except sqlite3.Error as e:
                raise RegistryError(
                    f"Failed to update {field.value} for guild {guild_id}"
                ) from e

    async def _update_in_tx(
        self, db: Any, guild_id: int, field: RegistryField, mutator: Mutator
    ) -> list[int] | None:
        current = await RegistryRepository.read_ids(db, guild_id, field)
        new_ids = mutator(None if current is None else list(current))
        if new_ids is None:
            return current
        new_ids = _dedupe(new_ids)
        if new_ids == current:
            return current
        await RegistryRepository.write_ids(db, guild_id, field, new_ids)
        return new_ids

    async def append(self, guild_id: int, field: RegistryField, channel_id: int) -> bool:
        """
        Append a channel id to a set, creating the set if absent.

        Returns:
            True if the id was added, False if it was already present
        """
        added = False

        def _append(ids: list[int] | None) -> list[int] | None:
            nonlocal added
            ids = ids or []
            if channel_id in ids:
                return None
            added = True
            return [*ids, channel_id]

        await self.update(guild_id, field, _append)
        return added

    async def remove(self, guild_id: int, field: RegistryField, channel_id: int) -> bool:
        """
        Remove a channel id from a set.

        Returns:
            True if the id was present and removed, False otherwise
        """
        removed = False

        def _remove(ids: list[int] | None) -> list[int] | None:
            nonlocal removed
            if not ids or channel_id not in ids:
                return None
            removed = True
            return [c for c in ids if c != channel_id]

        await self.update(guild_id, field, _remove)
        return removed

    async def get_state(self, guild_id: int) -> GuildVacState | None:
        """Return both id sets for a guild, or None if nothing is stored."""
        triggers = await self.get(guild_id, RegistryField.TRIGGER_CHANNEL_IDS)
        auto_created = await self.get(guild_id, RegistryField.AUTO_CREATED_CHANNEL_IDS)
        if triggers is None and auto_created is None:
            return None
        return GuildVacState(
            guild_id=guild_id,
            trigger_channel_ids=triggers,
            auto_created_channel_ids=auto_created,
        )

    async def list_guilds(self) -> list[int]:
        """Return every guild id that has a registry entry."""
        self._ensure_initialized()
        try:
            return await RegistryRepository.guild_ids()
        except sqlite3.Error as e:
            raise RegistryError("Failed to list registry guilds") from e

    # -------------------------------------------------------------------------
    # Operator configuration
    # -------------------------------------------------------------------------

    async def add_trigger_channel(self, guild_id: int, channel_id: int) -> bool:
        """
        Register a voice channel as a trigger.

        Raises:
            ValueError: If the channel is one of this guild's auto-created rooms

        Returns:
            True if newly registered, False if it already was a trigger
        """
        self._ensure_initialized()
        trigger = RegistryField.TRIGGER_CHANNEL_IDS
        auto = RegistryField.AUTO_CREATED_CHANNEL_IDS

        # Fixed lock order (trigger, then auto-created) so this cannot deadlock
        # against single-field updates.
        async with AsyncExitStack() as stack:
            await stack.enter_async_context(self._lock_for(guild_id, trigger))
            await stack.enter_async_context(self._lock_for(guild_id, auto))
            try:
                async with RegistryRepository.immediate_transaction() as db:
                    auto_ids = await RegistryRepository.read_ids(db, guild_id, auto) or []
                    if channel_id in auto_ids:
                        raise ValueError(
                            f"Channel {channel_id} is an auto-created room and cannot be a trigger"
                        )

                    triggers = await RegistryRepository.read_ids(db, guild_id, trigger) or []
                    if channel_id in triggers:
                        return False
                    await self._update_in_tx(
                        db, guild_id, trigger, lambda ids: [*(ids or []), channel_id]
                    )
            except sqlite3.Error as e:
                raise RegistryError(
                    f"Failed to add trigger {channel_id} for guild {guild_id}"
                ) from e

        self.logger.info(f"Added trigger channel {channel_id} to guild {guild_id}")
        return True

    async def remove_trigger_channel(self, guild_id: int, channel_id: int) -> bool:
        """Unregister a trigger channel. Returns True if it was registered."""
        removed = await self.remove(guild_id, RegistryField.TRIGGER_CHANNEL_IDS, channel_id)
        if removed:
            self.logger.info(f"Removed trigger channel {channel_id} from guild {guild_id}")
        return removed

    async def health_check(self) -> dict[str, Any]:
        base_health = await super().health_check()
        return {
            **base_health,
            "db_path": Database.get_path(),
            "tracked_locks": len(self._locks),
        }
