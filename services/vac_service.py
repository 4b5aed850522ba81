"""
Voice auto creation (VAC) service.

Maps voice-state and channel-deletion notifications onto create/delete
actions and keeps the VAC registry in step with the guild's real channels.
"""

import asyncio
import logging
from typing import Any

from helpers.messages import (
    BOT_VAC_ERROR,
    LOG_VAC_AUTO_CREATED_DELETED,
    LOG_VAC_CREATED,
    LOG_VAC_DELETED,
    LOG_VAC_DEREGISTER_MISMATCH,
    LOG_VAC_ERROR,
    LOG_VAC_RECONCILED,
    LOG_VAC_TRIGGER_DELETED,
)
from utils.log_context import vac_log_extra
from utils.types import (
    ChannelDeleted,
    ChannelKind,
    ReconcileSummary,
    RegistryField,
    VoiceStateChanged,
)

from .base import BaseService
from .config_service import ConfigService
from .vac_gateway import VacGateway
from .vac_registry import VacRegistry

TRIGGERS = RegistryField.TRIGGER_CHANNEL_IDS
AUTO_CREATED = RegistryField.AUTO_CREATED_CHANNEL_IDS


def describe_error(error: BaseException) -> str:
    """Short, user-presentable description of an exception."""
    return str(error) or type(error).__name__ or "unknown error"


class VacService(BaseService):
    """
    Service driving voice auto creation.

    Joining a trigger channel creates a room for the member, registers it as
    auto-created and moves the member in. Leaving an auto-created room that
    is then empty deletes and deregisters it. Deleting a trigger or a room
    through any other path removes it from the registry.
    """

    def __init__(
        self,
        config_service: ConfigService,
        registry: VacRegistry,
        gateway: VacGateway,
    ) -> None:
        super().__init__("vac")
        self.config_service = config_service
        self.registry = registry
        self.gateway = gateway
        self.room_name_template = "{display_name}'s Room"
        self.room_user_limit = 99

        # Absorbs duplicate deliveries of the same join or leave while the
        # first one is still in flight
        self._members_creating: set[tuple[int, int]] = set()
        self._channels_deleting: set[int] = set()
        # Rooms registered but not yet occupied by the member they were made for
        self._rooms_pending_move: set[int] = set()
        self._reconcile_task: asyncio.Task | None = None

    async def _initialize_impl(self) -> None:
        await self.registry.initialize()
        self.room_name_template = await self.config_service.get_room_name_template()
        self.room_user_limit = await self.config_service.get_room_user_limit()

    def _log_event(
        self,
        level: int,
        message_key: str,
        *,
        exc_info: BaseException | None = None,
        **context: Any,
    ) -> None:
        self.logger.log(
            level, message_key, exc_info=exc_info, extra=vac_log_extra(message_key, **context)
        )

    def build_room_name(self, display_name: str) -> str:
        return self.room_name_template.replace("{display_name}", display_name)

    # -------------------------------------------------------------------------
    # Membership events
    # -------------------------------------------------------------------------

    async def handle_voice_state_change(self, event: VoiceStateChanged) -> None:
        """
        Handle a member's voice state change.

        Creation is considered first, then whether the channel the member
        left is now an empty room. A creation failure is reported to the
        member and logged; a deletion failure is only logged. Neither stops
        the other step from running.
        """
        self._ensure_initialized()

        try:
            await self._create_room_if_triggered(event)
        except Exception as e:
            await self._report_creation_failure(event, e)

        try:
            await self._delete_room_if_empty(event)
        except Exception as e:
            self._log_event(
                logging.ERROR,
                LOG_VAC_ERROR,
                exc_info=e,
                guild_id=event.guild_id,
                channel_id=event.previous_channel_id,
                error=describe_error(e),
            )

    async def _create_room_if_triggered(self, event: VoiceStateChanged) -> int | None:
        triggers = await self.registry.get(event.guild_id, TRIGGERS)
        if triggers is None:
            return None
        if event.current_channel_id is None or event.current_channel_id not in triggers:
            return None
        if event.is_same_channel:
            # Mute/deafen/stream toggles inside the trigger are not joins
            return None

        key = (event.guild_id, event.member_id)
        if key in self._members_creating:
            self.logger.debug(
                f"Room creation already in progress for member {event.member_id} "
                f"in guild {event.guild_id}; ignoring duplicate event"
            )
            return None

        self._members_creating.add(key)
        channel_id = None
        try:
            channel_id = await self.gateway.create_voice_channel(
                event.guild_id,
                event.current_channel_parent_id,
                self.build_room_name(event.member_display_name),
                self.room_user_limit,
            )
            self._rooms_pending_move.add(channel_id)
            # Registered as owned before anyone can occupy it
            await self.registry.append(event.guild_id, AUTO_CREATED, channel_id)
            self._log_event(
                logging.INFO,
                LOG_VAC_CREATED,
                guild_id=event.guild_id,
                channel_id=channel_id,
                user_id=event.member_id,
            )
            await self.gateway.move_member(event.guild_id, event.member_id, channel_id)
            return channel_id
        finally:
            self._members_creating.discard(key)
            if channel_id is not None:
                self._rooms_pending_move.discard(channel_id)

    async def _report_creation_failure(
        self, event: VoiceStateChanged, error: Exception
    ) -> None:
        error_desc = describe_error(error)
        self._log_event(
            logging.ERROR,
            LOG_VAC_ERROR,
            exc_info=error,
            guild_id=event.guild_id,
            channel_id=event.current_channel_id,
            user_id=event.member_id,
            error=error_desc,
        )
        try:
            await self.gateway.post_error(
                event.current_channel_id, BOT_VAC_ERROR, error=error_desc
            )
        except Exception as e:
            self.logger.warning(
                f"Failed to post room creation error in channel {event.current_channel_id}: {e}",
                extra={"guild_id": str(event.guild_id)},
            )

    async def _delete_room_if_empty(self, event: VoiceStateChanged) -> bool:
        auto_created = await self.registry.get(event.guild_id, AUTO_CREATED)
        if auto_created is None:
            return False
        channel_id = event.previous_channel_id
        if channel_id is None or channel_id not in auto_created:
            return False

        # Re-read right before deleting; the event may be stale
        occupancy = await self.gateway.get_channel_occupancy(channel_id)
        if occupancy:
            self.logger.debug(
                f"Room {channel_id} still has {occupancy} member(s); keeping it"
            )
            return False

        if channel_id in self._channels_deleting:
            self.logger.debug(f"Room {channel_id} is already being deleted")
            return False

        self._channels_deleting.add(channel_id)
        try:
            return await self._delete_and_deregister(event.guild_id, channel_id)
        finally:
            self._channels_deleting.discard(channel_id)

    async def _delete_and_deregister(self, guild_id: int, channel_id: int) -> bool:
        """
        Delete a room and drop it from the registry.

        Both halves are attempted even if the other fails; a mismatch is
        logged so a later ChannelDeleted event or reconciliation can settle it.

        Returns:
            True if the room is both deleted and deregistered
        """
        deleted = False
        deregistered = False

        try:
            deleted = await self.gateway.delete_channel(channel_id)
        except Exception as e:
            self._log_event(
                logging.ERROR,
                LOG_VAC_ERROR,
                exc_info=e,
                guild_id=guild_id,
                channel_id=channel_id,
                error=describe_error(e),
            )

        try:
            await self.registry.remove(guild_id, AUTO_CREATED, channel_id)
            deregistered = True
        except Exception as e:
            self._log_event(
                logging.ERROR,
                LOG_VAC_ERROR,
                exc_info=e,
                guild_id=guild_id,
                channel_id=channel_id,
                error=describe_error(e),
            )

        if deleted and deregistered:
            self._log_event(
                logging.INFO, LOG_VAC_DELETED, guild_id=guild_id, channel_id=channel_id
            )
            return True

        self._log_event(
            logging.WARNING,
            LOG_VAC_DEREGISTER_MISMATCH,
            guild_id=guild_id,
            channel_id=channel_id,
            deleted=deleted,
            deregistered=deregistered,
        )
        return False

    # -------------------------------------------------------------------------
    # Channel deletion events
    # -------------------------------------------------------------------------

    async def handle_channel_deleted(self, event: ChannelDeleted) -> None:
        """
        Reconcile the registry after a channel was deleted on the platform.

        Both id sets are checked independently. Failures are logged only;
        nobody is waiting on this event.
        """
        self._ensure_initialized()

        if event.channel_kind is not ChannelKind.VOICE:
            return

        for field, message_key in (
            (TRIGGERS, LOG_VAC_TRIGGER_DELETED),
            (AUTO_CREATED, LOG_VAC_AUTO_CREATED_DELETED),
        ):
            try:
                removed = await self.registry.remove(event.guild_id, field, event.channel_id)
            except Exception as e:
                self._log_event(
                    logging.ERROR,
                    LOG_VAC_ERROR,
                    exc_info=e,
                    guild_id=event.guild_id,
                    channel_id=event.channel_id,
                    error=describe_error(e),
                )
                continue
            if removed:
                self._log_event(
                    logging.INFO,
                    message_key,
                    guild_id=event.guild_id,
                    channel_id=event.channel_id,
                )

    # -------------------------------------------------------------------------
    # Startup reconciliation
    # -------------------------------------------------------------------------

    async def reconcile_guild(self, guild_id: int) -> ReconcileSummary:
        """
        Bring one guild's registry in line with its live channels.

        Ids whose channels no longer exist are dropped and empty rooms are
        deleted. Guilds the gateway cannot currently see are skipped, since
        every channel would look missing.
        """
        self._ensure_initialized()
        summary = ReconcileSummary(guild_id=guild_id)

        if not await self.gateway.is_guild_available(guild_id):
            self.logger.info(f"Guild {guild_id} unavailable; skipping reconciliation")
            return summary

        state = await self.registry.get_state(guild_id)
        if state is None:
            return summary

        for channel_id in state.trigger_channel_ids or []:
            if not await self.gateway.channel_exists(channel_id):
                await self.registry.remove(guild_id, TRIGGERS, channel_id)
                summary.stale_triggers.append(channel_id)

        for channel_id in state.auto_created_channel_ids or []:
            if (
                channel_id in self._rooms_pending_move
                or channel_id in self._channels_deleting
            ):
                # Owned by an in-flight creation or deletion
                summary.skipped_in_flight.append(channel_id)
                continue
            if not await self.gateway.channel_exists(channel_id):
                await self.registry.remove(guild_id, AUTO_CREATED, channel_id)
                summary.stale_auto_created.append(channel_id)
            elif await self.gateway.get_channel_occupancy(channel_id) == 0:
                self._channels_deleting.add(channel_id)
                try:
                    if await self._delete_and_deregister(guild_id, channel_id):
                        summary.deleted_empty.append(channel_id)
                finally:
                    self._channels_deleting.discard(channel_id)

        if summary.changed:
            self._log_event(
                logging.INFO,
                LOG_VAC_RECONCILED,
                guild_id=guild_id,
                stale_triggers=len(summary.stale_triggers),
                stale_auto_created=len(summary.stale_auto_created),
                deleted_empty=len(summary.deleted_empty),
            )
        return summary

    async def reconcile_all_guilds(self) -> list[ReconcileSummary]:
        """Reconcile every guild that has registry data; one failure does not stop the rest."""
        summaries: list[ReconcileSummary] = []
        for guild_id in await self.registry.list_guilds():
            try:
                summaries.append(await self.reconcile_guild(guild_id))
            except Exception as e:
                self._log_event(
                    logging.ERROR,
                    LOG_VAC_ERROR,
                    exc_info=e,
                    guild_id=guild_id,
                    error=describe_error(e),
                )
        return summaries

    async def schedule_reconcile(self) -> None:
        """Run reconciliation in the background if enabled in config."""
        self._ensure_initialized()
        if not await self.config_service.get_reconcile_on_ready():
            self.logger.info("Startup reconciliation disabled")
            return
        if self._reconcile_task is not None and not self._reconcile_task.done():
            self.logger.debug("Reconciliation already running; not scheduling another")
            return
        self._reconcile_task = self._spawn_background_task(
            self.reconcile_all_guilds(), name="reconcile_on_ready"
        )

    async def health_check(self) -> dict[str, Any]:
        base_health = await super().health_check()
        return {
            **base_health,
            "members_creating": len(self._members_creating),
            "channels_deleting": len(self._channels_deleting),
            "rooms_pending_move": len(self._rooms_pending_move),
            "room_user_limit": self.room_user_limit,
        }
