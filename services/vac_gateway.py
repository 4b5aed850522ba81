"""
Gateway facade for VAC.

The only place allowed to create, delete or move into channels and to query
channel topology. ``VacGateway`` is the contract the VAC service depends on;
``DiscordVacGateway`` implements it on top of a discord.py client.

Every failure surfaces as ``RemoteCallError`` with the discord.py exception
chained. A channel that is already gone counts as successfully deleted.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import discord

from helpers.embeds import create_error_embed
from helpers.messages import format_message
from utils.errors import RemoteCallError
from utils.logging import get_logger

if TYPE_CHECKING:
    from discord.ext.commands import Bot

logger = get_logger(__name__)

# Discord rejects channel names longer than this
MAX_CHANNEL_NAME_LENGTH = 100

AUDIT_REASON_CREATE = "Voice auto creation"
AUDIT_REASON_DELETE = "Voice auto creation: room is empty"
AUDIT_REASON_MOVE = "Voice auto creation: moving member into new room"


class VacGateway(ABC):
    """Remote operations and topology queries used by the VAC handlers."""

    @abstractmethod
    async def create_voice_channel(
        self,
        guild_id: int,
        parent_id: int | None,
        name: str,
        user_limit: int,
    ) -> int:
        """Create a voice channel and return its id."""

    @abstractmethod
    async def delete_channel(self, channel_id: int) -> bool:
        """Delete a channel. Returns True if it is gone afterwards, including when it was already gone."""

    @abstractmethod
    async def move_member(self, guild_id: int, member_id: int, channel_id: int) -> None:
        """Move a member into a voice channel."""

    @abstractmethod
    async def get_channel_occupancy(self, channel_id: int) -> int:
        """Return the live number of members connected to a voice channel (0 if it does not exist)."""

    @abstractmethod
    async def channel_exists(self, channel_id: int) -> bool:
        """Return whether the channel currently exists."""

    @abstractmethod
    async def is_guild_available(self, guild_id: int) -> bool:
        """Return whether the guild's channels can currently be observed."""

    @abstractmethod
    async def post_error(self, channel_id: int | None, message_key: str, **params: Any) -> None:
        """Post a user-facing error into the given channel."""


class DiscordVacGateway(VacGateway):
    """VacGateway backed by a discord.py client and its gateway cache."""

    def __init__(self, bot: "Bot", locale: str | None = None) -> None:
        self.bot = bot
        self.locale = locale

    def _get_guild(self, guild_id: int, operation: str) -> discord.Guild:
        guild = self.bot.get_guild(guild_id)
        if guild is None:
            raise RemoteCallError(operation, f"guild {guild_id} is not available")
        return guild

    async def create_voice_channel(
        self,
        guild_id: int,
        parent_id: int | None,
        name: str,
        user_limit: int,
    ) -> int:
        guild = self._get_guild(guild_id, "create_voice_channel")

        category = guild.get_channel(parent_id) if parent_id is not None else None
        if category is not None and not isinstance(category, discord.CategoryChannel):
            logger.warning(
                f"Parent {parent_id} in guild {guild_id} is not a category; creating at top level"
            )
            category = None

        try:
            channel = await guild.create_voice_channel(
                name=name[:MAX_CHANNEL_NAME_LENGTH],
                category=category,
                user_limit=user_limit,
                reason=AUDIT_REASON_CREATE,
            )
        except discord.Forbidden as e:
            raise RemoteCallError(
                "create_voice_channel", "missing permission to create channels"
            ) from e
        except discord.HTTPException as e:
            raise RemoteCallError("create_voice_channel", str(e)) from e

        logger.debug(
            "Created voice channel",
            extra={"guild_id": str(guild_id), "channel_id": str(channel.id)},
        )
        return channel.id

    async def delete_channel(self, channel_id: int) -> bool:
        channel = self.bot.get_channel(channel_id)
        try:
            if channel is None:
                # Not cached; confirm with the API before declaring it gone
                channel = await self.bot.fetch_channel(channel_id)
            await channel.delete(reason=AUDIT_REASON_DELETE)  # type: ignore[union-attr]
        except discord.NotFound:
            logger.info(f"Channel {channel_id} already deleted")
            return True
        except discord.Forbidden as e:
            raise RemoteCallError(
                "delete_channel", f"missing permission to delete channel {channel_id}"
            ) from e
        except discord.HTTPException as e:
            raise RemoteCallError("delete_channel", str(e)) from e
        return True

    async def move_member(self, guild_id: int, member_id: int, channel_id: int) -> None:
        guild = self._get_guild(guild_id, "move_member")
        channel = guild.get_channel(channel_id)
        if not isinstance(channel, discord.VoiceChannel):
            raise RemoteCallError("move_member", f"channel {channel_id} is not a voice channel")

        try:
            member = guild.get_member(member_id) or await guild.fetch_member(member_id)
            await member.move_to(channel, reason=AUDIT_REASON_MOVE)
        except discord.Forbidden as e:
            raise RemoteCallError("move_member", "missing permission to move members") from e
        except discord.HTTPException as e:
            raise RemoteCallError("move_member", str(e)) from e

    async def get_channel_occupancy(self, channel_id: int) -> int:
        # The gateway cache is updated before voice state events are dispatched
        channel = self.bot.get_channel(channel_id)
        if isinstance(channel, discord.VoiceChannel):
            return len(channel.members)
        return 0

    async def channel_exists(self, channel_id: int) -> bool:
        return self.bot.get_channel(channel_id) is not None

    async def is_guild_available(self, guild_id: int) -> bool:
        guild = self.bot.get_guild(guild_id)
        return guild is not None and not guild.unavailable

    async def post_error(self, channel_id: int | None, message_key: str, **params: Any) -> None:
        if channel_id is None:
            logger.debug(f"No channel to report {message_key} into")
            return
        channel = self.bot.get_channel(channel_id)
        if not isinstance(channel, discord.abc.Messageable):
            logger.warning(f"Channel {channel_id} cannot receive error messages")
            return

        embed = create_error_embed(format_message(message_key, locale=self.locale, **params))
        try:
            await channel.send(embed=embed)
        except discord.HTTPException as e:
            raise RemoteCallError("post_error", str(e)) from e
