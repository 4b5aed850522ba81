"""
VAC Events Cog

Translates discord.py voice and channel events into VAC events and delegates
them to the VacService.
"""

from typing import TYPE_CHECKING

import discord
from discord.ext import commands
from utils.log_context import get_context_extra
from utils.logging import get_logger
from utils.types import ChannelDeleted, ChannelKind, VoiceStateChanged

if TYPE_CHECKING:
    from services.vac_service import VacService

logger = get_logger(__name__)


def channel_kind(channel: object) -> ChannelKind:
    """Classify a discord.py channel; only VoiceChannel counts as VOICE."""
    if isinstance(channel, discord.VoiceChannel):
        return ChannelKind.VOICE
    if isinstance(channel, discord.CategoryChannel):
        return ChannelKind.CATEGORY
    if isinstance(channel, discord.TextChannel):
        return ChannelKind.TEXT
    return ChannelKind.OTHER


def build_voice_state_event(
    member: discord.Member,
    before: discord.VoiceState,
    after: discord.VoiceState,
) -> VoiceStateChanged:
    """Snapshot a voice state update into a VoiceStateChanged event."""
    return VoiceStateChanged(
        guild_id=member.guild.id,
        member_id=member.id,
        member_display_name=member.display_name,
        previous_channel_id=before.channel.id if before.channel else None,
        current_channel_id=after.channel.id if after.channel else None,
        previous_channel_parent_id=before.channel.category_id if before.channel else None,
        current_channel_parent_id=after.channel.category_id if after.channel else None,
    )


class VacEvents(commands.Cog):
    """Handles voice state change and channel deletion events."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    @property
    def vac_service(self) -> "VacService":
        """Get the VAC service from the bot's service container."""
        if not hasattr(self.bot, "services") or self.bot.services is None:
            raise RuntimeError("Bot services not initialized")
        return self.bot.services.vac

    @commands.Cog.listener()
    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        """Create rooms on trigger joins and delete rooms left empty."""
        try:
            await self.vac_service.handle_voice_state_change(
                build_voice_state_event(member, before, after)
            )
        except Exception as e:
            logger.exception(
                f"Error handling voice state update for {member} "
                f"(before: {before.channel}, after: {after.channel}): {e}",
                extra=get_context_extra(member.guild, member, after.channel or before.channel),
            )

    @commands.Cog.listener()
    async def on_guild_channel_delete(self, channel: discord.abc.GuildChannel) -> None:
        """Drop deleted voice channels from the registry."""
        event = ChannelDeleted(
            guild_id=channel.guild.id,
            channel_id=channel.id,
            channel_kind=channel_kind(channel),
        )
        try:
            await self.vac_service.handle_channel_deleted(event)
        except Exception as e:
            logger.exception(
                "Error handling channel deletion for %s",
                channel,
                exc_info=e,
                extra=get_context_extra(channel.guild, channel=channel),
            )


async def setup(bot: commands.Bot) -> None:
    """Set up the VAC Events cog."""
    await bot.add_cog(VacEvents(bot))
