"""
Embed Helper Module

Embeds posted by the bot into a channel's text chat. The bot has no
commands, so the only embed it sends is the room-creation error notice.
"""

import discord

ERROR_COLOR = 0xFF0000
ERROR_TITLE = "❌ Voice Auto Creation"
# Discord rejects embed descriptions longer than this
MAX_DESCRIPTION_LENGTH = 4096


def create_error_embed(message: str, title: str = ERROR_TITLE) -> discord.Embed:
    """
    Build the red error embed shown when a room could not be created.

    Args:
        message (str): Already-localized text for the embed body.
        title (str, optional): Embed title. Defaults to ERROR_TITLE.

    Returns:
        discord.Embed: The error embed.
    """
    if len(message) > MAX_DESCRIPTION_LENGTH:
        message = message[: MAX_DESCRIPTION_LENGTH - 1] + "…"
    return discord.Embed(title=title, description=message, color=ERROR_COLOR)
