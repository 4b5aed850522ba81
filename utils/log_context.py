"""
Utilities for building structured logging context.

The VAC handlers never format human-readable text. They log a message key
and attach the parameters through ``extra``; the JSON formatter in
``utils.logging`` renders the localized text.
"""

from typing import Any

import discord


def vac_log_extra(
    message_key: str,
    *,
    guild_id: int | None = None,
    channel_id: int | None = None,
    user_id: int | None = None,
    **params: Any,
) -> dict[str, Any]:
    """
    Build a structured logging extra dict for a VAC log event.

    Args:
        message_key: Localization key of the event (e.g. "log.vac.created")
        guild_id: Guild the event belongs to
        channel_id: Channel the event is about
        user_id: Member involved, if any
        **params: Additional named parameters used when rendering the message

    Returns:
        Dict suitable for ``logger.info(..., extra=...)``

    Examples:
        logger.info(
            "log.vac.created",
            extra=vac_log_extra("log.vac.created", guild_id=1, channel_id=2),
        )
    """
    extra: dict[str, Any] = {"message_key": message_key}
    event_params: dict[str, Any] = {}

    if guild_id is not None:
        extra["guild_id"] = str(guild_id)
        event_params["guild"] = guild_id
    if channel_id is not None:
        extra["channel_id"] = str(channel_id)
        event_params["channel"] = channel_id
    if user_id is not None:
        extra["user_id"] = str(user_id)
        event_params["user"] = user_id

    event_params.update(params)
    extra["event_params"] = event_params
    return extra


def get_context_extra(
    guild: discord.Guild | None = None,
    user: discord.User | discord.Member | None = None,
    channel: discord.abc.GuildChannel | None = None,
    **additional: Any,
) -> dict[str, Any]:
    """
    Build a structured logging extra dict from Discord objects.

    Args:
        guild: Guild object
        user: User or Member object
        channel: Channel object
        **additional: Any additional key-value pairs to include

    Returns:
        Dict with guild_id, user_id, channel_id, and any additional fields
    """
    extra: dict[str, Any] = {}

    if guild:
        extra["guild_id"] = str(guild.id)
    if user:
        extra["user_id"] = str(user.id)
    if channel:
        extra["channel_id"] = str(channel.id)

    extra.update(additional)

    return extra
