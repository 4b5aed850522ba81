"""
Discord Mock Factories

Provides fake classes and spec'd mocks for Discord objects.
Use these to create consistent, configurable test doubles without hitting Discord's API.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import discord

from utils.types import VoiceStateChanged


class FakeGuild:
    """Fake Discord Guild for testing."""

    def __init__(self, guild_id: int = 987654321, name: str = "Test Guild") -> None:
        self.id = guild_id
        self.name = name

    def __repr__(self) -> str:
        return f"<FakeGuild id={self.id} name={self.name!r}>"


class FakeMember:
    """Fake Discord Member carrying only what the VAC cog reads."""

    def __init__(
        self,
        user_id: int = 123456789,
        display_name: str = "TestMember",
        guild: FakeGuild | None = None,
    ) -> None:
        self.id = user_id
        self.display_name = display_name
        self.guild = guild or FakeGuild()

    def __repr__(self) -> str:
        return f"<FakeMember id={self.id} name={self.display_name!r}>"


class FakeVoiceChannel:
    """Fake Discord VoiceChannel for testing."""

    def __init__(
        self,
        channel_id: int = 444555666,
        name: str = "Test Voice",
        category_id: int | None = None,
    ) -> None:
        self.id = channel_id
        self.name = name
        self.category_id = category_id

    def __repr__(self) -> str:
        return f"<FakeVoiceChannel id={self.id} name={self.name!r}>"


class FakeVoiceState:
    """Fake Discord VoiceState for testing."""

    def __init__(self, channel: FakeVoiceChannel | None = None, self_mute: bool = False) -> None:
        self.channel = channel
        self.self_mute = self_mute


def make_voice_channel_mock(
    channel_id: int = 444555666,
    members: int = 0,
    category_id: int | None = None,
    guild_id: int = 987654321,
) -> MagicMock:
    """Create a MagicMock that passes isinstance checks for discord.VoiceChannel."""
    channel = MagicMock(spec=discord.VoiceChannel)
    channel.id = channel_id
    channel.members = [MagicMock() for _ in range(members)]
    channel.category_id = category_id
    channel.guild = MagicMock(id=guild_id)
    channel.delete = AsyncMock()
    return channel


def make_category_mock(category_id: int = 555000111) -> MagicMock:
    """Create a MagicMock that passes isinstance checks for discord.CategoryChannel."""
    category = MagicMock(spec=discord.CategoryChannel)
    category.id = category_id
    return category


def make_text_channel_mock(channel_id: int = 111222333, guild_id: int = 987654321) -> MagicMock:
    """Create a MagicMock that passes isinstance checks for discord.TextChannel."""
    channel = MagicMock(spec=discord.TextChannel)
    channel.id = channel_id
    channel.guild = MagicMock(id=guild_id)
    channel.send = AsyncMock()
    return channel


def make_voice_event(
    previous: int | None = None,
    current: int | None = None,
    *,
    guild_id: int = 1,
    member_id: int = 42,
    display_name: str = "Alice",
    previous_parent: int | None = None,
    current_parent: int | None = None,
    **kwargs: Any,
) -> VoiceStateChanged:
    """Create a VoiceStateChanged event moving a member from previous to current."""
    return VoiceStateChanged(
        guild_id=guild_id,
        member_id=member_id,
        member_display_name=display_name,
        previous_channel_id=previous,
        current_channel_id=current,
        previous_channel_parent_id=previous_parent,
        current_channel_parent_id=current_parent,
        **kwargs,
    )
