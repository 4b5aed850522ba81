"""
Test Factories Module

Centralized factory functions and fakes for creating test objects.
Provides DRY utilities for Discord mocks, the channel gateway and config fixtures.
"""

from .config_factories import (
    make_config,
    make_config_loader,
    temp_config_file,
)
from .discord_factories import (
    FakeGuild,
    FakeMember,
    FakeVoiceChannel,
    FakeVoiceState,
    make_category_mock,
    make_text_channel_mock,
    make_voice_channel_mock,
    make_voice_event,
)
from .gateway_factories import FakeVacGateway

__all__ = [
    "FakeGuild",
    "FakeMember",
    "FakeVacGateway",
    "FakeVoiceChannel",
    "FakeVoiceState",
    "make_category_mock",
    "make_config",
    "make_config_loader",
    "make_text_channel_mock",
    "make_voice_channel_mock",
    "make_voice_event",
    "temp_config_file",
]
