"""
Utilities Package

Common utilities and helper functions for the VAC bot.
"""

from .errors import (
    BotError,
    DatabaseError,
    RegistryError,
    RemoteCallError,
    ServiceError,
)
from .logging import get_logger, setup_logging
from .tasks import spawn
from .types import (
    ChannelDeleted,
    ChannelKind,
    GuildVacState,
    ReconcileSummary,
    RegistryField,
    VoiceStateChanged,
)

__all__ = [
    "BotError",
    "ChannelDeleted",
    "ChannelKind",
    "DatabaseError",
    "GuildVacState",
    "ReconcileSummary",
    "RegistryError",
    "RegistryField",
    "RemoteCallError",
    "ServiceError",
    "VoiceStateChanged",
    "get_logger",
    "setup_logging",
    "spawn",
]
