"""
Type definitions and common data structures for the VAC bot.
"""

from dataclasses import dataclass, field
from enum import Enum


class RegistryField(str, Enum):
    """The two per-guild id sets kept by the VAC registry."""

    TRIGGER_CHANNEL_IDS = "trigger_channel_ids"
    AUTO_CREATED_CHANNEL_IDS = "auto_created_channel_ids"


class ChannelKind(str, Enum):
    """Coarse channel classification used by the deletion handler."""

    VOICE = "voice"
    TEXT = "text"
    CATEGORY = "category"
    OTHER = "other"


@dataclass(frozen=True)
class VoiceStateChanged:
    """A member's voice attachment before and after a state change."""

    guild_id: int
    member_id: int
    member_display_name: str
    previous_channel_id: int | None = None
    current_channel_id: int | None = None
    previous_channel_parent_id: int | None = None
    current_channel_parent_id: int | None = None

    @property
    def is_same_channel(self) -> bool:
        return self.previous_channel_id == self.current_channel_id


@dataclass(frozen=True)
class ChannelDeleted:
    """A guild channel was deleted."""

    guild_id: int
    channel_id: int
    channel_kind: ChannelKind


@dataclass
class GuildVacState:
    """Snapshot of one guild's registry entry."""

    guild_id: int
    trigger_channel_ids: list[int] | None = None
    auto_created_channel_ids: list[int] | None = None


@dataclass
class ReconcileSummary:
    """Result of reconciling one guild's registry against live topology."""

    guild_id: int
    stale_triggers: list[int] = field(default_factory=list)
    stale_auto_created: list[int] = field(default_factory=list)
    deleted_empty: list[int] = field(default_factory=list)
    skipped_in_flight: list[int] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.stale_triggers or self.stale_auto_created or self.deleted_empty)
