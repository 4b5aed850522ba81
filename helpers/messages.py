"""
Localized message catalog for VAC user-facing errors and log events.

Handlers emit a message key plus named parameters; this module is the only
place that turns them into human-readable text.

Format: user-facing messages are emoji + **Bold Title** + newline + body.
"""

from typing import Any

from config.config_loader import ConfigLoader
from utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_LOCALE = "ja"

# User-facing
BOT_VAC_ERROR = "bot.vac.error"

# Log events
LOG_VAC_CREATED = "log.vac.created"
LOG_VAC_DELETED = "log.vac.deleted"
LOG_VAC_TRIGGER_DELETED = "log.vac.trigger_deleted"
LOG_VAC_AUTO_CREATED_DELETED = "log.vac.auto_created_deleted"
LOG_VAC_ERROR = "log.vac.error"
LOG_VAC_DEREGISTER_MISMATCH = "log.vac.deregister_mismatch"
LOG_VAC_RECONCILED = "log.vac.reconciled"

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        BOT_VAC_ERROR: "❌ **Could not create your room**\n{error}",
        LOG_VAC_CREATED: "Created auto voice channel {channel} in guild {guild}",
        LOG_VAC_DELETED: "Deleted empty auto voice channel {channel} in guild {guild}",
        LOG_VAC_TRIGGER_DELETED: "Trigger channel {channel} was deleted; removed from guild {guild}",
        LOG_VAC_AUTO_CREATED_DELETED: "Auto voice channel {channel} was deleted; removed from guild {guild}",
        LOG_VAC_ERROR: "Voice auto creation failed in guild {guild}: {error}",
        LOG_VAC_DEREGISTER_MISMATCH: (
            "Channel {channel} in guild {guild} is out of sync with the registry "
            "(deleted={deleted}, deregistered={deregistered})"
        ),
        LOG_VAC_RECONCILED: (
            "Reconciled guild {guild}: {stale_triggers} stale triggers, "
            "{stale_auto_created} stale rooms, {deleted_empty} empty rooms deleted"
        ),
    },
    "ja": {
        BOT_VAC_ERROR: "❌ **ボイスチャンネルを作成できませんでした**\n{error}",
        LOG_VAC_CREATED: "サーバー {guild} にボイスチャンネル {channel} を自動作成しました",
        LOG_VAC_DELETED: "サーバー {guild} の空になったボイスチャンネル {channel} を削除しました",
        LOG_VAC_TRIGGER_DELETED: "サーバー {guild} のトリガーチャンネル {channel} が削除されたため登録を解除しました",
        LOG_VAC_AUTO_CREATED_DELETED: "サーバー {guild} の自動作成チャンネル {channel} が削除されたため登録を解除しました",
        LOG_VAC_ERROR: "サーバー {guild} でボイスチャンネル自動作成に失敗しました: {error}",
        LOG_VAC_DEREGISTER_MISMATCH: (
            "サーバー {guild} のチャンネル {channel} が登録情報と一致しません"
            " (deleted={deleted}, deregistered={deregistered})"
        ),
        LOG_VAC_RECONCILED: (
            "サーバー {guild} を同期しました: 古いトリガー {stale_triggers} 件, "
            "古いチャンネル {stale_auto_created} 件, 空チャンネル削除 {deleted_empty} 件"
        ),
    },
}


def get_default_locale() -> str:
    """Return the configured locale, falling back to DEFAULT_LOCALE."""
    bot_cfg = ConfigLoader.load_config().get("bot", {}) or {}
    locale = str(bot_cfg.get("locale", DEFAULT_LOCALE)).lower()
    return locale if locale in MESSAGES else DEFAULT_LOCALE


def format_message(key: str, locale: str | None = None, **params: Any) -> str:
    """
    Render a message key in the given locale.

    Unknown locales fall back to DEFAULT_LOCALE; unknown keys render as the key
    itself. Missing parameters never raise, the placeholder is left as-is.

    Examples:
        >>> format_message("log.vac.created", "en", guild=1, channel=2)
        'Created auto voice channel 2 in guild 1'
    """
    catalog = MESSAGES.get(locale or get_default_locale(), MESSAGES[DEFAULT_LOCALE])
    template = catalog.get(key) or MESSAGES[DEFAULT_LOCALE].get(key)
    if template is None:
        logger.warning(f"Unknown message key: {key}")
        return key
    return template.format_map(_SafeParams(params))


class _SafeParams(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"
