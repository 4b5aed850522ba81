"""Configuration service for global VAC settings."""

import copy
from typing import Any

from config.config_loader import ConfigLoader
from helpers.messages import DEFAULT_LOCALE, MESSAGES

from .base import BaseService

# -----------------------------------------------------------------------------
# Common Configuration Keys (centralized constants)
# -----------------------------------------------------------------------------

CONFIG_LOCALE = "bot.locale"
CONFIG_DB_PATH = "database.path"
CONFIG_ROOM_NAME_TEMPLATE = "vac.room_name_template"
CONFIG_ROOM_USER_LIMIT = "vac.room_user_limit"
CONFIG_RECONCILE_ON_READY = "vac.reconcile_on_ready"

DEFAULT_ROOM_NAME_TEMPLATE = "{display_name}'s Room"
# Discord's maximum user limit; 0 means unlimited
DEFAULT_ROOM_USER_LIMIT = 99
ALLOWED_ROOM_USER_LIMITS = (0, DEFAULT_ROOM_USER_LIMIT)


class ConfigService(BaseService):
    """
    Service for accessing global configuration.

    Wraps the centralized ConfigLoader with dot-notation lookups and typed
    accessors for the VAC settings.
    """

    def __init__(self, config_loader: type[ConfigLoader] | None = None) -> None:
        super().__init__("config")
        self._global_config: dict[str, Any] = {}
        self._config_loader = config_loader or ConfigLoader

    async def _initialize_impl(self) -> None:
        """Load global configuration."""
        config = self._config_loader.load_config()
        # Work on a copy so service-specific coercions do not mutate the shared loader cache
        self._global_config = copy.deepcopy(config) if isinstance(config, dict) else {}

        if self._global_config:
            self.logger.info("Global configuration loaded successfully")
        else:
            self.logger.warning("Global config empty or missing; using defaults")

    async def get_global_setting(self, key: str, default: Any = None) -> Any:
        """
        Get a global setting.

        Args:
            key: Setting key (supports dot notation)
            default: Default value if setting not found

        Returns:
            Setting value or default
        """
        self._ensure_initialized()
        value = self._get_nested_value(self._global_config, key)
        return value if value is not None else default

    def _get_nested_value(self, data: dict[str, Any], key: str) -> Any:
        """Get a value from nested dict using dot notation."""
        current: Any = data
        try:
            for k in key.split("."):
                current = current[k]
            return current
        except (KeyError, TypeError):
            return None

    # -------------------------------------------------------------------------
    # Type-Safe Configuration Accessors
    # -------------------------------------------------------------------------

    async def get_locale(self) -> str:
        locale = str(await self.get_global_setting(CONFIG_LOCALE, DEFAULT_LOCALE)).lower()
        if locale not in MESSAGES:
            self.logger.warning(f"Unsupported locale '{locale}'; using '{DEFAULT_LOCALE}'")
            return DEFAULT_LOCALE
        return locale

    async def get_room_name_template(self) -> str:
        template = await self.get_global_setting(
            CONFIG_ROOM_NAME_TEMPLATE, DEFAULT_ROOM_NAME_TEMPLATE
        )
        if not isinstance(template, str) or "{display_name}" not in template:
            self.logger.warning(
                f"Invalid room name template {template!r}; using default"
            )
            return DEFAULT_ROOM_NAME_TEMPLATE
        return template

    async def get_room_user_limit(self) -> int:
        raw = await self.get_global_setting(CONFIG_ROOM_USER_LIMIT, DEFAULT_ROOM_USER_LIMIT)
        limit = self._safe_int(raw)
        if limit not in ALLOWED_ROOM_USER_LIMITS:
            self.logger.warning(
                f"Room user limit {raw!r} is not allowed; using {DEFAULT_ROOM_USER_LIMIT}"
            )
            return DEFAULT_ROOM_USER_LIMIT
        return limit

    async def get_reconcile_on_ready(self) -> bool:
        value = await self.get_global_setting(CONFIG_RECONCILE_ON_READY, True)
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)

    def _safe_int(self, value: Any) -> int | None:
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    async def health_check(self) -> dict[str, Any]:
        base_health = await super().health_check()
        return {
            **base_health,
            **self._config_loader.get_config_status(),
            "global_config_loaded": bool(self._global_config),
        }
