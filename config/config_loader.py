# Config/config_loader.py

import logging
import os
from pathlib import Path
from typing import Any, ClassVar

import yaml

# Environment variables that override a config.yaml entry (env name -> dotted key)
ENV_OVERRIDES: dict[str, str] = {
    "LOCALE": "bot.locale",
    "VAC_DB_PATH": "database.path",
    "LOG_LEVEL": "logging.level",
}


def _get_project_root() -> Path:
    """Derive project root from this file's location: config/config_loader.py -> project root."""
    return Path(__file__).resolve().parent.parent


class ConfigLoader:
    """
    Singleton class to load and provide access to configuration data.

    Observability:
        - Logs INFO on successful config load with path
        - Logs WARNING on missing config file (degraded mode)
        - Logs ERROR on YAML parse errors
        - Tracks config_status for health reporting
    """

    _config: ClassVar[dict[str, Any]] = {}
    _config_status: ClassVar[str] = "not_loaded"  # "ok", "degraded", "error"
    _config_path: ClassVar[str | None] = None

    @classmethod
    def load_config(cls, config_path: str | None = None) -> dict[str, Any]:
        """Load the configuration from a YAML file if not already loaded.

        Args:
            config_path: Path to the configuration file. If not provided,
                uses CONFIG_PATH env var or defaults to project_root/config/config.yaml.

        Returns:
            Dict[str, Any]: Loaded configuration dictionary.
        """
        if cls._config_status != "not_loaded":
            return cls._config

        # Resolve config path with priority: explicit arg > env var > default
        if config_path is None:
            config_path = os.environ.get("CONFIG_PATH")
            if config_path:
                logging.info("Config path overridden via CONFIG_PATH env: %s", config_path)

        if config_path is None:
            config_path = str(_get_project_root() / "config" / "config.yaml")

        cls._config_path = config_path

        try:
            with Path(config_path).open(encoding="utf-8") as file:
                cls._config = yaml.safe_load(file) or {}

            if not isinstance(cls._config, dict):
                logging.warning(
                    "Configuration file didn't contain a mapping; using empty config."
                )
                cls._config = {}
                cls._config_status = "degraded"
            else:
                cls._config_status = "ok"
                logging.info("Configuration loaded successfully from %s", config_path)

        except FileNotFoundError:
            logging.warning(
                "Configuration file not found at path: %s; "
                "using empty/default config (degraded mode).",
                config_path,
            )
            cls._config = {}
            cls._config_status = "degraded"
        except yaml.YAMLError as e:
            logging.exception(
                "Error parsing configuration YAML at %s: %s; using empty/default config.",
                config_path,
                e,
            )
            cls._config = {}
            cls._config_status = "error"

        cls._apply_env_overrides()
        cls._validate_logging_level()
        return cls._config

    @classmethod
    def _apply_env_overrides(cls) -> None:
        for env_name, dotted_key in ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if not value:
                continue
            section, _, leaf = dotted_key.partition(".")
            target = cls._config.setdefault(section, {})
            if not isinstance(target, dict):
                logging.warning(
                    "Config section '%s' is not a mapping; ignoring %s override",
                    section,
                    env_name,
                )
                continue
            target[leaf] = value

    @classmethod
    def get_config_status(cls) -> dict[str, Any]:
        """Return config health status for observability endpoints."""
        return {
            "config_status": cls._config_status,
            "config_path": cls._config_path,
            "config_loaded": bool(cls._config),
        }

    @classmethod
    def _validate_logging_level(cls) -> None:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        logging_config = cls._config.get("logging", {})
        if not isinstance(logging_config, dict):
            logging_config = {}
        level = str(logging_config.get("level", "INFO")).upper()
        if level not in valid_levels:
            logging.warning(
                f"Invalid logging level '{level}' in config. Defaulting to 'INFO'."
            )
            level = "INFO"
        cls._config["logging"] = {**logging_config, "level": level}

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """
        Retrieves a value from the configuration.

        Args:
            key (str): The key to retrieve.
            default (Any, optional): The default value if the key is not found.
                Defaults to None.

        Returns:
            Any: The value associated with the key.
        """
        return cls._config.get(key, default)

    @classmethod
    def reset(cls) -> None:
        """Reset the config loader state (useful for testing)."""
        cls._config = {}
        cls._config_status = "not_loaded"
        cls._config_path = None
