"""
Config Factories

Provides factory functions for creating test configuration objects and files.
Use these to test config loading, validation, and defaults.
"""

from __future__ import annotations

import contextlib
import tempfile
from pathlib import Path
from types import SimpleNamespace
from typing import TYPE_CHECKING, Any

import yaml

if TYPE_CHECKING:
    from collections.abc import Generator


def make_config(
    locale: str = "en",
    logging_level: str = "INFO",
    db_path: str = "vac.db",
    room_name_template: str = "{display_name}'s Room",
    room_user_limit: Any = 99,
    reconcile_on_ready: Any = True,
    extra: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Create a configuration dictionary for testing.

    Args:
        locale: Message locale
        logging_level: Logging level string
        db_path: SQLite file path
        room_name_template: Template for auto-created room names
        room_user_limit: User limit for auto-created rooms
        reconcile_on_ready: Whether startup reconciliation runs
        extra: Additional top-level keys to merge

    Returns:
        Configuration dictionary matching config.yaml structure.
    """
    config: dict[str, Any] = {
        "bot": {"locale": locale},
        "logging": {"level": logging_level, "file": "logs/bot.log"},
        "database": {"path": db_path},
        "vac": {
            "room_name_template": room_name_template,
            "room_user_limit": room_user_limit,
            "reconcile_on_ready": reconcile_on_ready,
        },
    }
    if extra:
        config.update(extra)
    return config


def make_config_loader(config: dict[str, Any] | None = None) -> Any:
    """Create a ConfigLoader stand-in serving a fixed config dict."""
    config = make_config() if config is None else config
    return SimpleNamespace(
        load_config=lambda config_path=None: config,
        get_config_status=lambda: {
            "config_status": "ok",
            "config_path": None,
            "config_loaded": bool(config),
        },
    )


@contextlib.contextmanager
def temp_config_file(
    config: dict[str, Any] | str | None = None,
) -> Generator[Path, None, None]:
    """
    Write a config to a temporary YAML file and yield its path.

    A string is written verbatim, which allows testing malformed YAML.
    """
    if isinstance(config, str):
        content = config
    else:
        content = yaml.safe_dump(make_config() if config is None else config)
    with tempfile.TemporaryDirectory() as tmp_dir:
        path = Path(tmp_dir) / "config.yaml"
        path.write_text(content, encoding="utf-8")
        yield path
