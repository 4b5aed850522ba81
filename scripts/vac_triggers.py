#!/usr/bin/env python3
"""
Manage VAC trigger channels directly in the registry database.

Usage:
    python scripts/vac_triggers.py add --guild-id 123 --channel-id 456
    python scripts/vac_triggers.py remove --guild-id 123 --channel-id 456
    python scripts/vac_triggers.py list [--guild-id 123]

Options:
    --db PATH    SQLite file to use (default: database.path from config.yaml)
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config.config_loader import ConfigLoader
from services.vac_registry import VacRegistry
from utils.logging import get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Add, remove or list voice auto creation trigger channels"
    )
    parser.add_argument(
        "--db",
        type=str,
        default=None,
        help="Path to the SQLite database (default: database.path from config)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("add", "Register a voice channel as a trigger"),
        ("remove", "Unregister a trigger channel"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--guild-id", type=int, required=True, help="Discord guild ID")
        sub.add_argument(
            "--channel-id", type=int, required=True, help="Voice channel ID"
        )

    list_parser = subparsers.add_parser("list", help="Show registry contents")
    list_parser.add_argument(
        "--guild-id", type=int, default=None, help="Only show this guild"
    )
    return parser


def resolve_db_path(cli_path: str | None) -> str | None:
    if cli_path:
        return cli_path
    database = ConfigLoader.load_config().get("database") or {}
    return database.get("path")


async def run(args: argparse.Namespace) -> int:
    """Execute one CLI command. Returns the process exit code."""
    registry = VacRegistry(resolve_db_path(args.db))
    await registry.initialize()

    if args.command == "add":
        try:
            added = await registry.add_trigger_channel(args.guild_id, args.channel_id)
        except ValueError as e:
            print(f"❌ {e}")
            return 1
        if added:
            print(f"✅ Channel {args.channel_id} is now a trigger in guild {args.guild_id}")
        else:
            print(f"ℹ️  Channel {args.channel_id} was already a trigger")
        return 0

    if args.command == "remove":
        if await registry.remove_trigger_channel(args.guild_id, args.channel_id):
            print(f"✅ Channel {args.channel_id} is no longer a trigger")
        else:
            print(f"ℹ️  Channel {args.channel_id} was not a trigger")
        return 0

    guild_ids = (
        [args.guild_id] if args.guild_id is not None else await registry.list_guilds()
    )
    if not guild_ids:
        print("No guilds in the registry")
    for guild_id in guild_ids:
        state = await registry.get_state(guild_id)
        if state is None:
            print(f"Guild {guild_id}: not configured")
            continue
        print(f"Guild {guild_id}:")
        print(f"   Triggers:     {state.trigger_channel_ids or []}")
        print(f"   Auto-created: {state.auto_created_channel_ids or []}")
    return 0


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    try:
        exit_code = asyncio.run(run(args))
    except Exception as e:
        logger.exception("Trigger command failed", exc_info=e)
        print(f"❌ {e}")
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
