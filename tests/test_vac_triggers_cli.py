"""Tests for the trigger administration script."""

import pytest

from scripts.vac_triggers import build_parser, main, run
from services.vac_registry import VacRegistry
from utils.types import RegistryField


def parse(*argv: str):
    return build_parser().parse_args(list(argv))


@pytest.mark.asyncio
async def test_add_and_list(temp_db, capsys):
    assert await run(parse("--db", temp_db, "add", "--guild-id", "1", "--channel-id", "100")) == 0
    assert await run(parse("--db", temp_db, "add", "--guild-id", "1", "--channel-id", "100")) == 0
    assert await run(parse("--db", temp_db, "list")) == 0

    out = capsys.readouterr().out
    assert "is now a trigger" in out
    assert "already a trigger" in out
    assert "Guild 1:" in out
    assert "[100]" in out


@pytest.mark.asyncio
async def test_add_rejects_auto_created_channel(temp_db, capsys):
    registry = VacRegistry(temp_db)
    await registry.initialize()
    await registry.set(1, RegistryField.AUTO_CREATED_CHANNEL_IDS, [500])

    code = await run(parse("--db", temp_db, "add", "--guild-id", "1", "--channel-id", "500"))

    assert code == 1
    assert await registry.get(1, RegistryField.TRIGGER_CHANNEL_IDS) is None


@pytest.mark.asyncio
async def test_remove(temp_db, capsys):
    await run(parse("--db", temp_db, "add", "--guild-id", "1", "--channel-id", "100"))

    assert await run(parse("--db", temp_db, "remove", "--guild-id", "1", "--channel-id", "100")) == 0
    assert await run(parse("--db", temp_db, "remove", "--guild-id", "1", "--channel-id", "100")) == 0

    out = capsys.readouterr().out
    assert "no longer a trigger" in out
    assert "was not a trigger" in out


@pytest.mark.asyncio
async def test_list_unknown_guild(temp_db, capsys):
    await run(parse("--db", temp_db, "list", "--guild-id", "9"))

    assert "Guild 9: not configured" in capsys.readouterr().out


def test_subcommand_is_required():
    with pytest.raises(SystemExit):
        parse()


def test_main_exits_with_failure_on_error(monkeypatch, capsys):
    async def broken_run(args):
        raise RuntimeError("disk full")

    monkeypatch.setattr("scripts.vac_triggers.run", broken_run)

    with pytest.raises(SystemExit) as exc_info:
        main(["list"])

    assert exc_info.value.code == 1
    assert "disk full" in capsys.readouterr().out
