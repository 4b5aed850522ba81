"""Tests for registry reconciliation on startup."""

import asyncio
import logging
from unittest.mock import patch

import pytest

from helpers.messages import LOG_VAC_ERROR, LOG_VAC_RECONCILED
from services.config_service import ConfigService
from services.vac_service import VacService
from tests.factories import make_config, make_config_loader, make_voice_event
from utils.types import RegistryField

TRIGGERS = RegistryField.TRIGGER_CHANNEL_IDS
AUTO = RegistryField.AUTO_CREATED_CHANNEL_IDS


class TestReconcileGuild:
    @pytest.mark.asyncio
    async def test_drops_missing_channels_and_deletes_empty_rooms(
        self, vac_service, registry, gateway, caplog
    ):
        await registry.set(1, TRIGGERS, [100, 101])
        await registry.set(1, AUTO, [500, 501, 502])
        gateway.add_channel(100)
        gateway.add_channel(501, occupancy=3)
        gateway.add_channel(502, occupancy=0)

        with caplog.at_level(logging.INFO):
            summary = await vac_service.reconcile_guild(1)

        assert summary.stale_triggers == [101]
        assert summary.stale_auto_created == [500]
        assert summary.deleted_empty == [502]
        assert await registry.get(1, TRIGGERS) == [100]
        assert await registry.get(1, AUTO) == [501]
        assert ("delete_channel", 500) not in gateway.calls
        records = [r for r in caplog.records if getattr(r, "message_key", None) == LOG_VAC_RECONCILED]
        assert len(records) == 1
        assert records[0].event_params["deleted_empty"] == 1

    @pytest.mark.asyncio
    async def test_consistent_guild_reports_no_changes(self, vac_service, registry, gateway, caplog):
        await registry.set(1, TRIGGERS, [100])
        await registry.set(1, AUTO, [500])
        gateway.add_channel(100)
        gateway.add_channel(500, occupancy=1)

        with caplog.at_level(logging.INFO):
            summary = await vac_service.reconcile_guild(1)

        assert summary.changed is False
        assert not [r for r in caplog.records if getattr(r, "message_key", None) == LOG_VAC_RECONCILED]

    @pytest.mark.asyncio
    async def test_unavailable_guild_is_left_alone(self, vac_service, registry, gateway):
        await registry.set(1, TRIGGERS, [100])
        gateway.unavailable_guilds.add(1)

        summary = await vac_service.reconcile_guild(1)

        assert summary.changed is False
        assert await registry.get(1, TRIGGERS) == [100]

    @pytest.mark.asyncio
    async def test_unconfigured_guild(self, vac_service, registry):
        summary = await vac_service.reconcile_guild(42)

        assert summary.changed is False
        assert await registry.get_state(42) is None

    @pytest.mark.asyncio
    async def test_room_awaiting_move_is_not_deleted(self, vac_service, registry, gateway):
        await registry.set(1, TRIGGERS, [100])
        gateway.add_channel(100)
        move_started = asyncio.Event()
        release_move = asyncio.Event()
        real_move = gateway.move_member

        async def slow_move(guild_id, member_id, channel_id):
            move_started.set()
            await release_move.wait()
            await real_move(guild_id, member_id, channel_id)

        gateway.move_member = slow_move
        join = asyncio.create_task(
            vac_service.handle_voice_state_change(make_voice_event(None, 100))
        )
        await move_started.wait()

        # The new room is registered and still empty at this point
        room_id = (await registry.get(1, AUTO))[0]
        summary = await vac_service.reconcile_guild(1)

        release_move.set()
        await join

        assert summary.deleted_empty == []
        assert summary.skipped_in_flight == [room_id]
        assert ("delete_channel", room_id) not in gateway.calls
        assert gateway.channels[room_id].occupancy == 1
        assert gateway.posted_errors == []
        assert await registry.get(1, AUTO) == [room_id]
        assert vac_service._rooms_pending_move == set()

    @pytest.mark.asyncio
    async def test_room_being_deleted_by_leave_is_skipped(self, vac_service, registry, gateway):
        await registry.set(1, AUTO, [500])
        gateway.add_channel(500, occupancy=0)
        vac_service._channels_deleting.add(500)

        summary = await vac_service.reconcile_guild(1)

        assert summary.skipped_in_flight == [500]
        assert "delete_channel" not in gateway.call_names()
        assert await registry.get(1, AUTO) == [500]


class TestReconcileAllGuilds:
    @pytest.mark.asyncio
    async def test_failure_in_one_guild_does_not_stop_others(
        self, vac_service, registry, gateway, caplog
    ):
        await registry.set(1, AUTO, [500])
        await registry.set(2, AUTO, [600])
        original = vac_service.reconcile_guild

        async def flaky(guild_id):
            if guild_id == 1:
                raise RuntimeError("boom")
            return await original(guild_id)

        with patch.object(vac_service, "reconcile_guild", side_effect=flaky):
            with caplog.at_level(logging.ERROR):
                summaries = await vac_service.reconcile_all_guilds()

        assert [s.guild_id for s in summaries] == [2]
        assert await registry.get(2, AUTO) == []
        errors = [r for r in caplog.records if getattr(r, "message_key", None) == LOG_VAC_ERROR]
        assert errors[0].guild_id == "1"


class TestScheduleReconcile:
    @pytest.mark.asyncio
    async def test_schedules_background_task(self, vac_service, registry, gateway):
        await registry.set(1, AUTO, [500])

        await vac_service.schedule_reconcile()
        task = vac_service._reconcile_task
        assert task is not None
        await task

        assert await registry.get(1, AUTO) == []

    @pytest.mark.asyncio
    async def test_does_not_overlap_runs(self, vac_service):
        gate = asyncio.Event()

        async def slow_reconcile():
            await gate.wait()
            return []

        with patch.object(vac_service, "reconcile_all_guilds", side_effect=slow_reconcile):
            await vac_service.schedule_reconcile()
            first = vac_service._reconcile_task
            await vac_service.schedule_reconcile()

            assert vac_service._reconcile_task is first
            gate.set()
            await first

    @pytest.mark.asyncio
    async def test_disabled_by_config(self, registry, gateway):
        config = ConfigService(
            config_loader=make_config_loader(make_config(reconcile_on_ready=False))
        )
        await config.initialize()
        service = VacService(config, registry, gateway)
        await service.initialize()

        await service.schedule_reconcile()

        assert service._reconcile_task is None
        assert (await service.health_check())["background_tasks"] == 0
