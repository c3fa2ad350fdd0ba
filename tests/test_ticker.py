"""Tests for CancelScope and PeriodicTask."""

from __future__ import annotations

import asyncio

import pytest

from actions_dash.ticker import CancelScope, PeriodicTask


class TestCancelScope:
    @pytest.mark.asyncio
    async def test_sleep_times_out_when_not_cancelled(self):
        scope = CancelScope()
        assert await scope.sleep(0.01) is False

    @pytest.mark.asyncio
    async def test_sleep_returns_immediately_when_cancelled(self):
        scope = CancelScope()
        scope.cancel()
        assert await asyncio.wait_for(scope.sleep(10), timeout=1) is True

    @pytest.mark.asyncio
    async def test_cancel_wakes_sleeper(self):
        scope = CancelScope()
        sleeper = asyncio.create_task(scope.sleep(10))
        await asyncio.sleep(0)
        scope.cancel()
        assert await asyncio.wait_for(sleeper, timeout=1) is True

    def test_cancel_is_idempotent(self):
        scope = CancelScope()
        scope.cancel()
        scope.cancel()
        assert scope.cancelled


class TestPeriodicTask:
    @pytest.mark.asyncio
    async def test_returns_first_non_none_result(self):
        results = iter([None, None, "done"])
        calls = 0

        async def probe(scope):
            nonlocal calls
            calls += 1
            return next(results)

        task = PeriodicTask(0.001, probe)
        assert await asyncio.wait_for(task.start(), timeout=1) == "done"
        assert calls == 3

    @pytest.mark.asyncio
    async def test_stop_before_start_yields_nothing(self):
        called = False

        async def probe(scope):
            nonlocal called
            called = True
            return "x"

        task = PeriodicTask(0.001, probe)
        task.stop()
        assert await asyncio.wait_for(task.start(), timeout=1) is None
        assert not called

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self):
        async def probe(scope):
            return None

        task = PeriodicTask(10, probe)
        runner = asyncio.create_task(task.start())
        await asyncio.sleep(0)
        task.stop()
        task.stop()
        assert task.stopped
        assert await asyncio.wait_for(runner, timeout=1) is None

    @pytest.mark.asyncio
    async def test_result_discarded_when_stopped_during_probe(self):
        task: PeriodicTask[str]

        async def probe(scope):
            task.stop()
            return "late"

        task = PeriodicTask(0.001, probe)
        assert await asyncio.wait_for(task.start(), timeout=1) is None

    @pytest.mark.asyncio
    async def test_probe_exception_stops_loop_and_is_logged(self, caplog):
        async def probe(scope):
            raise RuntimeError("probe broke")

        task = PeriodicTask(0.001, probe)
        with caplog.at_level("ERROR", logger="actions_dash.ticker"):
            assert await asyncio.wait_for(task.start(), timeout=1) is None
        assert "Periodic probe failed" in caplog.text

    def test_exposes_interval_and_scope(self):
        async def probe(scope):
            return None

        task = PeriodicTask(2.5, probe)
        assert task.interval == 2.5
        assert isinstance(task.scope, CancelScope)
        assert not task.stopped
