"""Tests for command factories: argument capture, retries, error capture."""

from __future__ import annotations

import asyncio

import pytest

from actions_dash import commands
from actions_dash.commands import FetchPolicy
from actions_dash.errors import ClassifiedError, ErrorKind
from actions_dash.messages import (
    Flash,
    FlashClear,
    JobsLoaded,
    LogsLoaded,
    RerunFailedJobs,
    RunCancelled,
    RunRerun,
    RunsLoaded,
    Tick,
    WorkflowsLoaded,
    WorkflowTriggered,
)


async def _no_sleep(seconds: float) -> None:
    return None


FAST_POLICY = FetchPolicy(attempts=3, sleep=_no_sleep)


def _server_error() -> ClassifiedError:
    return ClassifiedError(ErrorKind.SERVER, "GitHub server error", retryable=True)


class TestReadFetches:
    @pytest.mark.asyncio
    async def test_fetch_workflows(self, fake_client, repo, make_workflow):
        fake_client.workflows = [make_workflow(1, "CI"), make_workflow(2, "Deploy")]
        msg = await commands.fetch_workflows(fake_client, repo, policy=FAST_POLICY)()
        assert isinstance(msg, WorkflowsLoaded)
        assert [w.id for w in msg.workflows] == [1, 2]
        assert msg.error is None

    @pytest.mark.asyncio
    async def test_fetch_runs_carries_workflow_id(self, fake_client, repo, make_run):
        fake_client.runs = {7: [make_run(1001)]}
        msg = await commands.fetch_runs(fake_client, repo, 7, policy=FAST_POLICY)()
        assert isinstance(msg, RunsLoaded)
        assert msg.workflow_id == 7
        assert [r.id for r in msg.runs] == [1001]

    @pytest.mark.asyncio
    async def test_fetch_runs_captures_key_at_issue_time(self, fake_client, repo):
        workflow_id = 7
        cmd = commands.fetch_runs(fake_client, repo, workflow_id, policy=FAST_POLICY)
        workflow_id = 8  # noqa: F841
        msg = await cmd()
        assert msg.workflow_id == 7
        assert fake_client.calls == [("list_runs", (repo, 7))]

    @pytest.mark.asyncio
    async def test_fetch_jobs_carries_run_id(self, fake_client, repo, make_job):
        fake_client.jobs = {1001: [make_job(5001)]}
        msg = await commands.fetch_jobs(fake_client, repo, 1001, policy=FAST_POLICY)()
        assert isinstance(msg, JobsLoaded)
        assert msg.run_id == 1001
        assert [j.id for j in msg.jobs] == [5001]

    @pytest.mark.asyncio
    async def test_fetch_logs_sanitizes(self, fake_client, repo):
        token = "ghp_" + "a" * 36
        fake_client.logs = {5001: f"using {token}\ndone"}
        msg = await commands.fetch_logs(fake_client, repo, 5001, policy=FAST_POLICY)()
        assert isinstance(msg, LogsLoaded)
        assert msg.job_id == 5001
        assert token not in msg.logs
        assert "[REDACTED]" in msg.logs

    @pytest.mark.asyncio
    async def test_transient_failure_is_retried(self, fake_client, repo, make_run):
        fake_client.runs = {7: [make_run(1001)]}
        fake_client.errors["list_runs"] = [_server_error(), _server_error()]
        msg = await commands.fetch_runs(fake_client, repo, 7, policy=FAST_POLICY)()
        assert msg.error is None
        assert fake_client.call_names() == ["list_runs"] * 3

    @pytest.mark.asyncio
    async def test_error_is_carried_not_raised(self, fake_client, repo):
        fake_client.errors["list_jobs"] = ClassifiedError(ErrorKind.NOT_FOUND, "Resource not found")
        msg = await commands.fetch_jobs(fake_client, repo, 1001, policy=FAST_POLICY)()
        assert msg.run_id == 1001
        assert msg.jobs == []
        assert msg.error.kind is ErrorKind.NOT_FOUND
        assert fake_client.call_names() == ["list_jobs"]

    @pytest.mark.asyncio
    async def test_load_logs_is_single_attempt(self, fake_client, repo):
        fake_client.errors["get_job_logs"] = _server_error()
        msg = await commands.load_logs(fake_client, repo, 5001)
        assert msg.error is not None
        assert fake_client.call_names() == ["get_job_logs"]


class TestActions:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("factory", "method", "message_type"),
        [
            (commands.cancel_run, "cancel_run", RunCancelled),
            (commands.rerun_workflow, "rerun_workflow", RunRerun),
            (commands.rerun_failed_jobs, "rerun_failed_jobs", RerunFailedJobs),
        ],
    )
    async def test_run_actions(self, fake_client, repo, factory, method, message_type):
        msg = await factory(fake_client, repo, 1001)()
        assert isinstance(msg, message_type)
        assert msg.run_id == 1001
        assert msg.error is None
        assert fake_client.calls == [(method, (repo, 1001))]

    @pytest.mark.asyncio
    async def test_actions_are_never_retried(self, fake_client, repo):
        fake_client.errors["rerun_workflow"] = _server_error()
        msg = await commands.rerun_workflow(fake_client, repo, 1001)()
        assert msg.error.kind is ErrorKind.SERVER
        assert fake_client.call_names() == ["rerun_workflow"]

    @pytest.mark.asyncio
    async def test_raw_exception_is_classified(self, fake_client, repo):
        fake_client.errors["cancel_run"] = RuntimeError("boom")
        msg = await commands.cancel_run(fake_client, repo, 1001)()
        assert msg.error.kind is ErrorKind.UNKNOWN

    @pytest.mark.asyncio
    async def test_trigger_snapshots_inputs(self, fake_client, repo):
        inputs = {"env": "staging"}
        cmd = commands.trigger_workflow(fake_client, repo, "deploy.yml", "main", inputs)
        inputs["env"] = "prod"
        msg = await cmd()
        assert isinstance(msg, WorkflowTriggered)
        assert msg.workflow == "deploy.yml"
        assert fake_client.calls == [
            ("trigger_workflow", (repo, "deploy.yml", "main", {"env": "staging"}))
        ]


class TestTimers:
    @pytest.mark.asyncio
    async def test_flash_message_shows_then_clears(self):
        slept: list[float] = []

        async def sleep(seconds: float) -> None:
            slept.append(seconds)

        show, clear = commands.flash_message("Rerun triggered", 2.0, sleep=sleep)
        assert await show() == Flash(message="Rerun triggered", duration=2.0)
        assert slept == []
        assert await clear() == FlashClear()
        assert slept == [2.0]

    @pytest.mark.asyncio
    async def test_tick_waits_interval(self):
        slept: list[float] = []

        async def sleep(seconds: float) -> None:
            slept.append(seconds)

        msg = await commands.tick(4.0, sleep=sleep)()
        assert isinstance(msg, Tick)
        assert slept == [4.0]

    @pytest.mark.asyncio
    async def test_commands_are_cancellable(self, fake_client, repo):
        cmd = commands.tick(60)
        task = asyncio.create_task(cmd())
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
