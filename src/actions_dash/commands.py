"""Background commands: API calls wrapped into units of work.

Each factory captures its arguments at issue time and returns a zero-arg
coroutine function. Awaiting it performs the I/O and returns a typed message;
failures are carried in the message's ``error`` field, never raised.
Read fetches go through ``retry_with_backoff``; actions run exactly once.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TypeVar

from actions_dash.errors import ClassifiedError, classify_exception
from actions_dash.messages import (
    Command,
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
from actions_dash.models import DEFAULT_RUNS_PER_PAGE, ListRunsOpts, Repository
from actions_dash.retry import DEFAULT_ATTEMPTS, INITIAL_BACKOFF, MAX_BACKOFF, retry_with_backoff
from actions_dash.sanitize import sanitize_logs
from actions_dash.services.interfaces import PipelineClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class FetchPolicy:
    """Retry settings shared by all read fetches."""

    attempts: int = DEFAULT_ATTEMPTS
    initial_backoff: float = INITIAL_BACKOFF
    max_backoff: float = MAX_BACKOFF
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, compare=False)

    async def run(self, operation: Callable[[], Awaitable[T]], *, label: str) -> T:
        return await retry_with_backoff(
            self.attempts,
            operation,
            initial_backoff=self.initial_backoff,
            max_backoff=self.max_backoff,
            sleep=self.sleep,
            label=label,
        )


DEFAULT_FETCH_POLICY = FetchPolicy()


# ============================================================================
# Read fetches (retried, keyed)
# ============================================================================


def fetch_workflows(
    client: PipelineClient,
    repo: Repository,
    *,
    policy: FetchPolicy = DEFAULT_FETCH_POLICY,
) -> Command:
    async def _run() -> WorkflowsLoaded:
        try:
            workflows = await policy.run(
                lambda: client.list_workflows(repo), label="list workflows"
            )
        except ClassifiedError as exc:
            return WorkflowsLoaded(error=exc)
        return WorkflowsLoaded(workflows=list(workflows or []))

    return _run


def fetch_runs(
    client: PipelineClient,
    repo: Repository,
    workflow_id: int,
    *,
    branch: str = "",
    status: str = "",
    event: str = "",
    per_page: int = DEFAULT_RUNS_PER_PAGE,
    policy: FetchPolicy = DEFAULT_FETCH_POLICY,
) -> Command:
    opts = ListRunsOpts(
        workflow_id=workflow_id,
        branch=branch,
        status=status,
        event=event,
        per_page=per_page,
    )

    async def _run() -> RunsLoaded:
        try:
            runs = await policy.run(
                lambda: client.list_runs(repo, opts), label=f"list runs of workflow {workflow_id}"
            )
        except ClassifiedError as exc:
            return RunsLoaded(workflow_id=workflow_id, error=exc)
        return RunsLoaded(workflow_id=workflow_id, runs=list(runs or []))

    return _run


def fetch_jobs(
    client: PipelineClient,
    repo: Repository,
    run_id: int,
    *,
    policy: FetchPolicy = DEFAULT_FETCH_POLICY,
) -> Command:
    async def _run() -> JobsLoaded:
        try:
            jobs = await policy.run(
                lambda: client.list_jobs(repo, run_id), label=f"list jobs of run {run_id}"
            )
        except ClassifiedError as exc:
            return JobsLoaded(run_id=run_id, error=exc)
        return JobsLoaded(run_id=run_id, jobs=list(jobs or []))

    return _run


async def load_logs(client: PipelineClient, repo: Repository, job_id: int) -> LogsLoaded:
    """Single, unretried log download used by live polling."""
    try:
        logs = await client.get_job_logs(repo, job_id)
    except asyncio.CancelledError:
        raise
    except Exception as exc:
        return LogsLoaded(job_id=job_id, error=classify_exception(exc))
    return LogsLoaded(job_id=job_id, logs=sanitize_logs(logs or ""))


def fetch_logs(
    client: PipelineClient,
    repo: Repository,
    job_id: int,
    *,
    policy: FetchPolicy = DEFAULT_FETCH_POLICY,
) -> Command:
    async def _run() -> LogsLoaded:
        try:
            logs = await policy.run(
                lambda: client.get_job_logs(repo, job_id), label=f"logs of job {job_id}"
            )
        except ClassifiedError as exc:
            return LogsLoaded(job_id=job_id, error=exc)
        return LogsLoaded(job_id=job_id, logs=sanitize_logs(logs or ""))

    return _run


# ============================================================================
# Actions (single attempt, not keyed to the selection)
# ============================================================================


def cancel_run(client: PipelineClient, repo: Repository, run_id: int) -> Command:
    async def _run() -> RunCancelled:
        try:
            await client.cancel_run(repo, run_id)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            return RunCancelled(run_id=run_id, error=classify_exception(exc))
        return RunCancelled(run_id=run_id)

    return _run


def rerun_workflow(client: PipelineClient, repo: Repository, run_id: int) -> Command:
    async def _run() -> RunRerun:
        try:
            await client.rerun_workflow(repo, run_id)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            return RunRerun(run_id=run_id, error=classify_exception(exc))
        return RunRerun(run_id=run_id)

    return _run


def rerun_failed_jobs(client: PipelineClient, repo: Repository, run_id: int) -> Command:
    async def _run() -> RerunFailedJobs:
        try:
            await client.rerun_failed_jobs(repo, run_id)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            return RerunFailedJobs(run_id=run_id, error=classify_exception(exc))
        return RerunFailedJobs(run_id=run_id)

    return _run


def trigger_workflow(
    client: PipelineClient,
    repo: Repository,
    workflow_file: str,
    ref: str,
    inputs: dict[str, str] | None = None,
) -> Command:
    inputs_snapshot = dict(inputs or {})

    async def _run() -> WorkflowTriggered:
        try:
            await client.trigger_workflow(repo, workflow_file, ref, inputs_snapshot)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            return WorkflowTriggered(workflow=workflow_file, error=classify_exception(exc))
        return WorkflowTriggered(workflow=workflow_file)

    return _run


# ============================================================================
# UI timers
# ============================================================================


def flash_message(
    text: str,
    duration: float,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> list[Command]:
    """Show ``text`` now and clear it after ``duration`` seconds."""

    async def _show() -> Flash:
        return Flash(message=text, duration=duration)

    async def _clear() -> FlashClear:
        await sleep(duration)
        return FlashClear()

    return [_show, _clear]


def tick(
    interval: float,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> Command:
    async def _run() -> Tick:
        await sleep(interval)
        return Tick(time=datetime.now())

    return _run


__all__ = [
    "DEFAULT_FETCH_POLICY",
    "FetchPolicy",
    "cancel_run",
    "fetch_jobs",
    "fetch_logs",
    "fetch_runs",
    "fetch_workflows",
    "flash_message",
    "load_logs",
    "rerun_failed_jobs",
    "rerun_workflow",
    "tick",
    "trigger_workflow",
]
