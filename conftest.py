"""Shared test fixtures for actions-dash tests."""

from __future__ import annotations

import logging
from typing import Any

import pytest
from hypothesis import settings

from actions_dash.models import (
    STATUS_COMPLETED,
    Job,
    ListRunsOpts,
    Repository,
    Run,
    Step,
    Workflow,
)

# ── Hypothesis profiles ─────────────────────────────────────────────
settings.register_profile("ci", max_examples=50, deadline=None)
settings.register_profile("dev", max_examples=200, deadline=None)
settings.load_profile("ci")


@pytest.fixture(autouse=True)
def _restore_logging():
    """Undo ``logging.disable`` from CLI tests so later caplog checks still work."""
    yield
    logging.disable(logging.NOTSET)


# ── Fake client ──────────────────────────────────────────────────────────────


class FakePipelineClient:
    """In-memory ``PipelineClient`` that records every call.

    Set ``workflows``/``runs``/``jobs``/``logs`` to control return values and
    ``errors[method_name]`` to an exception (or a list of exceptions consumed
    one per call) to make a method raise.
    """

    def __init__(self) -> None:
        self.workflows: list[Workflow] = []
        self.runs: dict[int, list[Run]] = {}
        self.jobs: dict[int, list[Job]] = {}
        self.logs: dict[int, str] = {}
        self.errors: dict[str, Any] = {}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.remaining = 5000

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        error = self.errors.get(name)
        if isinstance(error, list):
            if error:
                raise error.pop(0)
        elif error is not None:
            raise error

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    async def list_workflows(self, repo: Repository) -> list[Workflow]:
        self._record("list_workflows", repo)
        return list(self.workflows)

    async def list_runs(self, repo: Repository, opts: ListRunsOpts | None = None) -> list[Run]:
        opts = opts or ListRunsOpts()
        self._record("list_runs", repo, opts.workflow_id)
        return list(self.runs.get(opts.workflow_id, []))

    async def list_jobs(self, repo: Repository, run_id: int) -> list[Job]:
        self._record("list_jobs", repo, run_id)
        return list(self.jobs.get(run_id, []))

    async def get_job_logs(self, repo: Repository, job_id: int) -> str:
        self._record("get_job_logs", repo, job_id)
        return self.logs.get(job_id, "")

    async def cancel_run(self, repo: Repository, run_id: int) -> None:
        self._record("cancel_run", repo, run_id)

    async def rerun_workflow(self, repo: Repository, run_id: int) -> None:
        self._record("rerun_workflow", repo, run_id)

    async def rerun_failed_jobs(self, repo: Repository, run_id: int) -> None:
        self._record("rerun_failed_jobs", repo, run_id)

    async def trigger_workflow(
        self,
        repo: Repository,
        workflow_file: str,
        ref: str,
        inputs: dict[str, str] | None = None,
    ) -> None:
        self._record("trigger_workflow", repo, workflow_file, ref, inputs)

    def rate_limit_remaining(self) -> int:
        return self.remaining


# ── Factories ────────────────────────────────────────────────────────────────


@pytest.fixture
def repo() -> Repository:
    return Repository(owner="octo", name="widgets")


@pytest.fixture
def fake_client() -> FakePipelineClient:
    return FakePipelineClient()


@pytest.fixture
def make_workflow():
    """Factory fixture for Workflow records."""

    def _make(id: int = 1, name: str = "CI", path: str | None = None) -> Workflow:
        if path is None:
            path = f".github/workflows/{name.lower()}.yml"
        return Workflow(id=id, name=name, path=path, state="active")

    return _make


@pytest.fixture
def make_run():
    """Factory fixture for Run records (completed/success by default)."""

    def _make(
        id: int = 1001,
        name: str = "CI",
        status: str = STATUS_COMPLETED,
        conclusion: str = "success",
        branch: str = "main",
        actor: str = "octocat",
        event: str = "push",
    ) -> Run:
        return Run(
            id=id,
            name=name,
            status=status,
            conclusion=conclusion,
            branch=branch,
            event=event,
            created_at=None,
            actor=actor,
            url=f"https://github.com/octo/widgets/actions/runs/{id}",
        )

    return _make


@pytest.fixture
def make_job():
    """Factory fixture for Job records."""

    def _make(
        id: int = 5001,
        name: str = "build",
        status: str = STATUS_COMPLETED,
        conclusion: str = "success",
        steps: list[Step] | None = None,
    ) -> Job:
        return Job(id=id, name=name, status=status, conclusion=conclusion, steps=steps or [])

    return _make
