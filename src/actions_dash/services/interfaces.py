"""Remote pipeline client contract consumed by the dashboard core."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from actions_dash.models import Job, ListRunsOpts, Repository, Run, Workflow


@runtime_checkable
class PipelineClient(Protocol):
    """Interface for CI/CD API operations.

    Failures are raised as exceptions; ``errors.classify`` maps them onto the
    error taxonomy.
    """

    async def list_workflows(self, repo: Repository) -> list[Workflow]:
        """List workflow definitions in the repository."""
        ...

    async def list_runs(self, repo: Repository, opts: ListRunsOpts | None = None) -> list[Run]:
        """List runs, optionally scoped to one workflow."""
        ...

    async def list_jobs(self, repo: Repository, run_id: int) -> list[Job]:
        """List the jobs of a run."""
        ...

    async def get_job_logs(self, repo: Repository, job_id: int) -> str:
        """Download the plain-text log of a job."""
        ...

    async def cancel_run(self, repo: Repository, run_id: int) -> None: ...

    async def rerun_workflow(self, repo: Repository, run_id: int) -> None: ...

    async def rerun_failed_jobs(self, repo: Repository, run_id: int) -> None: ...

    async def trigger_workflow(
        self,
        repo: Repository,
        workflow_file: str,
        ref: str,
        inputs: dict[str, str] | None = None,
    ) -> None:
        """Create a workflow_dispatch event."""
        ...

    def rate_limit_remaining(self) -> int:
        """Last reported remaining request budget."""
        ...


__all__ = [
    "PipelineClient",
]
