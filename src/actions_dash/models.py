"""Data models and constants for the actions dashboard."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

# Application identity used for platformdirs config paths
CONFIG_APP_NAME = "actions-dash"

WORKFLOWS_DIR_PREFIX = ".github/workflows/"

# Run/job status and conclusion values reported by the API
STATUS_QUEUED = "queued"
STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"
CONCLUSION_FAILURE = "failure"

RUNNING_STATUSES = frozenset({STATUS_QUEUED, STATUS_IN_PROGRESS})

# Page sizes
DEFAULT_RUNS_PER_PAGE = 30
MAX_PER_PAGE = 100

# Hourly request budget assumed until the API reports one
DEFAULT_RATE_LIMIT = 5000


@dataclass(slots=True, frozen=True)
class Repository:
    """A GitHub repository identified by owner and name."""

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(slots=True)
class Workflow:
    """A workflow definition (e.g. .github/workflows/ci.yml)."""

    id: int
    name: str
    path: str = ""
    state: str = "active"  # "active" | "disabled_manually" | ...

    @property
    def file_name(self) -> str:
        """Workflow file name as accepted by the dispatch endpoint."""
        if self.path.startswith(WORKFLOWS_DIR_PREFIX):
            return self.path[len(WORKFLOWS_DIR_PREFIX) :]
        return self.path


@dataclass(slots=True)
class Run:
    """One execution of a workflow."""

    id: int
    name: str
    status: str = ""
    conclusion: str = ""
    branch: str = ""
    event: str = ""
    created_at: datetime | None = None
    actor: str = ""
    url: str = ""

    @property
    def is_running(self) -> bool:
        return self.status in RUNNING_STATUSES

    @property
    def is_failed(self) -> bool:
        return self.conclusion == CONCLUSION_FAILURE


@dataclass(slots=True)
class Step:
    """A single step of a job."""

    name: str
    status: str = ""
    conclusion: str = ""
    number: int = 0

    @property
    def is_failed(self) -> bool:
        return self.conclusion == CONCLUSION_FAILURE


@dataclass(slots=True)
class Job:
    """A job within a run, made of ordered steps."""

    id: int
    name: str
    status: str = ""
    conclusion: str = ""
    steps: list[Step] = field(default_factory=list)

    @property
    def is_running(self) -> bool:
        return self.status in RUNNING_STATUSES


@dataclass(slots=True)
class ListRunsOpts:
    """Filters for listing runs. Zero/empty values are not sent."""

    workflow_id: int = 0
    branch: str = ""
    status: str = ""
    event: str = ""
    per_page: int = DEFAULT_RUNS_PER_PAGE


__all__ = [
    "CONCLUSION_FAILURE",
    "CONFIG_APP_NAME",
    "DEFAULT_RATE_LIMIT",
    "DEFAULT_RUNS_PER_PAGE",
    "MAX_PER_PAGE",
    "RUNNING_STATUSES",
    "STATUS_COMPLETED",
    "STATUS_IN_PROGRESS",
    "STATUS_QUEUED",
    "WORKFLOWS_DIR_PREFIX",
    "Job",
    "ListRunsOpts",
    "Repository",
    "Run",
    "Step",
    "Workflow",
]
