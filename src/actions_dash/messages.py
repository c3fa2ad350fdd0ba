"""Typed completion messages delivered to the dashboard update function.

Background work never mutates state; it returns one of these values and the
driver feeds it to ``DashboardState.update``. Fetch results carry the key of
the entity they were issued for so stale results can be dropped.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime

from actions_dash.errors import ClassifiedError
from actions_dash.models import Job, Run, Workflow

# ── Data loading results ─────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class WorkflowsLoaded:
    workflows: list[Workflow] = field(default_factory=list)
    error: ClassifiedError | None = None


@dataclass(slots=True, frozen=True)
class RunsLoaded:
    workflow_id: int
    runs: list[Run] = field(default_factory=list)
    error: ClassifiedError | None = None


@dataclass(slots=True, frozen=True)
class JobsLoaded:
    run_id: int
    jobs: list[Job] = field(default_factory=list)
    error: ClassifiedError | None = None


@dataclass(slots=True, frozen=True)
class LogsLoaded:
    job_id: int
    logs: str = ""
    error: ClassifiedError | None = None


# ── Action results ───────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class RunCancelled:
    run_id: int
    error: ClassifiedError | None = None


@dataclass(slots=True, frozen=True)
class RunRerun:
    run_id: int
    error: ClassifiedError | None = None


@dataclass(slots=True, frozen=True)
class RerunFailedJobs:
    run_id: int
    error: ClassifiedError | None = None


@dataclass(slots=True, frozen=True)
class WorkflowTriggered:
    workflow: str  # workflow file name, e.g. "ci.yml"
    error: ClassifiedError | None = None


# ── UI state ─────────────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class Flash:
    message: str
    duration: float


@dataclass(slots=True, frozen=True)
class FlashClear:
    pass


@dataclass(slots=True, frozen=True)
class Tick:
    time: datetime


Message = (
    WorkflowsLoaded
    | RunsLoaded
    | JobsLoaded
    | LogsLoaded
    | RunCancelled
    | RunRerun
    | RerunFailedJobs
    | WorkflowTriggered
    | Flash
    | FlashClear
    | Tick
)

# A unit of background work: awaited off the update path, its result (if
# any) is delivered back to the update function.
Command = Callable[[], Awaitable["Message | None"]]

__all__ = [
    "Command",
    "Flash",
    "FlashClear",
    "JobsLoaded",
    "LogsLoaded",
    "Message",
    "RerunFailedJobs",
    "RunCancelled",
    "RunRerun",
    "RunsLoaded",
    "Tick",
    "WorkflowTriggered",
    "WorkflowsLoaded",
]
