"""Dashboard state and its single update function.

``DashboardState.update`` is the only place that mutates dashboard state.
Background commands report back through it as typed messages. Every keyed
result is checked against the *current* selection of its parent:

    RunsLoaded.workflow_id  vs  selected workflow
    JobsLoaded.run_id       vs  selected run
    LogsLoaded.job_id       vs  selected job

A mismatch means the user moved on while the request was in flight, so the
result is dropped. A selection change also empties every pane below it, so
a late result whose parent no longer exists finds nothing selected.
Together these keep late or out-of-order completions from ever
overwriting the view of a different entity. Two racing fetches for the
*same* still-selected entity resolve as last-delivered-wins.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from actions_dash import commands
from actions_dash.action_messages import (
    build_cancel_run_prompt,
    build_trigger_notice,
    describe_error,
)
from actions_dash.commands import DEFAULT_FETCH_POLICY, FetchPolicy
from actions_dash.errors import ClassifiedError, ErrorKind
from actions_dash.filtered_list import FilteredList, contains_casefold
from actions_dash.logparser import ALL_STEPS, ParsedLogs, parse_logs
from actions_dash.messages import (
    Command,
    Flash,
    FlashClear,
    JobsLoaded,
    LogsLoaded,
    Message,
    RerunFailedJobs,
    RunCancelled,
    RunRerun,
    RunsLoaded,
    Tick,
    WorkflowsLoaded,
    WorkflowTriggered,
)
from actions_dash.models import (
    DEFAULT_RATE_LIMIT,
    DEFAULT_RUNS_PER_PAGE,
    Job,
    Repository,
    Run,
    Workflow,
)
from actions_dash.polling import AdaptivePoller
from actions_dash.repo import RepositoryError, validate_workflow_path
from actions_dash.services.interfaces import PipelineClient
from actions_dash.ticker import CancelScope, PeriodicTask

logger = logging.getLogger(__name__)

PANE_WORKFLOWS = 0
PANE_RUNS = 1
PANE_JOBS = 2
PANES = (PANE_WORKFLOWS, PANE_RUNS, PANE_JOBS)

DEFAULT_REF = "main"
DEFAULT_FLASH_SECONDS = 2.0

LOGS_LOADING_TEXT = "Loading logs..."
LOGS_FAILED_TEXT = "Failed to load logs"
LOGS_EMPTY_TEXT = "No logs available"


def _match_workflow(workflow: Workflow, text: str) -> bool:
    return contains_casefold(workflow.name, text)


def _match_run(run: Run, text: str) -> bool:
    return contains_casefold(run.branch, text) or contains_casefold(run.actor, text)


def _match_job(job: Job, text: str) -> bool:
    return contains_casefold(job.name, text)


class DashboardState:
    """Workflows, runs, jobs and the log view of one repository."""

    def __init__(
        self,
        client: PipelineClient | None,
        repo: Repository,
        *,
        policy: FetchPolicy = DEFAULT_FETCH_POLICY,
        poller: AdaptivePoller | None = None,
        default_ref: str = DEFAULT_REF,
        flash_seconds: float = DEFAULT_FLASH_SECONDS,
        runs_per_page: int = DEFAULT_RUNS_PER_PAGE,
    ) -> None:
        self.client = client
        self.repo = repo
        self.policy = policy
        self.default_ref = default_ref
        self.flash_seconds = flash_seconds
        self.runs_per_page = runs_per_page
        if poller is None:
            if client is not None:
                poller = AdaptivePoller(client.rate_limit_remaining)
            else:
                poller = AdaptivePoller(lambda: DEFAULT_RATE_LIMIT)
        self.poller = poller

        self.workflows: FilteredList[Workflow] = FilteredList(_match_workflow)
        self.runs: FilteredList[Run] = FilteredList(_match_run)
        self.jobs: FilteredList[Job] = FilteredList(_match_job)

        self.focused_pane = PANE_WORKFLOWS
        self.loading = False
        self.error: ClassifiedError | None = None
        self.error_context = ""
        self.flash = ""

        # Log view: which job the visible text belongs to.
        self.logs_job_id: int | None = None
        self.logs_text = ""
        self.parsed_logs: ParsedLogs | None = None
        self.selected_step = ALL_STEPS

        self.pending_confirm: str | None = None
        self._confirm_command: Command | None = None

        self._log_poller: PeriodicTask[LogsLoaded] | None = None
        self._log_poll_job_id: int | None = None

    # ========================================================================
    # Lifecycle
    # ========================================================================

    def init(self) -> list[Command]:
        """Initial commands: load workflows and start the refresh ticker."""
        cmds = self.refresh_all()
        cmds.append(commands.tick(self.poller.next_interval()))
        return cmds

    def shutdown(self) -> None:
        self.stop_log_polling()

    # ========================================================================
    # Update
    # ========================================================================

    def update(self, msg: Message) -> list[Command]:
        """Fold one completion message into state; return follow-up commands."""
        if isinstance(msg, WorkflowsLoaded):
            return self._on_workflows_loaded(msg)
        if isinstance(msg, RunsLoaded):
            return self._on_runs_loaded(msg)
        if isinstance(msg, JobsLoaded):
            return self._on_jobs_loaded(msg)
        if isinstance(msg, LogsLoaded):
            return self._on_logs_loaded(msg)
        if isinstance(msg, RunCancelled):
            return self._on_action_result(msg.error, "Run cancelled", "cancel the run")
        if isinstance(msg, RunRerun):
            return self._on_action_result(msg.error, "Rerun triggered", "rerun the workflow")
        if isinstance(msg, RerunFailedJobs):
            return self._on_action_result(
                msg.error, "Rerun failed jobs triggered", "rerun failed jobs"
            )
        if isinstance(msg, WorkflowTriggered):
            return self._on_action_result(
                msg.error, build_trigger_notice(msg.workflow), "trigger the workflow"
            )
        if isinstance(msg, Flash):
            self.flash = msg.message
            return []
        if isinstance(msg, FlashClear):
            self.flash = ""
            return []
        if isinstance(msg, Tick):
            return self._on_tick()
        logger.warning("Ignoring unknown message %r", msg)
        return []

    def _set_error(self, error: ClassifiedError, context: str) -> None:
        self.error = error
        self.error_context = context
        logger.warning("%s failed: %s", context, error)

    def _on_workflows_loaded(self, msg: WorkflowsLoaded) -> list[Command]:
        self.loading = False
        if msg.error is not None:
            self._set_error(msg.error, "load workflows")
            return []
        before, had = self.workflows.selected()
        self.workflows.set_items(msg.workflows)
        workflow, ok = self.workflows.selected()
        if not ok or not had or before.id != workflow.id:
            self._invalidate_below(PANE_WORKFLOWS)
        if not ok:
            return []
        return self._fetch_runs(workflow.id)

    def _on_runs_loaded(self, msg: RunsLoaded) -> list[Command]:
        workflow, ok = self.workflows.selected()
        if not ok or workflow.id != msg.workflow_id:
            logger.debug("Discarded stale runs for workflow %s", msg.workflow_id)
            return []
        self.loading = False
        if msg.error is not None:
            self._set_error(msg.error, "load runs")
            return []
        before, had = self.runs.selected()
        self.runs.set_items(msg.runs)
        run, ok = self.runs.selected()
        if not ok or not had or before.id != run.id:
            self._invalidate_below(PANE_RUNS)
        if not ok:
            return []
        return self._fetch_jobs(run.id)

    def _on_jobs_loaded(self, msg: JobsLoaded) -> list[Command]:
        run, ok = self.runs.selected()
        if not ok or run.id != msg.run_id:
            logger.debug("Discarded stale jobs for run %s", msg.run_id)
            return []
        self.loading = False
        if msg.error is not None:
            self._set_error(msg.error, "load jobs")
            return []
        self.jobs.set_items(msg.jobs)
        job, ok = self.jobs.selected()
        if not ok:
            return self._clear_logs()
        if job.id != self.logs_job_id or self.parsed_logs is None:
            return self._on_job_selected(job)
        # Same job still shown: refresh its log in place, polling resumes on LogsLoaded.
        self.stop_log_polling()
        return self._fetch_logs(job.id)

    def _on_logs_loaded(self, msg: LogsLoaded) -> list[Command]:
        job, ok = self.jobs.selected()
        if not ok or job.id != msg.job_id:
            logger.debug("Discarded stale logs for job %s", msg.job_id)
            return []
        self.logs_job_id = msg.job_id
        if msg.error is not None:
            self._set_error(msg.error, "load logs")
            self.parsed_logs = None
            self.logs_text = LOGS_FAILED_TEXT
            return []
        self.parsed_logs = parse_logs(msg.logs)
        if self.selected_step >= len(self.parsed_logs.steps):
            self.selected_step = ALL_STEPS
        self._render_logs()
        return self._sync_log_polling(job)

    def _on_action_result(
        self, error: ClassifiedError | None, success_text: str, action: str
    ) -> list[Command]:
        if error is not None:
            self._set_error(error, action)
            return []
        cmds = commands.flash_message(success_text, self.flash_seconds)
        cmds.extend(self.refresh_current_workflow())
        return cmds

    def _on_tick(self) -> list[Command]:
        cmds: list[Command] = [commands.tick(self.poller.next_interval())]
        if self.error is not None or self.loading:
            return cmds
        if any(run.is_running for run in self.runs.all_items()):
            cmds.extend(self.refresh_current_workflow())
        return cmds

    # ========================================================================
    # Fetch helpers
    # ========================================================================

    def refresh_all(self) -> list[Command]:
        if self.client is None:
            return []
        self.loading = True
        return [commands.fetch_workflows(self.client, self.repo, policy=self.policy)]

    def refresh_current_workflow(self) -> list[Command]:
        workflow, ok = self.workflows.selected()
        if not ok:
            return []
        return self._fetch_runs(workflow.id)

    def _fetch_runs(self, workflow_id: int) -> list[Command]:
        if self.client is None:
            return []
        self.loading = True
        return [
            commands.fetch_runs(
                self.client,
                self.repo,
                workflow_id,
                per_page=self.runs_per_page,
                policy=self.policy,
            )
        ]

    def _fetch_jobs(self, run_id: int) -> list[Command]:
        if self.client is None:
            return []
        self.loading = True
        return [commands.fetch_jobs(self.client, self.repo, run_id, policy=self.policy)]

    def _fetch_logs(self, job_id: int) -> list[Command]:
        if self.client is None:
            return []
        return [commands.fetch_logs(self.client, self.repo, job_id, policy=self.policy)]

    # ========================================================================
    # Selection
    # ========================================================================

    def pane_items(self, pane: int) -> FilteredList:
        if pane == PANE_WORKFLOWS:
            return self.workflows
        if pane == PANE_RUNS:
            return self.runs
        return self.jobs

    def _on_selection_change(self, pane: int) -> list[Command]:
        if pane == PANE_WORKFLOWS:
            workflow, ok = self.workflows.selected()
            return self._fetch_runs(workflow.id) if ok else []
        if pane == PANE_RUNS:
            run, ok = self.runs.selected()
            return self._fetch_jobs(run.id) if ok else []
        job, ok = self.jobs.selected()
        return self._on_job_selected(job) if ok else []

    def _on_job_selected(self, job: Job) -> list[Command]:
        self.stop_log_polling()
        self.logs_job_id = job.id
        self.logs_text = LOGS_LOADING_TEXT
        self.parsed_logs = None
        self.selected_step = ALL_STEPS
        return self._fetch_logs(job.id)

    def _clear_logs(self) -> list[Command]:
        self.stop_log_polling()
        self.logs_job_id = None
        self.logs_text = ""
        self.parsed_logs = None
        self.selected_step = ALL_STEPS
        return []

    def _invalidate_below(self, pane: int) -> None:
        """Empty the panes under ``pane`` until their new contents arrive."""
        if pane == PANE_WORKFLOWS:
            self.runs.set_items([])
        if pane in (PANE_WORKFLOWS, PANE_RUNS):
            self.jobs.set_items([])
            self._clear_logs()

    def _move(self, pane: int, mover: Callable[[FilteredList], None]) -> list[Command]:
        items = self.pane_items(pane)
        before = items.selected_index
        mover(items)
        if items.selected_index == before:
            return []
        self._invalidate_below(pane)
        return self._on_selection_change(pane)

    def select_next(self) -> list[Command]:
        return self._move(self.focused_pane, FilteredList.select_next)

    def select_prev(self) -> list[Command]:
        return self._move(self.focused_pane, FilteredList.select_prev)

    def select_index(self, pane: int, index: int) -> list[Command]:
        """Focus ``pane`` and select ``index`` in it (mouse click)."""
        self.focused_pane = pane
        return self._move(pane, lambda items: items.select(index))

    def focus_next_pane(self) -> None:
        self.focused_pane = min(self.focused_pane + 1, PANE_JOBS)

    def focus_prev_pane(self) -> None:
        self.focused_pane = max(self.focused_pane - 1, PANE_WORKFLOWS)

    def focus_next_pane_with_select(self) -> list[Command]:
        """Move focus right and (re)load the data for the newly focused pane."""
        if self.focused_pane == PANE_JOBS:
            return []
        self.focus_next_pane()
        return self._on_selection_change(self.focused_pane)

    def focus_prev_pane_with_select(self) -> list[Command]:
        if self.focused_pane == PANE_WORKFLOWS:
            return []
        self.focus_prev_pane()
        return self._on_selection_change(self.focused_pane)

    def apply_filter(self, text: str) -> list[Command]:
        """Filter the focused pane; refetch children if the selection moved."""
        items = self.pane_items(self.focused_pane)
        before, had = items.selected()
        items.set_filter(text)
        after, has = items.selected()
        if not has or (had and before.id == after.id):
            return []
        self._invalidate_below(self.focused_pane)
        return self._on_selection_change(self.focused_pane)

    # ========================================================================
    # Log steps
    # ========================================================================

    def _render_logs(self) -> None:
        if self.parsed_logs is None:
            self.logs_text = LOGS_EMPTY_TEXT
            return
        self.logs_text = self.parsed_logs.format_step_logs(self.selected_step) or LOGS_EMPTY_TEXT

    def select_step_next(self) -> None:
        if self.parsed_logs is None or not self.parsed_logs.steps:
            return
        if self.selected_step < len(self.parsed_logs.steps) - 1:
            self.selected_step += 1
            self._render_logs()

    def select_step_prev(self) -> None:
        if self.parsed_logs is None or not self.parsed_logs.steps:
            return
        if self.selected_step > ALL_STEPS:
            self.selected_step -= 1
            self._render_logs()

    # ========================================================================
    # Live log polling
    # ========================================================================

    @property
    def log_polling_active(self) -> bool:
        return self._log_poller is not None

    def start_log_polling(self) -> list[Command]:
        """Poll logs of the selected job at the adaptive interval.

        Replaces any previous poller (stopping it first). The probe reads the
        job selection at each tick, so its result is still gated by the
        job-id check in ``update``.
        """
        self.stop_log_polling()
        job, ok = self.jobs.selected()
        if self.client is None or not ok:
            return []
        client, repo = self.client, self.repo
        jobs = self.jobs

        async def _probe(scope: CancelScope) -> LogsLoaded | None:
            current, found = jobs.selected()
            if not found:
                return None
            result = await commands.load_logs(client, repo, current.id)
            if scope.cancelled:
                return None
            return result

        poller = PeriodicTask(self.poller.next_interval(), _probe)
        self._log_poller = poller
        self._log_poll_job_id = job.id
        return [poller.start]

    def stop_log_polling(self) -> None:
        """Stop the log poller. Safe to call any number of times."""
        if self._log_poller is not None:
            self._log_poller.stop()
            self._log_poller = None
        self._log_poll_job_id = None

    def _sync_log_polling(self, job: Job) -> list[Command]:
        if job.is_running:
            return self.start_log_polling()
        self.stop_log_polling()
        return []

    # ========================================================================
    # Actions
    # ========================================================================

    def request_cancel_run(self) -> list[Command]:
        """Ask for confirmation before cancelling the selected running run."""
        run, ok = self.runs.selected()
        if self.client is None or not ok or not run.is_running:
            return []
        self.pending_confirm = build_cancel_run_prompt(run.name, run.id)
        self._confirm_command = commands.cancel_run(self.client, self.repo, run.id)
        return []

    def confirm(self) -> list[Command]:
        cmd = self._confirm_command
        self.pending_confirm = None
        self._confirm_command = None
        return [cmd] if cmd is not None else []

    def decline(self) -> None:
        self.pending_confirm = None
        self._confirm_command = None

    def rerun_selected_run(self) -> list[Command]:
        run, ok = self.runs.selected()
        if self.client is None or not ok:
            return []
        return [commands.rerun_workflow(self.client, self.repo, run.id)]

    def rerun_failed_jobs(self) -> list[Command]:
        run, ok = self.runs.selected()
        if self.client is None or not ok or not run.is_failed:
            return []
        return [commands.rerun_failed_jobs(self.client, self.repo, run.id)]

    def trigger_selected_workflow(
        self, ref: str | None = None, inputs: dict[str, str] | None = None
    ) -> list[Command]:
        workflow, ok = self.workflows.selected()
        if self.client is None or not ok:
            return []
        try:
            validate_workflow_path(workflow.path)
        except RepositoryError as e:
            error = ClassifiedError(ErrorKind.UNKNOWN, str(e), cause=e)
            self._set_error(error, "trigger workflow")
            return []
        return [
            commands.trigger_workflow(
                self.client, self.repo, workflow.file_name, ref or self.default_ref, inputs
            )
        ]

    def dismiss_error(self) -> list[Command]:
        """Clear the visible error and start a fresh fetch cycle."""
        if self.error is None:
            return []
        self.error = None
        self.error_context = ""
        return self.refresh_all()

    # ========================================================================
    # Presentation helpers
    # ========================================================================

    def error_text(self) -> str:
        if self.error is None:
            return ""
        return describe_error(self.error_context or "complete the request", self.error)


__all__ = [
    "DEFAULT_FLASH_SECONDS",
    "DEFAULT_REF",
    "LOGS_EMPTY_TEXT",
    "LOGS_FAILED_TEXT",
    "LOGS_LOADING_TEXT",
    "PANES",
    "PANE_JOBS",
    "PANE_RUNS",
    "PANE_WORKFLOWS",
    "DashboardState",
]
