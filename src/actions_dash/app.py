"""Textual host app for the actions dashboard.

The app owns no dashboard data itself: key handlers call an operation on
``DashboardState``, hand the returned commands to the ``MessageLoop`` and
re-render. Completions flow back through ``DashboardState.update`` and the
loop's ``on_update`` callback triggers the next render.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any

from textual import on
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.css.query import NoMatches
from textual.widgets import Header, Input, Label, OptionList, Static
from textual.widgets.option_list import Option

from actions_dash.auth import SecureToken
from actions_dash.commands import FetchPolicy
from actions_dash.config import UserConfig, load_config, save_config
from actions_dash.messages import Command
from actions_dash.models import Repository
from actions_dash.polling import AdaptivePoller
from actions_dash.runtime import MessageLoop
from actions_dash.services.github_client import GitHubClient
from actions_dash.services.interfaces import PipelineClient
from actions_dash.state import PANE_JOBS, PANE_RUNS, PANE_WORKFLOWS, PANES, DashboardState
from actions_dash.ui_constants import APP_BINDINGS, APP_CSS
from actions_dash.widgets import (
    ConfirmModal,
    HelpScreen,
    TriggerModal,
    render_job_option,
    render_run_option,
    render_status_bar,
    render_steps_header,
    render_workflow_option,
)

logger = logging.getLogger(__name__)

PANE_IDS = {
    PANE_WORKFLOWS: "workflows",
    PANE_RUNS: "runs",
    PANE_JOBS: "jobs",
}
PANE_TITLES = {
    PANE_WORKFLOWS: "Workflows",
    PANE_RUNS: "Runs",
    PANE_JOBS: "Jobs",
}


class PaneList(OptionList):
    """Option list that mirrors a FilteredList and never takes focus."""

    can_focus = False


class ActionsDashApp(App):
    """Three-pane workflows / runs / jobs browser with a live log view."""

    TITLE = "actions-dash"
    CSS = APP_CSS
    BINDINGS = APP_BINDINGS

    def __init__(
        self,
        repo: Repository,
        *,
        token: SecureToken | None = None,
        config: UserConfig | None = None,
        client: PipelineClient | None = None,
        autostart: bool = True,
    ) -> None:
        super().__init__()
        self._config = config or UserConfig()
        self._owned_client: GitHubClient | None = None
        if client is None and token is not None:
            self._owned_client = GitHubClient(token.value, base_url=self._config.api_base_url)
            client = self._owned_client
        self.repo = repo
        poller = None
        if client is not None:
            poller = AdaptivePoller(
                client.rate_limit_remaining,
                base_interval=self._config.poll_base_interval,
                max_interval=self._config.poll_max_interval,
            )
        self.dashboard = DashboardState(
            client,
            repo,
            policy=FetchPolicy(attempts=self._config.fetch_attempts),
            poller=poller,
            default_ref=self._config.default_ref,
            flash_seconds=self._config.flash_seconds,
            runs_per_page=self._config.runs_per_page,
        )
        self.message_loop = MessageLoop(
            self.dashboard, on_update=lambda _state: self.refresh_view()
        )
        self._autostart = autostart
        self._loop_task: asyncio.Task[None] | None = None
        self.sub_title = repo.full_name

    def compose(self) -> ComposeResult:
        yield Header()
        yield Input(placeholder=" Filter", id="filter-input")
        with Horizontal(id="main-container"):
            for pane in PANES:
                with Vertical(id=f"{PANE_IDS[pane]}-pane", classes="pane"):
                    yield Label(f" {PANE_TITLES[pane]}", classes="pane-title")
                    yield PaneList(id=f"{PANE_IDS[pane]}-list")
            with Vertical(id="log-pane"):
                yield Label(" Logs", id="log-header", markup=False)
                with VerticalScroll(id="log-scroll"):
                    yield Static("", id="log-view", markup=False)
        yield Static("", id="status-bar", markup=False)

    def on_mount(self) -> None:
        self.query_one("#main-container").set_class(self._config.log_fullscreen, "log-fullscreen")
        self.refresh_view()
        if self._autostart:
            self._loop_task = asyncio.create_task(self.message_loop.run())
            self._loop_task.add_done_callback(self._on_loop_done)

    async def on_unmount(self) -> None:
        """Stop background work and close the HTTP client."""
        await self.message_loop.aclose()
        task, self._loop_task = self._loop_task, None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.wait([task], timeout=0.5)
        client, self._owned_client = self._owned_client, None
        if client is not None:
            try:
                await client.aclose()
            except Exception as e:
                logger.debug("Failed to close HTTP client during shutdown: %s", e, exc_info=True)

    @staticmethod
    def _on_loop_done(task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Message loop stopped: %s", exc, exc_info=exc)

    # ========================================================================
    # Rendering
    # ========================================================================

    def _pane_list(self, pane: int) -> PaneList:
        return self.query_one(f"#{PANE_IDS[pane]}-list", PaneList)

    @staticmethod
    def _fill(option_list: OptionList, prompts: list, selected_index: int) -> None:
        option_list.clear_options()
        option_list.add_options([Option(prompt) for prompt in prompts])
        if prompts:
            option_list.highlighted = selected_index

    def refresh_view(self) -> None:
        """Re-render every widget from ``self.dashboard``."""
        try:
            state = self.dashboard
            self._fill(
                self._pane_list(PANE_WORKFLOWS),
                [render_workflow_option(w) for w in state.workflows.items()],
                state.workflows.selected_index,
            )
            self._fill(
                self._pane_list(PANE_RUNS),
                [render_run_option(r) for r in state.runs.items()],
                state.runs.selected_index,
            )
            self._fill(
                self._pane_list(PANE_JOBS),
                [render_job_option(j) for j in state.jobs.items()],
                state.jobs.selected_index,
            )
            for pane in PANES:
                self.query_one(f"#{PANE_IDS[pane]}-pane").set_class(
                    pane == state.focused_pane, "focused"
                )
            self.query_one("#log-header", Label).update(render_steps_header(state))
            self.query_one("#log-view", Static).update(state.logs_text)
            text, css_class = render_status_bar(state)
            status = self.query_one("#status-bar", Static)
            status.update(text)
            status.set_class(css_class == "error", "error")
            status.set_class(css_class == "flash", "flash")
        except NoMatches:
            # Not composed yet, or already torn down.
            return

    def _start_commands(self, commands: list[Command]) -> None:
        self.message_loop.dispatch(commands)
        self.refresh_view()

    def _save_preference(self, context: str, **changes: Any) -> bool:
        """Write ``changes`` over the stored config and warn on failure.

        Starts from the file on disk so command-line overrides are not persisted.
        """
        if not save_config(replace(load_config(), **changes)):
            self.notify(f"Failed to save {context}.", severity="warning")
            return False
        return True

    # ========================================================================
    # Navigation
    # ========================================================================

    def action_cursor_down(self) -> None:
        self._start_commands(self.dashboard.select_next())

    def action_cursor_up(self) -> None:
        self._start_commands(self.dashboard.select_prev())

    def action_next_pane(self) -> None:
        self._start_commands(self.dashboard.focus_next_pane_with_select())

    def action_prev_pane(self) -> None:
        self._start_commands(self.dashboard.focus_prev_pane_with_select())

    def action_step_next(self) -> None:
        self.dashboard.select_step_next()
        self.refresh_view()

    def action_step_prev(self) -> None:
        self.dashboard.select_step_prev()
        self.refresh_view()

    def action_toggle_log_fullscreen(self) -> None:
        container = self.query_one("#main-container")
        container.toggle_class("log-fullscreen")
        self._config.log_fullscreen = container.has_class("log-fullscreen")
        self._save_preference("log layout", log_fullscreen=self._config.log_fullscreen)

    def action_show_help(self) -> None:
        self.push_screen(HelpScreen())

    @on(OptionList.OptionSelected)
    def on_option_selected(self, event: OptionList.OptionSelected) -> None:
        list_id = event.option_list.id or ""
        for pane, name in PANE_IDS.items():
            if list_id == f"{name}-list":
                self._start_commands(self.dashboard.select_index(pane, event.option_index))
                return

    # ========================================================================
    # Filtering
    # ========================================================================

    def _filter_input(self) -> Input:
        return self.query_one("#filter-input", Input)

    def action_toggle_filter(self) -> None:
        filter_input = self._filter_input()
        if filter_input.has_class("visible"):
            self._close_filter()
            return
        items = self.dashboard.pane_items(self.dashboard.focused_pane)
        filter_input.value = items.filter_text
        filter_input.add_class("visible")
        filter_input.focus()

    def _close_filter(self) -> None:
        filter_input = self._filter_input()
        filter_input.remove_class("visible")
        self.set_focus(None)

    @on(Input.Changed, "#filter-input")
    def on_filter_changed(self, event: Input.Changed) -> None:
        self._start_commands(self.dashboard.apply_filter(event.value))

    @on(Input.Submitted, "#filter-input")
    def on_filter_submitted(self, event: Input.Submitted) -> None:
        self._close_filter()

    def action_escape(self) -> None:
        if self._filter_input().has_class("visible"):
            self._close_filter()
            return
        self._start_commands(self.dashboard.dismiss_error())

    # ========================================================================
    # Actions
    # ========================================================================

    def action_refresh(self) -> None:
        self._start_commands(self.dashboard.refresh_all())

    def action_cancel_run(self) -> None:
        self.dashboard.request_cancel_run()
        prompt = self.dashboard.pending_confirm
        if prompt is None:
            return

        def _on_result(confirmed: bool | None) -> None:
            if confirmed:
                self._start_commands(self.dashboard.confirm())
            else:
                self.dashboard.decline()
                self.refresh_view()

        self.push_screen(ConfirmModal(prompt), _on_result)

    def action_rerun(self) -> None:
        self._start_commands(self.dashboard.rerun_selected_run())

    def action_rerun_failed(self) -> None:
        self._start_commands(self.dashboard.rerun_failed_jobs())

    def action_trigger(self) -> None:
        workflow, ok = self.dashboard.workflows.selected()
        if not ok:
            return

        def _on_result(ref: str | None) -> None:
            if ref:
                self._start_commands(self.dashboard.trigger_selected_workflow(ref))

        self.push_screen(TriggerModal(workflow.name, self.dashboard.default_ref), _on_result)


__all__ = [
    "ActionsDashApp",
    "PaneList",
]
