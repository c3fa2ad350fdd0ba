"""Tests for row rendering, status bar priority and UI copy."""

from __future__ import annotations

from actions_dash.action_messages import (
    build_actionable_error,
    build_cancel_run_prompt,
    describe_error,
)
from actions_dash.errors import ClassifiedError, ErrorKind
from actions_dash.logparser import parse_logs
from actions_dash.models import STATUS_IN_PROGRESS, STATUS_QUEUED
from actions_dash.state import PANE_RUNS, DashboardState
from actions_dash.ui_constants import PANE_HINTS
from actions_dash.widgets import (
    render_run_option,
    render_status_bar,
    render_steps_header,
    status_icon,
)


def test_status_icon_prefers_live_status():
    assert status_icon(STATUS_IN_PROGRESS, "")[0] == "●"
    assert status_icon(STATUS_QUEUED, "")[0] == "○"
    assert status_icon("completed", "failure") == ("✗", "red")
    assert status_icon("completed", "neutral") == (" ", "")


def test_run_row_shows_id_branch_actor(make_run):
    row = render_run_option(make_run(42, branch="feature/x", actor="mona"))
    assert row.plain == "✓ #42 feature/x  mona"


class TestStatusBar:
    def test_hints_follow_focused_pane(self, repo):
        state = DashboardState(None, repo)
        state.focused_pane = PANE_RUNS
        text, css_class = render_status_bar(state)
        assert text.startswith(PANE_HINTS[PANE_RUNS])
        assert css_class == ""

    def test_loading_prefix(self, repo):
        state = DashboardState(None, repo)
        state.loading = True
        assert render_status_bar(state)[0].startswith("Loading...")

    def test_error_beats_flash(self, repo):
        state = DashboardState(None, repo)
        state.flash = "Rerun triggered"
        state.error = ClassifiedError(ErrorKind.NETWORK, "Network error")
        state.error_context = "load runs"
        text, css_class = render_status_bar(state)
        assert css_class == "error"
        assert "\n" not in text
        assert text.startswith("Could not load runs.")

    def test_flash(self, repo):
        state = DashboardState(None, repo)
        state.flash = "Rerun triggered"
        assert render_status_bar(state) == ("Rerun triggered", "flash")


def test_steps_header(repo):
    state = DashboardState(None, repo)
    assert render_steps_header(state) == " Logs"
    state.parsed_logs = parse_logs("##[group]Build\nok\n##[endgroup]\n##[group]Test\nok")
    state.selected_step = -1
    assert render_steps_header(state) == " Logs (all 2 steps)"
    state.selected_step = 1
    assert render_steps_header(state) == " Logs: Test (2/2)"


class TestActionMessages:
    def test_actionable_error_lines(self):
        message = build_actionable_error("load jobs", why="timed out", next_step="retry")
        assert message.splitlines() == [
            "Could not load jobs.",
            "Why: timed out.",
            "Next step: retry.",
        ]

    def test_describe_error_uses_kind_hint(self):
        text = describe_error("load runs", ClassifiedError(ErrorKind.AUTH, "Authentication failed"))
        assert "gh auth login" in text

    def test_cancel_prompt(self):
        assert build_cancel_run_prompt("CI", 7) == "Cancel CI #7? [y/n]"
        assert build_cancel_run_prompt("", 7) == "Cancel run #7? [y/n]"
