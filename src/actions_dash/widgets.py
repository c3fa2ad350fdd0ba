"""Row rendering, status bar text and modal dialogs for the dashboard."""

from __future__ import annotations

from rich.text import Text
from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Static

from actions_dash.models import STATUS_IN_PROGRESS, STATUS_QUEUED, Job, Run, Workflow
from actions_dash.state import DashboardState
from actions_dash.ui_constants import COMMON_HINTS, HELP_SECTIONS, PANE_HINTS

# (icon, style) per status/conclusion
STATUS_ICONS = {
    STATUS_IN_PROGRESS: ("●", "yellow"),
    STATUS_QUEUED: ("○", "grey50"),
    "success": ("✓", "green"),
    "failure": ("✗", "red"),
    "cancelled": ("⊘", "grey50"),
}


def status_icon(status: str, conclusion: str) -> tuple[str, str]:
    """Return the (glyph, style) pair for a run or job state."""
    if status in STATUS_ICONS:
        return STATUS_ICONS[status]
    return STATUS_ICONS.get(conclusion, (" ", ""))


def _row(icon: tuple[str, str], *parts: str) -> Text:
    glyph, style = icon
    text = Text()
    text.append(glyph, style=style)
    for part in parts:
        if part:
            text.append(" ")
            text.append(part)
    return text


def render_workflow_option(workflow: Workflow) -> Text:
    return _row((" ", ""), workflow.name or workflow.file_name)


def render_run_option(run: Run) -> Text:
    text = _row(status_icon(run.status, run.conclusion), f"#{run.id}", run.branch)
    if run.actor:
        text.append(f"  {run.actor}", style="dim")
    return text


def render_job_option(job: Job) -> Text:
    return _row(status_icon(job.status, job.conclusion), job.name)


def render_status_bar(state: DashboardState) -> tuple[str, str]:
    """Return (text, css class) for the status bar.

    Priority: visible error, then flash notice, then key hints.
    """
    if state.error is not None:
        return state.error_text().replace("\n", "  "), "error"
    if state.flash:
        return state.flash, "flash"
    hints = f"{PANE_HINTS.get(state.focused_pane, '')} {COMMON_HINTS}"
    if state.loading:
        hints = f"Loading...  {hints}"
    return hints, ""


def render_steps_header(state: DashboardState) -> str:
    parsed = state.parsed_logs
    if parsed is None or not parsed.steps:
        return " Logs"
    if state.selected_step < 0:
        return f" Logs (all {len(parsed.steps)} steps)"
    step = parsed.steps[state.selected_step]
    return f" Logs: {step.name} ({state.selected_step + 1}/{len(parsed.steps)})"


# ============================================================================
# Modals
# ============================================================================


class HelpScreen(ModalScreen[None]):
    """Overlay listing the key bindings by section."""

    BINDINGS = [
        Binding("question_mark", "close", "Close", show=False),
        Binding("escape", "close", "Close"),
        Binding("q", "close", "Close", show=False),
    ]

    CSS = """
    HelpScreen {
        align: center middle;
    }

    #help-dialog {
        width: 70%;
        height: 80%;
        min-width: 50;
        border: tall $accent;
        padding: 0 2;
    }

    #help-title {
        text-style: bold;
        width: 100%;
        text-align: center;
        margin-bottom: 1;
    }

    .help-section-title {
        text-style: bold;
    }

    .help-keys {
        margin-bottom: 1;
    }

    #help-footer {
        width: 100%;
        text-align: center;
        color: $text-muted;
    }
    """

    def __init__(self, sections: list[tuple[str, list[tuple[str, str]]]] | None = None) -> None:
        super().__init__()
        self._sections = sections or list(HELP_SECTIONS)

    @staticmethod
    def _render_section(entries: list[tuple[str, str]]) -> Text:
        width = max(len(key) for key, _ in entries)
        text = Text()
        for index, (key, description) in enumerate(entries):
            if index:
                text.append("\n")
            text.append(f"  {key.ljust(width)}", style="green")
            text.append(f"  {description}")
        return text

    def compose(self) -> ComposeResult:
        with VerticalScroll(id="help-dialog"):
            yield Label("Keyboard Shortcuts", id="help-title")
            for name, entries in self._sections:
                if not entries:
                    continue
                yield Label(name, classes="help-section-title", markup=False)
                yield Static(self._render_section(entries), classes="help-keys")
            yield Label("Close: ? / Esc / q", id="help-footer", markup=False)

    def action_close(self) -> None:
        self.dismiss(None)


class ConfirmModal(ModalScreen[bool]):
    """Yes/no confirmation for destructive actions."""

    BINDINGS = [
        Binding("y", "confirm", "Confirm"),
        Binding("n", "cancel", "Cancel"),
        Binding("escape", "cancel", "Cancel"),
    ]

    CSS = """
    ConfirmModal {
        align: center middle;
    }

    #confirm-dialog {
        width: 50%;
        min-width: 40;
        height: auto;
        border: tall $warning;
        padding: 0 2;
    }

    #confirm-buttons {
        height: auto;
        align: right middle;
    }
    """

    def __init__(self, message: str) -> None:
        super().__init__()
        self._message = message

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-dialog"):
            yield Label(self._message, id="confirm-message", markup=False)
            with Horizontal(id="confirm-buttons"):
                yield Button("Confirm (y)", variant="warning", id="confirm-yes")
                yield Button("Cancel (Esc)", variant="default", id="confirm-no")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)

    @on(Button.Pressed, "#confirm-yes")
    def on_yes(self) -> None:
        self.dismiss(True)

    @on(Button.Pressed, "#confirm-no")
    def on_no(self) -> None:
        self.dismiss(False)


class TriggerModal(ModalScreen[str | None]):
    """Ask for the git ref to dispatch a workflow on."""

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    CSS = """
    TriggerModal {
        align: center middle;
    }

    #trigger-dialog {
        width: 50%;
        min-width: 40;
        height: auto;
        border: tall $accent;
        padding: 0 2;
    }
    """

    def __init__(self, workflow_name: str, default_ref: str) -> None:
        super().__init__()
        self._workflow_name = workflow_name
        self._default_ref = default_ref

    def compose(self) -> ComposeResult:
        with Vertical(id="trigger-dialog"):
            yield Label(f"Trigger {self._workflow_name} on ref:", markup=False)
            yield Input(value=self._default_ref, id="trigger-ref")
            yield Static("Enter: run  Esc: cancel", id="trigger-footer")

    def on_mount(self) -> None:
        self.query_one("#trigger-ref", Input).focus()

    @on(Input.Submitted, "#trigger-ref")
    def on_submit(self, event: Input.Submitted) -> None:
        ref = event.value.strip()
        self.dismiss(ref or None)

    def action_cancel(self) -> None:
        self.dismiss(None)


__all__ = [
    "ConfirmModal",
    "HelpScreen",
    "TriggerModal",
    "render_job_option",
    "render_run_option",
    "render_status_bar",
    "render_steps_header",
    "render_workflow_option",
    "status_icon",
]
