"""Internal UI constants for the ActionsDashApp."""

from __future__ import annotations

from textual.binding import Binding, BindingType

from actions_dash.state import PANE_JOBS, PANE_RUNS, PANE_WORKFLOWS

APP_CSS = """
#main-container {
    height: 1fr;
}

.pane {
    width: 1fr;
    height: 100%;
    border: tall $panel;
}

.pane.focused {
    border: tall $accent;
}

.pane-title {
    text-style: bold;
    padding: 0 1;
}

.pane OptionList {
    height: 1fr;
    border: none;
}

#log-pane {
    width: 2fr;
    height: 100%;
    border: tall $panel;
}

#log-scroll {
    height: 1fr;
}

#main-container.log-fullscreen .pane {
    display: none;
}

#filter-input {
    display: none;
}

#filter-input.visible {
    display: block;
}

#status-bar {
    dock: bottom;
    height: 1;
    width: 100%;
    padding: 0 1;
    background: $panel;
    color: $text-muted;
}

#status-bar.error {
    color: $error;
}

#status-bar.flash {
    color: $success;
}
"""

APP_BINDINGS: list[BindingType] = [
    Binding("q", "quit", "Quit", show=False),
    Binding("j", "cursor_down", "Down", show=False),
    Binding("down", "cursor_down", "Down", show=False),
    Binding("k", "cursor_up", "Up", show=False),
    Binding("up", "cursor_up", "Up", show=False),
    Binding("tab", "next_pane", "Next pane", show=False, priority=True),
    Binding("shift+tab", "prev_pane", "Previous pane", show=False, priority=True),
    Binding("h", "prev_pane", "Previous pane", show=False),
    Binding("l", "next_pane", "Next pane", show=False),
    Binding("slash", "toggle_filter", "Filter", show=False),
    Binding("escape", "escape", "Dismiss", show=False),
    Binding("c", "cancel_run", "Cancel run", show=False),
    Binding("r", "rerun", "Rerun", show=False),
    Binding("R", "rerun_failed", "Rerun failed", show=False),
    Binding("t", "trigger", "Trigger", show=False),
    Binding("ctrl+r", "refresh", "Refresh", show=False),
    Binding("left_square_bracket", "step_prev", "Previous step", show=False),
    Binding("right_square_bracket", "step_next", "Next step", show=False),
    Binding("L", "toggle_log_fullscreen", "Full-screen log", show=False),
    Binding("question_mark", "show_help", "Help", show=False),
]

PANE_HINTS = {
    PANE_WORKFLOWS: "[t]rigger [/]filter",
    PANE_RUNS: "[c]ancel [r]erun [R]erun-failed [/]filter",
    PANE_JOBS: "[ and ] step [/]filter",
}
COMMON_HINTS = "[j/k]move [h/l]pane [L]og [?]help [q]uit"

HELP_SECTIONS: list[tuple[str, list[tuple[str, str]]]] = [
    (
        "Navigation",
        [
            ("j / k", "Move down / up in the focused pane"),
            ("h / l, Tab / Shift+Tab", "Previous / next pane"),
            ("[ / ]", "Previous / next log step"),
            ("L", "Toggle full-screen log"),
        ],
    ),
    (
        "Filter",
        [
            ("/", "Filter the focused pane"),
            ("Esc", "Close the filter or dismiss an error"),
        ],
    ),
    (
        "Actions",
        [
            ("c", "Cancel the selected run"),
            ("r", "Rerun the selected run"),
            ("R", "Rerun failed jobs"),
            ("t", "Trigger the selected workflow"),
            ("Ctrl+r", "Refresh everything"),
            ("?", "This help"),
            ("q", "Quit"),
        ],
    ),
]


__all__ = [
    "APP_BINDINGS",
    "APP_CSS",
    "COMMON_HINTS",
    "HELP_SECTIONS",
    "PANE_HINTS",
]
