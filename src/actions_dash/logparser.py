"""Split raw job logs into steps using the ``##[group]`` markers."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

ALL_STEPS = -1

_GROUP_START_RE = re.compile(r"##\[group\](.+)$")
_GROUP_END_RE = re.compile(r"##\[endgroup\]")
_TIMESTAMP_RE = re.compile(r"^(\d{4}-\d{2}-\d{2}T(\d{2}:\d{2}:\d{2})\.\d+Z)\s*")


@dataclass(slots=True)
class StepLog:
    """Lines belonging to one step, with their span in the raw log."""

    name: str
    lines: list[str] = field(default_factory=list)
    start_line: int = 0
    end_line: int = 0


@dataclass(slots=True)
class ParsedLogs:
    raw: str = ""
    steps: list[StepLog] = field(default_factory=list)
    all_lines: list[str] = field(default_factory=list)

    def step_logs(self, index: int) -> str:
        """Text for step ``index``; ``ALL_STEPS`` returns the whole log."""
        if index == ALL_STEPS:
            return self.raw
        if index < 0 or index >= len(self.steps):
            return ""
        return "\n".join(self.steps[index].lines)

    def format_step_logs(self, index: int) -> str:
        """Like ``step_logs`` with timestamps shortened to HH:MM:SS."""
        logs = self.step_logs(index)
        if not logs:
            return ""
        return "\n".join(format_log_line(line) for line in logs.split("\n"))


def parse_logs(raw: str) -> ParsedLogs:
    """Parse a job log. An unclosed group (job still running) runs to the end."""
    parsed = ParsedLogs(raw=raw)
    if not raw:
        return parsed

    lines = raw.split("\n")
    parsed.all_lines = lines
    current: StepLog | None = None

    for i, line in enumerate(lines):
        match = _GROUP_START_RE.search(line)
        if match:
            if current is not None:
                current.end_line = i - 1
                parsed.steps.append(current)
            current = StepLog(name=match.group(1), lines=[line], start_line=i)
            continue

        if _GROUP_END_RE.search(line):
            if current is not None:
                current.lines.append(line)
                current.end_line = i
                parsed.steps.append(current)
                current = None
            continue

        if current is not None:
            current.lines.append(line)

    if current is not None:
        current.end_line = len(lines) - 1
        parsed.steps.append(current)

    return parsed


def format_log_line(line: str) -> str:
    """``2024-01-15T10:00:00.000Z msg`` -> ``10:00:00 msg``."""
    if not line:
        return ""
    match = _TIMESTAMP_RE.match(line)
    if match is None:
        return line
    return f"{match.group(2)} {line[match.end():]}"


__all__ = [
    "ALL_STEPS",
    "ParsedLogs",
    "StepLog",
    "format_log_line",
    "parse_logs",
]
