"""UI-facing copy for errors, confirmations and flash notices."""

from __future__ import annotations

from actions_dash.errors import ClassifiedError, ErrorKind

_NEXT_STEPS = {
    ErrorKind.AUTH: "run `gh auth login` or set GITHUB_TOKEN, then press Esc",
    ErrorKind.RATE_LIMIT: "wait for the rate limit to reset, then press Esc",
    ErrorKind.NOT_FOUND: "check the repository name and your access to it",
    ErrorKind.NETWORK: "check your connection, then press Esc to retry",
    ErrorKind.SERVER: "GitHub may be degraded; press Esc to retry shortly",
}
_DEFAULT_NEXT_STEP = "press Esc to dismiss and refresh"


def _ensure_sentence(text: str) -> str:
    cleaned = text.strip()
    if not cleaned:
        return ""
    if cleaned.endswith((".", "!", "?")):
        return cleaned
    return f"{cleaned}."


def build_next_step_hint(next_step: str) -> str:
    return f"Next step: {_ensure_sentence(next_step)}"


def build_actionable_error(
    action: str,
    *,
    next_step: str,
    why: str | None = None,
) -> str:
    """Build a 2-3 line actionable error message."""
    lines = [f"Could not {action.strip()}."]
    if why:
        lines.append(f"Why: {_ensure_sentence(why)}")
    lines.append(build_next_step_hint(next_step))
    return "\n".join(lines)


def next_step_for(error: ClassifiedError) -> str:
    """Suggest what the user can do about ``error``."""
    return _NEXT_STEPS.get(error.kind, _DEFAULT_NEXT_STEP)


def describe_error(action: str, error: ClassifiedError) -> str:
    return build_actionable_error(action, why=error.message, next_step=next_step_for(error))


def build_cancel_run_prompt(run_name: str, run_id: int) -> str:
    label = run_name or "run"
    return f"Cancel {label} #{run_id}? [y/n]"


def build_trigger_notice(workflow: str) -> str:
    return f"Workflow triggered: {workflow}"


__all__ = [
    "build_actionable_error",
    "build_cancel_run_prompt",
    "build_next_step_hint",
    "build_trigger_notice",
    "describe_error",
    "next_step_for",
]
