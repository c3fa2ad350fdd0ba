"""CLI/bootstrap helpers for the actions dashboard."""

from __future__ import annotations

import argparse
import logging
import logging.handlers
import sys
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from actions_dash.action_messages import build_actionable_error
from actions_dash.auth import AuthError, SecureToken, get_token
from actions_dash.config import MIN_INTERVAL, UserConfig, load_config
from actions_dash.models import CONFIG_APP_NAME, Repository
from actions_dash.repo import RepositoryError, detect, parse_repository

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool) -> None:
    """Configure logging. When debug=True, logs to file at DEBUG level."""
    if not debug:
        # Default: suppress all logging (TUI captures stderr)
        logging.disable(logging.CRITICAL)
        return

    log_dir = Path(user_config_dir(CONFIG_APP_NAME))
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "debug.log"

    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.DEBUG)


def _validate_interactive_tty() -> bool:
    """Return True when stdin/stdout are interactive terminals."""
    return bool(sys.stdin.isatty() and sys.stdout.isatty())


def _positive_interval(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if seconds < MIN_INTERVAL:
        raise argparse.ArgumentTypeError(f"interval must be at least {MIN_INTERVAL} seconds")
    return seconds


def _resolve_repository(repo_arg: str | None, detect_fn: Callable[[], Repository]) -> Repository:
    if repo_arg:
        return parse_repository(repo_arg)
    return detect_fn()


def main(
    argv: list[str] | None = None,
    *,
    load_config_fn: Callable[[], UserConfig] = load_config,
    get_token_fn: Callable[[], SecureToken] = get_token,
    detect_repo_fn: Callable[[], Repository] = detect,
    configure_logging_fn: Callable[[bool], None] = _configure_logging,
    validate_interactive_tty_fn: Callable[[], bool] = _validate_interactive_tty,
    app_factory: Callable[..., Any] | None = None,
) -> int:
    """Main entry point. Returns exit code."""
    parser = argparse.ArgumentParser(
        prog="actions-dash",
        description="Browse and control GitHub Actions workflows in a TUI",
    )
    parser.add_argument(
        "--repo",
        type=str,
        default=None,
        help="Repository as OWNER/NAME (default: detected from the git remote 'origin')",
    )
    parser.add_argument(
        "--interval",
        type=_positive_interval,
        default=None,
        help="Base refresh interval in seconds (default: config value)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to file (~/.config/actions-dash/debug.log)",
    )
    args = parser.parse_args(argv)

    configure_logging_fn(args.debug)
    logger.debug("actions-dash starting, cwd=%s", Path.cwd())

    config = load_config_fn()
    if args.interval is not None:
        config = replace(
            config,
            poll_base_interval=args.interval,
            poll_max_interval=max(config.poll_max_interval, args.interval),
        )

    try:
        repository = _resolve_repository(args.repo, detect_repo_fn)
    except RepositoryError as e:
        print(
            build_actionable_error(
                "determine the repository",
                why=str(e),
                next_step="run inside a GitHub clone or pass --repo OWNER/NAME",
            ),
            file=sys.stderr,
        )
        return 1

    try:
        token = get_token_fn()
    except AuthError as e:
        print(
            build_actionable_error(
                "authenticate with GitHub",
                why=str(e),
                next_step="run 'gh auth login' or set GITHUB_TOKEN",
            ),
            file=sys.stderr,
        )
        return 1

    if not validate_interactive_tty_fn():
        print(
            "Error: actions-dash requires an interactive TTY for the full UI.",
            file=sys.stderr,
        )
        print("Next steps:", file=sys.stderr)
        print("  - Run actions-dash directly in a terminal session", file=sys.stderr)
        print("  - Use --help for command documentation", file=sys.stderr)
        return 2

    if app_factory is None:
        from actions_dash.app import ActionsDashApp as _ActionsDashApp

        app_factory = _ActionsDashApp

    logger.debug("Opening dashboard for %s", repository.full_name)
    app = app_factory(repository, token=token, config=config)
    app.run()
    return 0


__all__ = [
    "_configure_logging",
    "_validate_interactive_tty",
    "main",
]
