"""Repository detection from the git remote, plus name validation."""

from __future__ import annotations

import logging
import re
import subprocess
from collections.abc import Callable
from pathlib import Path
from urllib.parse import urlparse

from actions_dash.models import Repository

logger = logging.getLogger(__name__)

GIT_TIMEOUT = 10  # seconds
SSH_PREFIX = "git@github.com:"

# Alphanumerics and single inner hyphens, at most 39 characters.
_OWNER_RE = re.compile(r"^[a-zA-Z0-9-]{1,39}$")
_REPO_NAME_RE = re.compile(r"^[a-zA-Z0-9._-]{1,100}$")
_WORKFLOW_PATH_RE = re.compile(r"^\.github/workflows/[a-zA-Z0-9._-]+\.(yml|yaml)$")


class RepositoryError(ValueError):
    """Raised when a repository cannot be detected or is malformed."""


class NotGitRepositoryError(RepositoryError):
    pass


class NotGitHubRepositoryError(RepositoryError):
    pass


# ============================================================================
# Validation
# ============================================================================


def validate_owner(owner: str) -> None:
    if not owner:
        raise RepositoryError("invalid owner name: cannot be empty")
    if (
        not _OWNER_RE.match(owner)
        or owner.startswith("-")
        or owner.endswith("-")
        or "--" in owner
    ):
        raise RepositoryError(f"invalid owner name: {owner!r}")


def validate_repo_name(name: str) -> None:
    if not name:
        raise RepositoryError("invalid repository name: cannot be empty")
    if not _REPO_NAME_RE.match(name):
        raise RepositoryError(f"invalid repository name: {name!r}")


def validate_repository(owner: str, name: str) -> None:
    validate_owner(owner)
    validate_repo_name(name)


def validate_workflow_path(path: str) -> None:
    """Accept only ``.github/workflows/<file>.yml`` or ``.yaml``."""
    if not path:
        raise RepositoryError("invalid workflow path: cannot be empty")
    if not _WORKFLOW_PATH_RE.match(path):
        raise RepositoryError(f"invalid workflow path: {path!r}")


# ============================================================================
# Parsing
# ============================================================================


def _split_owner_name(path: str, url: str, kind: str) -> Repository:
    path = path.strip("/").removesuffix(".git")
    parts = path.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise RepositoryError(f"invalid GitHub {kind} URL: {url}")
    return Repository(owner=parts[0], name=parts[1])


def parse_github_url(url: str) -> Repository:
    """Extract owner/name from an SSH or HTTP(S) GitHub remote URL.

    Supported: ``git@github.com:owner/repo(.git)``,
    ``https://github.com/owner/repo(.git)`` and the ``http`` variant.
    """
    url = url.strip()
    if url.startswith(SSH_PREFIX):
        return _split_owner_name(url[len(SSH_PREFIX) :], url, "SSH")
    if "github.com" in url:
        parsed = urlparse(url)
        return _split_owner_name(parsed.path, url, "HTTPS")
    raise NotGitHubRepositoryError(f"not a GitHub repository: {url}")


def parse_repository(value: str) -> Repository:
    """Parse and validate an ``OWNER/NAME`` string."""
    owner, sep, name = value.strip().partition("/")
    if not sep or "/" in name:
        raise RepositoryError(f"expected OWNER/NAME, got {value!r}")
    validate_repository(owner, name)
    return Repository(owner=owner, name=name)


# ============================================================================
# Detection
# ============================================================================


def _run_git(args: list[str], cwd: Path | None) -> str:
    result = subprocess.run(  # nosec B603 B607
        ["git", *args],
        capture_output=True,
        check=True,
        cwd=cwd,
        shell=False,
        text=True,
        timeout=GIT_TIMEOUT,
    )
    return result.stdout.strip()


def detect(
    path: Path | None = None,
    *,
    run_git: Callable[[list[str], Path | None], str] = _run_git,
) -> Repository:
    """Detect the GitHub repository of ``path`` (default: current directory).

    Works from any subdirectory of the work tree.
    """
    try:
        run_git(["rev-parse", "--git-dir"], path)
    except (subprocess.CalledProcessError, FileNotFoundError, subprocess.TimeoutExpired) as e:
        raise NotGitRepositoryError("not a git repository") from e
    try:
        url = run_git(["remote", "get-url", "origin"], path)
    except (subprocess.CalledProcessError, FileNotFoundError, subprocess.TimeoutExpired) as e:
        raise RepositoryError(f"failed to get remote URL: {e}") from e
    repo = parse_github_url(url)
    logger.debug("Detected repository %s from %s", repo.full_name, url)
    return repo


__all__ = [
    "NotGitHubRepositoryError",
    "NotGitRepositoryError",
    "RepositoryError",
    "detect",
    "parse_github_url",
    "parse_repository",
    "validate_owner",
    "validate_repo_name",
    "validate_repository",
    "validate_workflow_path",
]
