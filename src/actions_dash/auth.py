"""GitHub token resolution: ``gh auth token`` first, then environment variables."""

from __future__ import annotations

import logging
import os
import re
import subprocess
from collections.abc import Callable, Mapping

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"
TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")
TOKEN_PREFIXES = ("ghp_", "github_pat_", "gho_", "ghs_")
GH_CLI_TIMEOUT = 10  # seconds

_LEGACY_TOKEN_RE = re.compile(r"^[0-9a-fA-F]{40}$")


class AuthError(RuntimeError):
    """Raised when no usable token can be found."""


def is_valid_token_format(token: str) -> bool:
    """Check for a known GitHub token prefix or the legacy 40-hex format."""
    if not token:
        return False
    if token.startswith(TOKEN_PREFIXES):
        return True
    return bool(_LEGACY_TOKEN_RE.match(token))


class SecureToken:
    """A validated token whose value never appears in ``str``/``repr``."""

    __slots__ = ("_value",)

    def __init__(self, token: str) -> None:
        if not token:
            raise AuthError("token is empty")
        token = token.strip()
        if not is_valid_token_format(token):
            raise AuthError("invalid token format")
        self._value = token

    @property
    def value(self) -> str:
        """The raw token. Only pass this to the API client."""
        return self._value

    def __str__(self) -> str:
        return REDACTED

    def __repr__(self) -> str:
        return f"SecureToken({REDACTED})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, SecureToken) and other._value == self._value

    def __hash__(self) -> int:
        return hash(self._value)


def token_from_gh_cli() -> str:
    """Return the token printed by ``gh auth token``, or "" if unavailable."""
    try:
        result = subprocess.run(  # nosec B603 B607
            ["gh", "auth", "token"],
            capture_output=True,
            check=True,
            shell=False,
            text=True,
            timeout=GH_CLI_TIMEOUT,
        )
    except (
        subprocess.CalledProcessError,
        FileNotFoundError,
        subprocess.TimeoutExpired,
        OSError,
    ) as e:
        logger.debug("gh auth token unavailable: %s", e)
        return ""
    return result.stdout.strip()


def get_token(
    *,
    gh_cli: Callable[[], str] = token_from_gh_cli,
    environ: Mapping[str, str] | None = None,
) -> SecureToken:
    """Resolve a token: gh CLI, then GITHUB_TOKEN, then GH_TOKEN.

    Raises ``AuthError`` if none is found or the found token is malformed.
    """
    token = gh_cli()
    if token:
        logger.debug("Using token from gh CLI")
        return SecureToken(token)
    env = os.environ if environ is None else environ
    for name in TOKEN_ENV_VARS:
        token = env.get(name, "")
        if token:
            logger.debug("Using token from %s", name)
            return SecureToken(token)
    raise AuthError("no authentication token found")


__all__ = [
    "AuthError",
    "SecureToken",
    "get_token",
    "is_valid_token_format",
    "token_from_gh_cli",
]
