"""Redact likely secrets from job logs before they are displayed."""

from __future__ import annotations

import re

REDACTED = "[REDACTED]"

_SECRET_PATTERNS: tuple[re.Pattern[str], ...] = (
    # GitHub tokens
    re.compile(r"ghp_[a-zA-Z0-9]{36}"),
    re.compile(r"github_pat_[a-zA-Z0-9]{22}_[a-zA-Z0-9]{59}"),
    re.compile(r"gho_[a-zA-Z0-9]{36}"),
    re.compile(r"ghs_[a-zA-Z0-9]{36}"),
    # AWS
    re.compile(r"AKIA[0-9A-Z]{16}"),
    re.compile(
        r"(?i)(aws_secret_access_key|aws_access_key_id)\s*[=:]\s*['\"]?[A-Za-z0-9/+=]{20,}['\"]?"
    ),
    # Generic key=value secrets
    re.compile(
        r"(?i)(api[_-]?key|apikey|secret|password|token|credential|auth)[=:]\s*['\"]?[^\s'\"]{8,}['\"]?"
    ),
)


def sanitize_logs(logs: str) -> str:
    result = logs
    for pattern in _SECRET_PATTERNS:
        result = pattern.sub(REDACTED, result)
    return result


def contains_potential_secrets(content: str) -> bool:
    return any(pattern.search(content) for pattern in _SECRET_PATTERNS)


__all__ = [
    "REDACTED",
    "contains_potential_secrets",
    "sanitize_logs",
]
