"""Error taxonomy for API failures.

Raw transport/API exceptions are mapped onto a small set of kinds with a
retryable flag. The retry policy reads the flag; the UI shows the message.
"""

from __future__ import annotations

import enum
import logging
import time
from collections.abc import Callable

import httpx

logger = logging.getLogger(__name__)

RATE_LIMIT_REMAINING_HEADER = "X-RateLimit-Remaining"
RATE_LIMIT_RESET_HEADER = "X-RateLimit-Reset"
RETRY_AFTER_HEADER = "Retry-After"


class ErrorKind(enum.Enum):
    NETWORK = "network"
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    NOT_FOUND = "not_found"
    SERVER = "server"
    UNKNOWN = "unknown"


class ClassifiedError(Exception):
    """An API failure with its kind, a user-facing message and retry hints."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        cause: BaseException | None = None,
        retryable: bool = False,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause
        self.retryable = retryable
        self.retry_after = retry_after
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"ClassifiedError(kind={self.kind.name}, message={self.message!r}, "
            f"retryable={self.retryable}, retry_after={self.retry_after!r})"
        )


def _parse_retry_after(headers: httpx.Headers, now: Callable[[], float]) -> float | None:
    """Seconds to wait, from ``Retry-After`` or the rate limit reset epoch."""
    raw = headers.get(RETRY_AFTER_HEADER)
    if raw is not None:
        try:
            return max(0.0, float(raw))
        except ValueError:
            logger.debug("Ignoring non-numeric Retry-After header %r", raw)
    reset = headers.get(RATE_LIMIT_RESET_HEADER)
    if reset is not None:
        try:
            return max(0.0, float(reset) - now())
        except ValueError:
            logger.debug("Ignoring non-numeric rate limit reset header %r", reset)
    return None


def _classify_status(
    err: httpx.HTTPStatusError, now: Callable[[], float]
) -> ClassifiedError:
    response = err.response
    status = response.status_code
    if status == 401:
        return ClassifiedError(ErrorKind.AUTH, "Authentication failed", cause=err)
    if status == 403:
        if response.headers.get(RATE_LIMIT_REMAINING_HEADER) == "0":
            return ClassifiedError(
                ErrorKind.RATE_LIMIT,
                "Rate limit exceeded",
                cause=err,
                retryable=True,
                retry_after=_parse_retry_after(response.headers, now),
            )
        return ClassifiedError(ErrorKind.AUTH, "Access denied", cause=err)
    if status == 404:
        return ClassifiedError(ErrorKind.NOT_FOUND, "Resource not found", cause=err)
    if status == 429:
        return ClassifiedError(
            ErrorKind.RATE_LIMIT,
            "Too many requests",
            cause=err,
            retryable=True,
            retry_after=_parse_retry_after(response.headers, now),
        )
    if status >= 500:
        return ClassifiedError(ErrorKind.SERVER, "GitHub server error", cause=err, retryable=True)
    return ClassifiedError(ErrorKind.UNKNOWN, "Unexpected error", cause=err)


def classify(
    err: BaseException | None,
    *,
    now: Callable[[], float] = time.time,
) -> ClassifiedError | None:
    """Map an exception onto the error taxonomy. ``None`` maps to ``None``."""
    if err is None:
        return None
    return classify_exception(err, now=now)


def classify_exception(
    err: BaseException,
    *,
    now: Callable[[], float] = time.time,
) -> ClassifiedError:
    if isinstance(err, ClassifiedError):
        return err
    if isinstance(err, httpx.HTTPStatusError):
        return _classify_status(err, now)
    if isinstance(err, httpx.TransportError):
        return ClassifiedError(ErrorKind.NETWORK, "Network error", cause=err, retryable=True)
    return ClassifiedError(ErrorKind.UNKNOWN, "Unexpected error", cause=err)


def find_classified(err: BaseException | None) -> ClassifiedError | None:
    """Walk the ``__cause__`` chain and return the first ClassifiedError."""
    seen: set[int] = set()
    current = err
    while current is not None and id(current) not in seen:
        if isinstance(current, ClassifiedError):
            return current
        seen.add(id(current))
        current = current.__cause__
    return None


def is_retryable(err: BaseException | None) -> bool:
    """Return the retryable flag of a wrapped ClassifiedError, else False."""
    classified = find_classified(err)
    return classified.retryable if classified is not None else False


__all__ = [
    "ClassifiedError",
    "ErrorKind",
    "classify",
    "classify_exception",
    "find_classified",
    "is_retryable",
]
