"""Bounded retry with exponential backoff for read-only API calls.

Only transient failures (see ``errors.classify``) are retried. Mutating
actions must never go through here, a retried trigger would run a workflow
twice.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from actions_dash.errors import classify_exception

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_ATTEMPTS = 3
INITIAL_BACKOFF = 1.0  # seconds, doubles each retry
MAX_BACKOFF = 8.0  # seconds


def backoff_delay(
    attempt: int,
    *,
    initial_backoff: float = INITIAL_BACKOFF,
    max_backoff: float = MAX_BACKOFF,
    retry_after: float | None = None,
    jitter: Callable[[float, float], float] = random.uniform,
) -> float:
    """Delay before retry number ``attempt`` (0-based), never above ``max_backoff``."""
    if retry_after is not None:
        return min(max_backoff, max(0.0, retry_after))
    base = min(max_backoff, initial_backoff * (2**attempt))
    return min(max_backoff, base + jitter(0, base * 0.5))


async def retry_with_backoff(
    attempts: int,
    operation: Callable[[], Awaitable[T]],
    *,
    initial_backoff: float = INITIAL_BACKOFF,
    max_backoff: float = MAX_BACKOFF,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    label: str = "request",
) -> T:
    """Await ``operation`` up to ``attempts`` times.

    Raises the failure as a ClassifiedError as soon as it is non-retryable,
    or the last failure once attempts are exhausted. ``asyncio.CancelledError``
    is never retried.
    """
    attempts = max(1, attempts)
    attempt = 0
    while True:
        try:
            return await operation()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            classified = classify_exception(exc)
            exhausted = attempt == attempts - 1
            if not classified.retryable or exhausted:
                if classified.retryable:
                    logger.warning("%s failed after %d attempts", label, attempts)
                else:
                    logger.warning("%s failed (%s), not retrying", label, classified.kind.name)
                if classified is exc:
                    raise
                raise classified from exc
            delay = backoff_delay(
                attempt,
                initial_backoff=initial_backoff,
                max_backoff=max_backoff,
                retry_after=classified.retry_after,
            )
            logger.info(
                "%s %s, retrying in %.1fs (attempt %d/%d)",
                label,
                classified.kind.name,
                delay,
                attempt + 1,
                attempts,
            )
            await sleep(delay)
            attempt += 1


__all__ = [
    "DEFAULT_ATTEMPTS",
    "INITIAL_BACKOFF",
    "MAX_BACKOFF",
    "backoff_delay",
    "retry_with_backoff",
]
