"""Cancellable periodic task used for live log polling.

A ``PeriodicTask`` owns a ``CancelScope``. ``start()`` returns a coroutine
that waits one interval, calls the probe, and either returns the probe's
result or keeps looping. ``stop()`` only signals; the loop notices at its
next wait or right after the probe returns.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

R = TypeVar("R")


class CancelScope:
    """A one-shot cancellation signal, safe to trigger any number of times."""

    __slots__ = ("_event",)

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def sleep(self, seconds: float) -> bool:
        """Wait up to ``seconds``. Returns True if cancelled while waiting."""
        if self._event.is_set():
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except TimeoutError:
            return self._event.is_set()
        return True


Probe = Callable[[CancelScope], Awaitable["R | None"]]


class PeriodicTask(Generic[R]):
    """Runs ``probe`` every ``interval`` seconds until it yields a result."""

    def __init__(self, interval: float, probe: Probe[R]) -> None:
        self._scope = CancelScope()
        self._interval = interval
        self._probe = probe

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def scope(self) -> CancelScope:
        return self._scope

    @property
    def stopped(self) -> bool:
        return self._scope.cancelled

    def start(self) -> Awaitable[R | None]:
        """Return the polling coroutine. It never raises."""
        return self._run()

    def stop(self) -> None:
        """Signal cancellation. Idempotent, also valid before ``start()``."""
        self._scope.cancel()

    async def _run(self) -> R | None:
        scope = self._scope
        while True:
            if await scope.sleep(self._interval):
                return None
            try:
                result = await self._probe(scope)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.error("Periodic probe failed, stopping", exc_info=True)
                return None
            if scope.cancelled:
                return None
            if result is not None:
                return result


__all__ = [
    "CancelScope",
    "PeriodicTask",
    "Probe",
]
