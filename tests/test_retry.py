"""Tests for retry_with_backoff and backoff_delay."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from actions_dash.errors import ClassifiedError, ErrorKind
from actions_dash.retry import backoff_delay, retry_with_backoff


def _retryable() -> ClassifiedError:
    return ClassifiedError(ErrorKind.SERVER, "GitHub server error", retryable=True)


def _fatal() -> ClassifiedError:
    return ClassifiedError(ErrorKind.AUTH, "Authentication failed")


class _Flaky:
    """Operation that raises the queued errors, then returns ``value``."""

    def __init__(self, errors: list[BaseException], value: str = "ok") -> None:
        self.errors = list(errors)
        self.value = value
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.value


class _RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class TestRetryWithBackoff:
    @pytest.mark.asyncio
    async def test_succeeds_after_two_retryable_failures(self):
        op = _Flaky([_retryable(), _retryable()])
        sleep = _RecordingSleep()
        result = await retry_with_backoff(3, op, sleep=sleep)
        assert result == "ok"
        assert op.calls == 3
        assert len(sleep.delays) == 2

    @pytest.mark.asyncio
    async def test_non_retryable_fails_after_one_attempt(self):
        err = _fatal()
        op = _Flaky([err])
        sleep = _RecordingSleep()
        with pytest.raises(ClassifiedError) as excinfo:
            await retry_with_backoff(3, op, sleep=sleep)
        assert excinfo.value is err
        assert op.calls == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_exhaustion_raises_last_error(self):
        errors = [_retryable(), _retryable(), _retryable()]
        last = errors[-1]
        op = _Flaky(errors)
        sleep = _RecordingSleep()
        with pytest.raises(ClassifiedError) as excinfo:
            await retry_with_backoff(3, op, sleep=sleep)
        assert excinfo.value is last
        assert op.calls == 3
        # No sleep after the final attempt.
        assert len(sleep.delays) == 2

    @pytest.mark.asyncio
    async def test_raw_exceptions_are_classified(self):
        op = _Flaky([RuntimeError("boom")])
        with pytest.raises(ClassifiedError) as excinfo:
            await retry_with_backoff(3, op, sleep=_RecordingSleep())
        assert excinfo.value.kind is ErrorKind.UNKNOWN
        assert isinstance(excinfo.value.__cause__, RuntimeError)
        assert op.calls == 1

    @pytest.mark.asyncio
    async def test_exhausted_transport_errors_surface_as_network(self):
        op = _Flaky([httpx.ConnectError("refused"), httpx.ConnectError("refused again")])
        sleep = _RecordingSleep()
        with pytest.raises(ClassifiedError) as excinfo:
            await retry_with_backoff(2, op, sleep=sleep)
        assert excinfo.value.kind is ErrorKind.NETWORK
        assert str(excinfo.value.__cause__) == "refused again"
        assert len(sleep.delays) == 1

    @pytest.mark.asyncio
    async def test_zero_attempts_still_tries_once(self):
        op = _Flaky([])
        assert await retry_with_backoff(0, op, sleep=_RecordingSleep()) == "ok"
        assert op.calls == 1

    @pytest.mark.asyncio
    async def test_retry_after_is_honoured(self):
        err = ClassifiedError(
            ErrorKind.RATE_LIMIT, "Too many requests", retryable=True, retry_after=3.0
        )
        op = _Flaky([err])
        sleep = _RecordingSleep()
        await retry_with_backoff(2, op, sleep=sleep, max_backoff=8.0)
        assert sleep.delays == [3.0]

    @pytest.mark.asyncio
    async def test_cancellation_is_not_retried(self):
        op = _Flaky([asyncio.CancelledError()])
        with pytest.raises(asyncio.CancelledError):
            await retry_with_backoff(3, op, sleep=_RecordingSleep())
        assert op.calls == 1


class TestBackoffDelay:
    def test_doubles_per_attempt_without_jitter(self):
        no_jitter = lambda low, high: 0.0  # noqa: E731
        delays = [backoff_delay(n, initial_backoff=1.0, jitter=no_jitter) for n in range(4)]
        assert delays == [1.0, 2.0, 4.0, 8.0]

    def test_capped_by_max_backoff(self):
        full_jitter = lambda low, high: high  # noqa: E731
        assert backoff_delay(10, initial_backoff=1.0, max_backoff=8.0, jitter=full_jitter) == 8.0

    def test_retry_after_capped_by_max_backoff(self):
        assert backoff_delay(0, retry_after=120.0, max_backoff=8.0) == 8.0

    def test_jitter_adds_at_most_half(self):
        for attempt in range(3):
            delay = backoff_delay(attempt, initial_backoff=1.0, max_backoff=100.0)
            base = 2.0**attempt
            assert base <= delay <= base * 1.5
