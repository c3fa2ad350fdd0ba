"""Tests for API error classification."""

from __future__ import annotations

import httpx
import pytest

from actions_dash.errors import (
    ClassifiedError,
    ErrorKind,
    classify,
    classify_exception,
    find_classified,
    is_retryable,
)


def _status_error(status: int, headers: dict[str, str] | None = None) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.github.com/repos/octo/widgets/actions/runs")
    response = httpx.Response(status, headers=headers or {}, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class TestClassifyStatus:
    @pytest.mark.parametrize(
        ("status", "kind", "retryable", "message"),
        [
            (401, ErrorKind.AUTH, False, "Authentication failed"),
            (403, ErrorKind.AUTH, False, "Access denied"),
            (404, ErrorKind.NOT_FOUND, False, "Resource not found"),
            (429, ErrorKind.RATE_LIMIT, True, "Too many requests"),
            (500, ErrorKind.SERVER, True, "GitHub server error"),
            (503, ErrorKind.SERVER, True, "GitHub server error"),
            (422, ErrorKind.UNKNOWN, False, "Unexpected error"),
        ],
    )
    def test_status_mapping(self, status, kind, retryable, message):
        result = classify(_status_error(status))
        assert result is not None
        assert result.kind is kind
        assert result.retryable is retryable
        assert result.message == message

    def test_403_with_exhausted_budget_is_rate_limit(self):
        err = _status_error(
            403, {"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1030"}
        )
        result = classify(err, now=lambda: 1000.0)
        assert result.kind is ErrorKind.RATE_LIMIT
        assert result.retryable
        assert result.retry_after == pytest.approx(30.0)

    def test_429_prefers_retry_after_header(self):
        err = _status_error(429, {"Retry-After": "7", "X-RateLimit-Reset": "5000"})
        result = classify(err, now=lambda: 1000.0)
        assert result.retry_after == pytest.approx(7.0)

    def test_reset_in_the_past_clamps_to_zero(self):
        err = _status_error(429, {"X-RateLimit-Reset": "10"})
        assert classify(err, now=lambda: 1000.0).retry_after == 0.0

    def test_malformed_retry_after_is_ignored(self):
        err = _status_error(429, {"Retry-After": "soon"})
        assert classify(err).retry_after is None

    def test_cause_is_preserved(self):
        err = _status_error(500)
        result = classify(err)
        assert result.cause is err
        assert result.__cause__ is err


class TestClassifyOther:
    def test_none_maps_to_none(self):
        assert classify(None) is None

    def test_classified_error_is_returned_unchanged(self):
        err = ClassifiedError(ErrorKind.AUTH, "nope")
        assert classify(err) is err

    def test_transport_error_is_retryable_network(self):
        err = httpx.ConnectError("connection refused")
        result = classify(err)
        assert result.kind is ErrorKind.NETWORK
        assert result.retryable

    def test_unknown_exception(self):
        result = classify(RuntimeError("boom"))
        assert result.kind is ErrorKind.UNKNOWN
        assert not result.retryable

    def test_classify_exception_always_returns_an_error(self):
        err = ValueError("bad payload")
        result = classify_exception(err)
        assert result.kind is ErrorKind.UNKNOWN
        assert result.__cause__ is err
        assert classify_exception(result) is result


class TestCauseChain:
    def test_find_classified_through_wrapping(self):
        inner = ClassifiedError(ErrorKind.SERVER, "down", retryable=True)
        try:
            try:
                raise inner
            except ClassifiedError as exc:
                raise RuntimeError("wrapped") from exc
        except RuntimeError as outer:
            assert find_classified(outer) is inner
            assert is_retryable(outer)

    def test_plain_exception_is_not_retryable(self):
        assert not is_retryable(ValueError("x"))
        assert not is_retryable(None)

    def test_cycle_does_not_hang(self):
        a = RuntimeError("a")
        b = RuntimeError("b")
        a.__cause__ = b
        b.__cause__ = a
        assert find_classified(a) is None

    def test_str_and_repr(self):
        err = ClassifiedError(ErrorKind.NETWORK, "Network error", retryable=True)
        assert str(err) == "Network error"
        assert "NETWORK" in repr(err)
