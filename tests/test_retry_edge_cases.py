"""Retry module edge case tests."""

from __future__ import annotations

import pytest

from regretry.errors import WrappedError
from regretry.retry import MAX_DELAY_SECONDS, RetryOptions, backoff_delay, retry_if_necessary


def test_retry_zero_max_retry_calls_operation_once() -> None:
    call_count = {"count": 0}

    def operation() -> str:
        call_count["count"] += 1
        raise ConnectionResetError("reset")

    with pytest.raises(ConnectionResetError):
        retry_if_necessary(operation, RetryOptions(max_retry=0), sleep=lambda _: None)
    assert call_count["count"] == 1


def test_retry_zero_delay_unit_waits_zero_seconds() -> None:
    call_count = {"count": 0}
    delays: list[float] = []

    def operation() -> str:
        call_count["count"] += 1
        if call_count["count"] < 3:
            raise BrokenPipeError()
        return "ok"

    result = retry_if_necessary(
        operation,
        RetryOptions(max_retry=5, delay_unit_seconds=0.0),
        sleep=delays.append,
        on_retry=None,
    )
    assert result == "ok"
    assert delays == [0.0, 0.0]


def test_retry_succeeds_first_try() -> None:
    result = retry_if_necessary(
        lambda: "success",
        RetryOptions(max_retry=3),
        sleep=lambda _: pytest.fail("no wait expected"),
    )
    assert result == "success"


def test_retry_returns_none_results_verbatim() -> None:
    assert retry_if_necessary(lambda: None, RetryOptions()) is None


def test_retry_raises_wrapped_error_unchanged() -> None:
    failure = WrappedError("pushing layer", ConnectionResetError())
    calls: list[int] = []

    def operation() -> str:
        calls.append(1)
        raise failure

    with pytest.raises(WrappedError) as exc:
        retry_if_necessary(operation, RetryOptions(max_retry=2), sleep=lambda _: None, on_retry=None)
    assert exc.value is failure
    assert len(calls) == 3


def test_retry_large_max_retry_with_zero_delay_unit_raises_last_error() -> None:
    call_count = {"count": 0}
    last = {"error": None}

    def operation() -> str:
        call_count["count"] += 1
        last["error"] = ConnectionResetError(f"reset {call_count['count']}")
        raise last["error"]

    with pytest.raises(ConnectionResetError) as exc:
        retry_if_necessary(
            operation,
            RetryOptions(max_retry=1100, delay_unit_seconds=0.0),
            sleep=lambda _: None,
            on_retry=None,
        )
    assert call_count["count"] == 1101
    assert exc.value is last["error"]


def test_backoff_delay_is_capped_for_huge_attempts() -> None:
    options = RetryOptions(max_retry=5000)

    assert backoff_delay(10, options) == 1024.0
    assert backoff_delay(1024, options) == MAX_DELAY_SECONDS
    assert backoff_delay(4999, options) == MAX_DELAY_SECONDS
    assert backoff_delay(4999, RetryOptions(max_retry=5000, delay_unit_seconds=0.0)) == 0.0


def test_retry_huge_delays_reach_sleep_capped() -> None:
    delays: list[float] = []
    call_count = {"count": 0}

    def operation() -> str:
        call_count["count"] += 1
        if call_count["count"] <= 1030:
            raise BrokenPipeError()
        return "ok"

    result = retry_if_necessary(operation, RetryOptions(max_retry=1030), sleep=delays.append, on_retry=None)

    assert result == "ok"
    assert len(delays) == 1030
    assert delays[0] == 1.0
    assert delays[-1] == MAX_DELAY_SECONDS
