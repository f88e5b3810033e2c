from __future__ import annotations

import threading

import pytest

from regretry.cancellation import CancelToken
from regretry.errors import DeadlineExceeded, OperationCancelled
from regretry.retry import RetryOptions, retry_if_necessary


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_token_without_deadline_waits_full_timeout() -> None:
    token = CancelToken()

    assert token.wait(0.0) is False
    assert token.cancelled is False
    assert token.remaining() is None
    assert token.error() is None


def test_cancel_fires_and_stays_fired() -> None:
    token = CancelToken()
    token.cancel()

    assert token.cancelled is True
    assert token.wait(10.0) is True
    assert token.wait(0.0) is True
    assert isinstance(token.error(), OperationCancelled)


def test_deadline_expiry_fires_token() -> None:
    clock = FakeClock()
    token = CancelToken(5.0, clock=clock)

    assert token.remaining() == 5.0
    assert token.cancelled is False

    clock.now = 105.0
    assert token.cancelled is True
    assert token.remaining() == 0.0
    assert token.wait(1.0) is True
    assert isinstance(token.error(), DeadlineExceeded)


def test_wait_beyond_deadline_returns_cancelled() -> None:
    token = CancelToken(0.01)

    assert token.wait(30.0) is True
    assert isinstance(token.error(), DeadlineExceeded)


def test_cancel_from_another_thread_interrupts_wait() -> None:
    token = CancelToken()
    timer = threading.Timer(0.01, token.cancel)
    timer.start()
    try:
        assert token.wait(30.0) is True
    finally:
        timer.cancel()


def test_threading_event_is_a_cancellation_signal() -> None:
    event = threading.Event()
    event.set()
    first = ConnectionResetError("first")
    calls: list[int] = []

    def operation() -> str:
        calls.append(1)
        raise first

    with pytest.raises(ConnectionResetError) as exc:
        retry_if_necessary(operation, RetryOptions(max_retry=3), cancel=event, on_retry=None)
    assert exc.value is first
    assert calls == [1]


def test_expired_deadline_stops_retry_loop_with_operation_error() -> None:
    token = CancelToken(0.0)
    failure = BrokenPipeError()
    calls: list[int] = []

    def operation() -> str:
        calls.append(1)
        raise failure

    with pytest.raises(BrokenPipeError) as exc:
        retry_if_necessary(operation, RetryOptions(max_retry=3), cancel=token, on_retry=None)
    assert exc.value is failure
    assert calls == [1]
