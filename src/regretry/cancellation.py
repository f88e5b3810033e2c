"""Cancellation signals for interruptible waits between attempts."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Protocol

from regretry.errors import DeadlineExceeded, OperationCancelled


class CancellationSignal(Protocol):
    def wait(self, timeout: float) -> bool: ...


class CancelToken:
    """Cancellation signal with an optional deadline.

    ``wait`` blocks for at most ``timeout`` seconds and returns ``True`` when the
    token fired first. Once fired, a token stays fired.
    """

    def __init__(
        self,
        deadline_seconds: float | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self._event = threading.Event()
        self._deadline = None if deadline_seconds is None else clock() + deadline_seconds
        self._expired = False

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and self._clock() >= self._deadline:
            self._expired = True
            self._event.set()
            return True
        return False

    def remaining(self) -> float | None:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    def wait(self, timeout: float) -> bool:
        if self.cancelled:
            return True
        remaining = self.remaining()
        if remaining is not None and remaining <= timeout:
            if self._event.wait(remaining):
                return True
            self._expired = True
            self._event.set()
            return True
        return self._event.wait(timeout)

    def error(self) -> Exception | None:
        if not self.cancelled:
            return None
        if self._expired:
            return DeadlineExceeded()
        return OperationCancelled()
