"""Exponential backoff retry loop for fallible operations."""

from __future__ import annotations

import logging as py_logging
import math
import threading
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field

from regretry.cancellation import CancellationSignal
from regretry.classify import is_retryable

T = TypeVar("T")

logger = py_logging.getLogger(__name__)

DEFAULT_MAX_RETRY = 3
DEFAULT_DELAY_UNIT_SECONDS = 1.0
# Longest wait time.sleep and threading.Event.wait accept.
MAX_DELAY_SECONDS = threading.TIMEOUT_MAX


class RetryOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_retry: int = Field(default=DEFAULT_MAX_RETRY, ge=0)
    delay_unit_seconds: float = Field(default=DEFAULT_DELAY_UNIT_SECONDS, ge=0)


@dataclass(frozen=True)
class RetryNotice:
    attempt: int
    max_retry: int
    delay_seconds: float


RetryObserver = Callable[[RetryNotice], None]


def backoff_delay(attempt: int, options: RetryOptions) -> float:
    if options.delay_unit_seconds == 0:
        return 0.0
    try:
        delay = math.ldexp(options.delay_unit_seconds, attempt)
    except OverflowError:
        return MAX_DELAY_SECONDS
    return min(delay, MAX_DELAY_SECONDS)


def backoff_delays(options: RetryOptions) -> Iterator[float]:
    for attempt in range(options.max_retry):
        yield backoff_delay(attempt, options)


def log_retry_notice(notice: RetryNotice) -> None:
    logger.info(
        "Warning: failed, retrying in %ss ... (%d/%d)",
        f"{notice.delay_seconds:g}",
        notice.attempt,
        notice.max_retry,
    )


def retry_if_necessary(
    operation: Callable[[], T],
    options: RetryOptions,
    *,
    cancel: CancellationSignal | None = None,
    on_retry: RetryObserver | None = log_retry_notice,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``operation``, retrying retryable failures with exponential backoff.

    The first call is unconditional; up to ``options.max_retry`` further calls
    follow, separated by delays of 1, 2, 4, ... ``delay_unit_seconds``. When
    ``cancel`` fires during a delay, or the failure is not retryable, or retries
    are exhausted, the last exception raised by ``operation`` is re-raised as is.
    """
    try:
        return operation()
    except Exception as exc:
        last_error = exc

    attempt = 0
    while is_retryable(last_error) and attempt < options.max_retry:
        delay = backoff_delay(attempt, options)
        if on_retry is not None:
            on_retry(RetryNotice(attempt=attempt + 1, max_retry=options.max_retry, delay_seconds=delay))

        if cancel is not None:
            if cancel.wait(delay):
                logger.debug("Retry wait cancelled after attempt %d", attempt + 1)
                break
        else:
            sleep(delay)

        attempt += 1
        try:
            return operation()
        except Exception as exc:
            last_error = exc

    raise last_error
