"""Exponential backoff retries with structural error classification."""

from .cancellation import CancellationSignal, CancelToken
from .classify import PERMANENT_CODES, Unwrapper, is_retryable, root_cause
from .errors import (
    DeadlineExceeded,
    NetworkOpError,
    OperationCancelled,
    TransportError,
    WrappedError,
)
from .registry import ErrorCode, RegistryError, RegistryErrors, registry_error_from_response
from .retry import RetryNotice, RetryOptions, backoff_delays, retry_if_necessary

__all__ = [
    "backoff_delays",
    "CancellationSignal",
    "CancelToken",
    "DeadlineExceeded",
    "ErrorCode",
    "is_retryable",
    "NetworkOpError",
    "OperationCancelled",
    "PERMANENT_CODES",
    "registry_error_from_response",
    "RegistryError",
    "RegistryErrors",
    "retry_if_necessary",
    "RetryNotice",
    "RetryOptions",
    "root_cause",
    "TransportError",
    "Unwrapper",
    "WrappedError",
]
