"""Retryable/terminal classification of (possibly nested) errors.

Classification is a pure function of an error's structure. The recognized
shapes, in precedence order, are:

* own cancellation or deadline expiry (terminal)
* coded registry errors (terminal for a few permanent codes)
* network operation errors and transport errors (classified by their inner error)
* raw OS error codes (terminal only for a refused connection)
* aggregates (retryable only when every member is)
* anything exposing ``unwrap()`` (classified by the unwrapped error)

Anything else is terminal. Wrapping chains are assumed to be acyclic.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import errno
import http.client
import socket
import ssl
import sys
from collections.abc import Iterable
from typing import Protocol, runtime_checkable
from urllib.error import URLError

from regretry.errors import DeadlineExceeded, NetworkOpError, OperationCancelled, TransportError
from regretry.registry import ErrorCode, RegistryError, RegistryErrors

if sys.version_info >= (3, 11):
    from builtins import BaseExceptionGroup
else:  # pragma: no cover
    from exceptiongroup import BaseExceptionGroup

PERMANENT_CODES = frozenset(
    {
        ErrorCode.UNAUTHORIZED,
        ErrorCode.NAME_UNKNOWN,
        ErrorCode.MANIFEST_UNKNOWN,
    }
)

_CANCELLATION_ERRORS = (
    OperationCancelled,
    DeadlineExceeded,
    asyncio.CancelledError,
    concurrent.futures.CancelledError,
)
_END_OF_INPUT_ERRORS = (EOFError, http.client.RemoteDisconnected)
# OSError subclasses whose errno is not an OS error code.
_NON_ERRNO_OS_ERRORS = (socket.gaierror, socket.herror, ssl.SSLError)


@runtime_checkable
class Unwrapper(Protocol):
    def unwrap(self) -> BaseException | None: ...


def root_cause(exc: BaseException) -> BaseException:
    """Follow explicit ``raise ... from ...`` chaining to the innermost error."""
    seen = {id(exc)}
    while exc.__cause__ is not None and id(exc.__cause__) not in seen:
        exc = exc.__cause__
        seen.add(id(exc))
    return exc


def _transport_inner(exc: BaseException) -> BaseException | None:
    if isinstance(exc, TransportError):
        return exc.err
    reason = getattr(exc, "reason", None)
    if isinstance(reason, BaseException):
        return reason
    return None


def _os_error_code(exc: OSError) -> int | None:
    if isinstance(exc, _NON_ERRNO_OS_ERRORS):
        return None
    if isinstance(exc, ConnectionRefusedError):
        return errno.ECONNREFUSED
    if exc.errno is not None:
        return exc.errno
    if isinstance(exc, ConnectionAbortedError):
        return errno.ECONNABORTED
    if isinstance(exc, ConnectionResetError):
        return errno.ECONNRESET
    if isinstance(exc, BrokenPipeError):
        return errno.EPIPE
    return None


def _all_retryable(errors: Iterable[BaseException]) -> bool:
    for item in errors:
        if not is_retryable(item):
            return False
    return True


def is_retryable(exc: BaseException) -> bool:
    exc = root_cause(exc)

    if isinstance(exc, _CANCELLATION_ERRORS):
        return False

    if isinstance(exc, RegistryError):
        return exc.code not in PERMANENT_CODES

    if isinstance(exc, NetworkOpError):
        return is_retryable(exc.err)

    # URLError also covers errors raised by urllib's HTTP handlers.
    if isinstance(exc, (TransportError, URLError)):
        inner = _transport_inner(exc)
        if inner is not None:
            # A server accepted the connection and closed it without a response.
            if isinstance(inner, _END_OF_INPUT_ERRORS):
                return True
            return is_retryable(inner)

    if isinstance(exc, OSError):
        code = _os_error_code(exc)
        if code is not None:
            return code != errno.ECONNREFUSED

    if isinstance(exc, RegistryErrors):
        return _all_retryable(exc.errors)
    if isinstance(exc, BaseExceptionGroup):
        return _all_retryable(exc.exceptions)

    if isinstance(exc, Unwrapper):
        inner = exc.unwrap()
        if inner is not None:
            return is_retryable(inner)

    return False
