"""Deterministic error model, exit code contract and classifiable error shapes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    INVALID_ARGS = 2
    CONFIG_ERROR = 3
    RUNTIME_ERROR = 4
    REGISTRY_ERROR = 5
    NETWORK_ERROR = 6
    VALIDATION_ERROR = 7


@dataclass
class RegretryError(Exception):
    message: str
    code: ExitCode = ExitCode.RUNTIME_ERROR
    hint: str = ""

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} Hint: {self.hint}"
        return self.message


def user_facing_error(message: str, *, hint: str = "") -> str:
    if hint:
        return f"Error: {message}. Next step: {hint}"
    return f"Error: {message}."


class OperationCancelled(Exception):
    """The caller cancelled the operation's own context."""

    def __init__(self, message: str = "operation cancelled") -> None:
        super().__init__(message)


class DeadlineExceeded(Exception):
    """The deadline of the operation's own context expired."""

    def __init__(self, message: str = "deadline exceeded") -> None:
        super().__init__(message)


class NetworkOpError(Exception):
    """A socket-level operation (dial, read, write) failed with an inner error."""

    def __init__(self, op: str, address: str, err: BaseException) -> None:
        super().__init__(f"{op} {address}: {err}")
        self.op = op
        self.address = address
        self.err = err


class TransportError(Exception):
    """A URL-level request failed with an inner error."""

    def __init__(self, op: str, url: str, err: BaseException) -> None:
        super().__init__(f'{op} "{url}": {err}')
        self.op = op
        self.url = url
        self.err = err


class WrappedError(Exception):
    """Adds context to an error without chaining it as the cause."""

    def __init__(self, message: str, err: BaseException) -> None:
        super().__init__(f"{message}: {err}")
        self.message = message
        self.err = err

    def unwrap(self) -> BaseException:
        return self.err
