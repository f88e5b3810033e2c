"""Registry API error vocabulary and response decoding."""

from __future__ import annotations

import logging as py_logging
from collections.abc import Iterable, Iterator
from enum import Enum
from http import HTTPStatus
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = py_logging.getLogger(__name__)


class ErrorCode(str, Enum):
    UNKNOWN = "UNKNOWN"
    UNSUPPORTED = "UNSUPPORTED"
    UNAUTHORIZED = "UNAUTHORIZED"
    DENIED = "DENIED"
    UNAVAILABLE = "UNAVAILABLE"
    TOOMANYREQUESTS = "TOOMANYREQUESTS"
    DIGEST_INVALID = "DIGEST_INVALID"
    SIZE_INVALID = "SIZE_INVALID"
    NAME_INVALID = "NAME_INVALID"
    TAG_INVALID = "TAG_INVALID"
    NAME_UNKNOWN = "NAME_UNKNOWN"
    MANIFEST_UNKNOWN = "MANIFEST_UNKNOWN"
    MANIFEST_INVALID = "MANIFEST_INVALID"
    MANIFEST_UNVERIFIED = "MANIFEST_UNVERIFIED"
    MANIFEST_BLOB_UNKNOWN = "MANIFEST_BLOB_UNKNOWN"
    BLOB_UNKNOWN = "BLOB_UNKNOWN"
    BLOB_UPLOAD_UNKNOWN = "BLOB_UPLOAD_UNKNOWN"
    BLOB_UPLOAD_INVALID = "BLOB_UPLOAD_INVALID"
    PAGINATION_NUMBER_INVALID = "PAGINATION_NUMBER_INVALID"
    RANGE_INVALID = "RANGE_INVALID"

    @property
    def label(self) -> str:
        return self.value.lower().replace("_", " ")


_DEFAULT_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.UNKNOWN: "unknown error",
    ErrorCode.UNSUPPORTED: "The operation is unsupported.",
    ErrorCode.UNAUTHORIZED: "authentication required",
    ErrorCode.DENIED: "requested access to the resource is denied",
    ErrorCode.UNAVAILABLE: "service unavailable",
    ErrorCode.TOOMANYREQUESTS: "too many requests",
    ErrorCode.DIGEST_INVALID: "provided digest did not match uploaded content",
    ErrorCode.SIZE_INVALID: "provided length did not match content length",
    ErrorCode.NAME_INVALID: "invalid repository name",
    ErrorCode.TAG_INVALID: "manifest tag did not match URI",
    ErrorCode.NAME_UNKNOWN: "repository name not known to registry",
    ErrorCode.MANIFEST_UNKNOWN: "manifest unknown",
    ErrorCode.MANIFEST_INVALID: "manifest invalid",
    ErrorCode.MANIFEST_UNVERIFIED: "manifest failed signature verification",
    ErrorCode.MANIFEST_BLOB_UNKNOWN: "blob unknown to registry",
    ErrorCode.BLOB_UNKNOWN: "blob unknown to registry",
    ErrorCode.BLOB_UPLOAD_UNKNOWN: "blob upload unknown to registry",
    ErrorCode.BLOB_UPLOAD_INVALID: "blob upload invalid",
    ErrorCode.PAGINATION_NUMBER_INVALID: "invalid number of results requested",
    ErrorCode.RANGE_INVALID: "invalid content range",
}

_STATUS_CODES: dict[int, ErrorCode] = {
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.DENIED,
    404: ErrorCode.NAME_UNKNOWN,
    429: ErrorCode.TOOMANYREQUESTS,
    502: ErrorCode.UNAVAILABLE,
    503: ErrorCode.UNAVAILABLE,
    504: ErrorCode.UNAVAILABLE,
}


class RegistryError(Exception):
    """A coded error returned by a registry API."""

    def __init__(self, code: ErrorCode, message: str = "", detail: Any = None) -> None:
        self.code = code
        self.message = message or _DEFAULT_MESSAGES.get(code, code.label)
        self.detail = detail
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"{self.code.label}: {self.message}"


class RegistryErrors(Exception):
    """A list of coded errors returned together by a registry API."""

    def __init__(self, errors: Iterable[RegistryError]) -> None:
        self.errors = list(errors)
        super().__init__(str(self))

    def __iter__(self) -> Iterator[RegistryError]:
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)

    def __str__(self) -> str:
        if not self.errors:
            return "<nil>"
        if len(self.errors) == 1:
            return str(self.errors[0])
        return "errors:\n" + "".join(f"{item}\n" for item in self.errors)


class UnexpectedResponseError(Exception):
    """A failed response that carries no recognizable registry error."""

    def __init__(self, status: int, body: str = "") -> None:
        self.status = status
        self.body = body
        try:
            phrase = HTTPStatus(status).phrase
        except ValueError:
            phrase = "Unknown Status"
        super().__init__(f"received unexpected HTTP status: {status} {phrase}")


class _ErrorEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: str = ""
    message: str = ""
    detail: Any = None


class _ErrorEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    errors: list[_ErrorEntry] = Field(default_factory=list)


def _coerce_code(value: str) -> ErrorCode:
    try:
        return ErrorCode(value.strip().upper())
    except ValueError:
        return ErrorCode.UNKNOWN


def parse_error_body(body: str | bytes) -> list[RegistryError]:
    if not body or not body.strip():
        return []
    try:
        envelope = _ErrorEnvelope.model_validate_json(body)
    except ValidationError:
        logger.debug("Registry error body was not a valid error envelope")
        return []
    return [
        RegistryError(_coerce_code(entry.code), entry.message, entry.detail)
        for entry in envelope.errors
    ]


def registry_error_from_response(status: int, body: str | bytes = "") -> Exception:
    errors = parse_error_body(body)
    if len(errors) == 1:
        return errors[0]
    if errors:
        return RegistryErrors(errors)

    code = _STATUS_CODES.get(status)
    if code is not None:
        return RegistryError(code)
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    return UnexpectedResponseError(status, text)
