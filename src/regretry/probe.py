"""Registry endpoint probing over urllib."""

from __future__ import annotations

import logging as py_logging
from dataclasses import dataclass
from typing import Protocol
from urllib.error import HTTPError, URLError
from urllib.parse import urlparse
from urllib.request import Request, urlopen

from regretry.errors import ExitCode, RegretryError, TransportError
from regretry.registry import registry_error_from_response

logger = py_logging.getLogger(__name__)

USER_AGENT = "regretry"

HttpResponse = tuple[int, str]


class HttpRequester(Protocol):
    def __call__(self, url: str, headers: dict[str, str], timeout: float) -> HttpResponse: ...


@dataclass(frozen=True)
class ProbeResult:
    url: str
    status: int


def validate_registry_url(url: str) -> str:
    parsed = urlparse(url.strip())
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise RegretryError(
            f"Invalid registry URL: {url}",
            code=ExitCode.VALIDATION_ERROR,
            hint="Use an http:// or https:// registry address.",
        )
    return parsed.geturl()


def _default_requester(url: str, headers: dict[str, str], timeout: float) -> HttpResponse:
    request = Request(url, headers=headers, method="GET")
    try:
        with urlopen(request, timeout=timeout) as response:  # nosec B310
            status = int(getattr(response, "status", response.getcode()))
            return status, response.read().decode("utf-8", errors="replace")
    except HTTPError as exc:
        payload = ""
        if exc.fp is not None:
            payload = exc.read().decode("utf-8", errors="replace")
        return exc.code, payload
    except URLError as exc:
        raise TransportError("GET", url, exc.reason if isinstance(exc.reason, BaseException) else exc) from None
    except OSError as exc:
        raise TransportError("GET", url, exc) from None


def probe_registry(
    url: str,
    *,
    requester: HttpRequester | None = None,
    timeout: float = 20.0,
) -> ProbeResult:
    target = validate_registry_url(url)
    do_request = requester or _default_requester
    headers = {
        "Accept": "application/json",
        "User-Agent": USER_AGENT,
    }

    logger.debug("Probing registry url=%s", target)
    status, payload = do_request(target, headers, timeout)
    if 200 <= status < 300:
        return ProbeResult(url=target, status=status)

    logger.debug("Registry probe failed url=%s status=%s", target, status)
    raise registry_error_from_response(status, payload)
