"""Public CLI contract and entrypoint."""

from __future__ import annotations

import argparse
import logging as py_logging
import sys
import time
from collections.abc import Callable, Sequence
from pathlib import Path

from pydantic import ValidationError

from .cancellation import CancelToken
from .config import load_config
from .errors import ExitCode, RegretryError, TransportError, user_facing_error
from .logging import configure_logging, default_log_path
from .probe import HttpRequester, ProbeResult, probe_registry, validate_registry_url
from .registry import RegistryError, RegistryErrors, UnexpectedResponseError
from .retry import RetryOptions, backoff_delays, retry_if_necessary

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be an integer") from exc
    if number < 0:
        raise argparse.ArgumentTypeError("must not be negative")
    return number


def _non_negative_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be a number") from exc
    if number < 0:
        raise argparse.ArgumentTypeError("must not be negative")
    return number


def _log_level_type(value: str) -> str:
    normalized = value.upper()
    if normalized == "WARNING":
        normalized = "WARN"
    if normalized not in _VALID_LOG_LEVELS:
        accepted = ", ".join(_VALID_LOG_LEVELS)
        raise argparse.ArgumentTypeError(f"--log-level must be one of: {accepted}")
    return normalized


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="regretry",
        description="Probe a registry endpoint, retrying transient failures with exponential backoff.",
    )
    parser.add_argument("url", help="Registry URL to probe, e.g. https://registry.example/v2/")
    parser.add_argument("--max-retry", type=_non_negative_int, default=None, help="Retries after the first attempt")
    parser.add_argument(
        "--delay-unit",
        type=_non_negative_float,
        default=None,
        help="Seconds in one backoff unit (delays are 1, 2, 4, ... units).",
    )
    parser.add_argument(
        "--timeout",
        type=_non_negative_float,
        default=None,
        help="Stop retrying once this many seconds have passed.",
    )
    parser.add_argument("--dry-run", action="store_true", help="Print the backoff schedule and exit")
    parser.add_argument("--quiet", action="store_true", help="Hide per-retry notices on stderr")
    parser.add_argument("--config", type=Path, default=None)
    parser.add_argument("--log-level", type=_log_level_type, default=None)
    parser.add_argument("--log-file", type=Path, default=None)
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    return parser.parse_args(argv)


def resolve_options(namespace: argparse.Namespace) -> RetryOptions:
    config = load_config(namespace.config)
    try:
        if namespace.max_retry is not None:
            config.max_retry = namespace.max_retry
        if namespace.delay_unit is not None:
            config.delay_unit_seconds = namespace.delay_unit
        return config.retry_options()
    except ValidationError as exc:
        raise RegretryError(
            "Invalid retry configuration.",
            code=ExitCode.CONFIG_ERROR,
            hint=str(exc.errors()[0].get("msg", "")),
        ) from exc


def _exit_code_for(exc: Exception) -> ExitCode:
    if isinstance(exc, (RegistryError, RegistryErrors, UnexpectedResponseError)):
        return ExitCode.REGISTRY_ERROR
    if isinstance(exc, (TransportError, OSError)):
        return ExitCode.NETWORK_ERROR
    return ExitCode.RUNTIME_ERROR


def run_cli_flow(
    namespace: argparse.Namespace,
    *,
    requester: HttpRequester | None = None,
    sleep: Callable[[float], None] | None = None,
) -> int:
    logger = py_logging.getLogger("regretry")
    options = resolve_options(namespace)
    url = validate_registry_url(namespace.url)

    if namespace.dry_run:
        for index, delay in enumerate(backoff_delays(options), start=1):
            print(f"retry {index}/{options.max_retry}: wait {delay:g}s")
        return int(ExitCode.SUCCESS)

    cancel = CancelToken(namespace.timeout) if namespace.timeout is not None else None
    try:
        result: ProbeResult = retry_if_necessary(
            lambda: probe_registry(url, requester=requester),
            options,
            cancel=cancel,
            sleep=sleep or time.sleep,
        )
    except (RegistryError, RegistryErrors, UnexpectedResponseError, TransportError, OSError) as exc:
        logger.error("Registry probe failed url=%s: %s", url, exc)
        code = _exit_code_for(exc)
        print(user_facing_error(str(exc), hint="Check the registry address and credentials"), file=sys.stderr)
        return int(code)

    print(f"{result.url} {result.status}")
    return int(ExitCode.SUCCESS)


def main(
    argv: Sequence[str] | None = None,
    *,
    requester: HttpRequester | None = None,
    sleep: Callable[[float], None] | None = None,
) -> int:
    log_path = default_log_path()
    logger = configure_logging(log_file=log_path)
    parser = build_parser()
    try:
        namespace = parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code not in (None, 0):
            logger.warning("Argument parsing failed with exit code %s", exc.code)
        return int(exc.code or 0)

    if namespace.log_file is not None:
        log_path = namespace.log_file.expanduser()
    level = namespace.log_level or load_config(namespace.config).log_level
    logger = configure_logging(level=level, log_file=log_path, retry_notices=not namespace.quiet)

    try:
        logger.debug("Starting CLI flow")
        return run_cli_flow(namespace, requester=requester, sleep=sleep)
    except RegretryError as exc:
        logger.error(
            "Handled RegretryError (code=%s): %s",
            int(exc.code),
            exc.message,
            exc_info=logger.isEnabledFor(py_logging.DEBUG),
        )
        print(user_facing_error(exc.message, hint=exc.hint), file=sys.stderr)
        return int(exc.code)
    except Exception:
        logger.exception("Unhandled exception in CLI entrypoint")
        hint = f"Inspect logs: {log_path}"
        print(user_facing_error("Unexpected runtime failure", hint=hint), file=sys.stderr)
        return int(ExitCode.RUNTIME_ERROR)


def run(argv: Sequence[str] | None = None) -> int:
    return main(argv)
