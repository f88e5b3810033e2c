"""XDG config loading for retry defaults."""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover
    import tomli as tomllib

from regretry.retry import DEFAULT_DELAY_UNIT_SECONDS, DEFAULT_MAX_RETRY, RetryOptions

DEFAULT_CONFIG_PATH = Path("~/.config/regretry/config.toml").expanduser()
DEFAULT_LOG_LEVEL = "INFO"
MAX_RETRY_ENV = "REGRETRY_MAX_RETRY"
DELAY_UNIT_ENV = "REGRETRY_DELAY_UNIT"

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARN", "WARNING", "ERROR"}


class AppConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    max_retry: int = Field(default=DEFAULT_MAX_RETRY, ge=0)
    delay_unit_seconds: float = Field(default=DEFAULT_DELAY_UNIT_SECONDS, ge=0)
    log_level: str = DEFAULT_LOG_LEVEL

    def retry_options(self) -> RetryOptions:
        return RetryOptions(max_retry=self.max_retry, delay_unit_seconds=self.delay_unit_seconds)


def get_config_path(path: str | Path | None = None) -> Path:
    if path is None:
        return DEFAULT_CONFIG_PATH
    return Path(path).expanduser()


def _parse_max_retry(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            return None
    if isinstance(value, int) and value >= 0:
        return value
    return None


def _parse_delay_unit(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if isinstance(value, (int, float)) and value >= 0:
        return float(value)
    return None


def _sanitize(raw: dict[str, object]) -> AppConfig:
    cfg = AppConfig()

    retry_table = raw.get("retry", {})
    if not isinstance(retry_table, dict):
        retry_table = {}

    max_retry = _parse_max_retry(retry_table.get("max_retry"))
    if max_retry is not None:
        cfg.max_retry = max_retry

    delay_unit = _parse_delay_unit(retry_table.get("delay_unit_seconds"))
    if delay_unit is not None:
        cfg.delay_unit_seconds = delay_unit

    log_level = raw.get("log_level", cfg.log_level)
    if isinstance(log_level, str) and log_level.strip().upper() in _VALID_LOG_LEVELS:
        cfg.log_level = log_level.strip().upper()

    return cfg


def _apply_env(cfg: AppConfig) -> AppConfig:
    env_max_retry = _parse_max_retry(os.getenv(MAX_RETRY_ENV, ""))
    if env_max_retry is not None:
        cfg.max_retry = env_max_retry
    env_delay_unit = _parse_delay_unit(os.getenv(DELAY_UNIT_ENV, ""))
    if env_delay_unit is not None:
        cfg.delay_unit_seconds = env_delay_unit
    return cfg


def load_config(path: str | Path | None = None) -> AppConfig:
    resolved = get_config_path(path)
    if not resolved.exists():
        return _apply_env(AppConfig())
    try:
        with resolved.open("rb") as handle:
            raw = tomllib.load(handle)
    except (tomllib.TOMLDecodeError, OSError):
        return _apply_env(AppConfig())
    if not isinstance(raw, dict):
        return _apply_env(AppConfig())
    return _apply_env(_sanitize(raw))
