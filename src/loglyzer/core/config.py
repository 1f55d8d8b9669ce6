"""Configuration: built-in defaults < TOML file < explicit invocation."""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigError
from .patterns import ExtractionPattern, compile_pattern
from .stats import DEFAULT_BUCKET_SECONDS, DEFAULT_TOP_N
from .tail import DEFAULT_POLL_INTERVAL
from .time_window import TimeWindow, resolve_time_window

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = ".loglyzer.toml"
CONFIG_ENV = "LOGLYZER_CONFIG"


class LoglyzerConfig(BaseModel):
    """Validated, merged run configuration."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    inputs: list[str] = Field(default_factory=list, description="Files or glob patterns.")
    pattern: str | None = Field(default=None, description="Extraction regex with named groups.")
    date_format: str | None = Field(default=None, description="strptime format for the time group.")

    since: str | None = None
    until: str | None = None
    date: str | None = None
    hour: str | None = None
    week: str | None = None
    month: str | None = None

    follow: bool = False
    from_start: bool = False
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)
    summary_interval: float = Field(default=60.0, ge=0)
    echo: bool = False

    serve: int | None = Field(default=None, ge=1, le=65535)
    host: str = "127.0.0.1"
    export_html: str | None = None

    top_n: int = Field(default=DEFAULT_TOP_N, ge=1)
    bucket_seconds: int = Field(default=DEFAULT_BUCKET_SECONDS, ge=1)

    def extraction_pattern(self) -> ExtractionPattern:
        return compile_pattern(self.pattern, date_format=self.date_format)

    def time_window(self) -> TimeWindow | None:
        return resolve_time_window(
            since=self.since,
            until=self.until,
            date_=self.date,
            hour=self.hour,
            week=self.week,
            month=self.month,
        )


def _normalize_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    return {str(k).replace("-", "_"): v for k, v in data.items()}


def _candidate_path(path: str | Path | None) -> tuple[Path | None, bool]:
    """Return (path, explicit). Explicit paths must exist."""
    if path is not None:
        return Path(path), True
    env = os.getenv(CONFIG_ENV)
    if env:
        return Path(env), True
    default = Path(DEFAULT_CONFIG_FILE)
    return (default, False) if default.is_file() else (None, False)


def load_config_file(path: str | Path | None = None) -> dict[str, Any]:
    """Read TOML configuration; an absent implicit file yields no values."""
    candidate, explicit = _candidate_path(path)
    if candidate is None:
        return {}
    if not candidate.is_file():
        if explicit:
            raise ConfigError(f"Config file not found: {candidate}")
        return {}

    try:
        with candidate.open("rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Cannot read config file {candidate}: {e}") from e

    LOGGER.debug("Loaded configuration from %s", candidate)
    return _normalize_keys(data)


def merge_config(
    file_values: Mapping[str, Any],
    overrides: Mapping[str, Any],
) -> LoglyzerConfig:
    """Merge file values with explicit overrides; None means 'not given'."""
    merged: dict[str, Any] = dict(file_values)
    for key, value in overrides.items():
        if value is None:
            continue
        if key == "inputs" and not value:
            continue
        merged[key] = value

    try:
        return LoglyzerConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
