"""Extraction patterns and the line parser.

An extraction pattern is a regular expression with named groups. ``ip``,
``time``, ``url`` and ``status`` are required; ``bytes`` and ``method`` are
optional. Alternate log layouts are a configuration change: pass another
pattern (and, if needed, another ``date_format``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime

from .errors import ConfigError, ParseFailure
from .models import LogRecord, ParseOutcome, Parsed, Unparsable

REQUIRED_SLOTS: tuple[str, ...] = ("ip", "time", "url", "status")
OPTIONAL_SLOTS: tuple[str, ...] = ("bytes", "method")

DEFAULT_DATE_FORMAT = "%d/%b/%Y:%H:%M:%S %z"

# Common and combined layouts: referer/user-agent are accepted and ignored.
DEFAULT_PATTERN = (
    r"^(?P<ip>\S+)\s+\S+\s+\S+\s+\[(?P<time>[^\]]+)\]\s+"
    r'"(?:(?P<method>[A-Z]+)\s+)?(?P<url>[^"\s]+)[^"]*"\s+'
    r"(?P<status>\d{3})"
    r"(?:\s+(?P<bytes>\d+|-))?"
)


@dataclass(frozen=True, slots=True)
class ExtractionPattern:
    """A validated, compiled field-extraction rule."""

    regex: re.Pattern[str]
    date_format: str = DEFAULT_DATE_FORMAT


def compile_pattern(
    pattern: str | None = None,
    *,
    date_format: str | None = None,
) -> ExtractionPattern:
    """Compile and validate an extraction pattern.

    Raises ConfigError when the regex does not compile or lacks a required
    named group. Called once, before any line is processed.
    """
    source = pattern if pattern is not None else DEFAULT_PATTERN
    try:
        regex = re.compile(source)
    except re.error as e:
        raise ConfigError(f"Invalid extraction pattern: {e}") from e

    missing = [slot for slot in REQUIRED_SLOTS if slot not in regex.groupindex]
    if missing:
        raise ConfigError(
            "Extraction pattern is missing required named group(s): "
            + ", ".join(missing)
            + ". Required: "
            + ", ".join(REQUIRED_SLOTS)
            + "; optional: "
            + ", ".join(OPTIONAL_SLOTS)
        )

    return ExtractionPattern(regex=regex, date_format=date_format or DEFAULT_DATE_FORMAT)


def _parse_time(raw: str, date_format: str) -> datetime:
    try:
        ts = datetime.strptime(raw, date_format)
    except ValueError as e:
        raise ParseFailure(f"unparsable timestamp {raw!r} (expected format {date_format!r})") from e
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts


def _parse_int(raw: str, field_name: str) -> int:
    try:
        value = int(raw)
    except ValueError as e:
        raise ParseFailure(f"non-integer {field_name} {raw!r}") from e
    if value < 0:
        raise ParseFailure(f"negative {field_name} {raw!r}")
    return value


def _parse_bytes(raw: str | None) -> int:
    if raw is None or raw == "-":
        return 0
    return _parse_int(raw, "bytes")


@dataclass(frozen=True, slots=True)
class LineParser:
    """Apply one compiled pattern to raw lines; never raises for a bad line."""

    pattern: ExtractionPattern = field(default_factory=compile_pattern)

    def parse(self, line: str) -> ParseOutcome:
        """Turn one raw line (without its newline) into a ParseOutcome."""
        if not line.strip():
            return Unparsable(raw_line=line, reason="empty line")

        m = self.pattern.regex.search(line)
        if m is None:
            return Unparsable(raw_line=line, reason="line does not match extraction pattern")

        groups = m.groupdict()
        missing = [slot for slot in REQUIRED_SLOTS if not groups.get(slot)]
        if missing:
            return Unparsable(raw_line=line, reason="missing field(s): " + ", ".join(missing))

        try:
            record = LogRecord(
                client_ip=groups["ip"],
                timestamp=_parse_time(groups["time"], self.pattern.date_format),
                method=groups.get("method") or None,
                path=groups["url"],
                status_code=_parse_int(groups["status"], "status"),
                response_bytes=_parse_bytes(groups.get("bytes")),
            )
        except ParseFailure as e:
            return Unparsable(raw_line=line, reason=str(e))
        return Parsed(record=record)


def parse(pattern: ExtractionPattern, line: str) -> ParseOutcome:
    """Functional form of LineParser.parse."""
    return LineParser(pattern).parse(line)


def default_parser() -> LineParser:
    """Parser for the common/combined access-log layout."""
    return LineParser(compile_pattern())
