"""Time-window parsing helpers and the record time filter.

Converts user-friendly bounds and selectors into an inclusive UTC window.
Both ends are inclusive: a record stamped exactly at ``since`` or ``until``
is admitted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta

from .errors import ConfigError
from .models import LogRecord

_WEEK_RE = re.compile(r"^(?P<y>\d{4})-W(?P<w>\d{2})$")
_MONTH_RE = re.compile(r"^(?P<y>\d{4})-(?P<m>\d{2})$")

_TICK = timedelta(microseconds=1)


@dataclass(frozen=True, slots=True)
class TimeWindow:
    """Optional inclusive bounds on record timestamps."""

    since: datetime | None = None
    until: datetime | None = None

    def __post_init__(self) -> None:
        if self.since is not None and self.until is not None and self.since > self.until:
            raise ConfigError("since must be <= until")

    def admits(self, record: LogRecord) -> bool:
        """True when the record's timestamp lies within [since, until]."""
        ts = record.timestamp
        if self.since is not None and ts < self.since:
            return False
        if self.until is not None and ts > self.until:
            return False
        return True


def admits(record: LogRecord, window: TimeWindow | None) -> bool:
    """Time filter; an absent window admits everything."""
    return window is None or window.admits(record)


def parse_iso_dt(s: str) -> datetime:
    """Parse ISO8601 (or 'YYYY-MM-DD HH:MM') datetime. If tz is missing, assume UTC."""
    try:
        dt = datetime.fromisoformat(s.strip().replace("Z", "+00:00"))
    except ValueError as e:
        raise ConfigError(f"Invalid datetime {s!r}; use ISO-8601 (e.g. 2024-01-15T10:00:00Z)") from e
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def range_for_date(s: str) -> tuple[datetime, datetime]:
    """Return the inclusive UTC day window for an ISO date string."""
    try:
        d = date.fromisoformat(s)
    except ValueError as e:
        raise ConfigError("date must look like YYYY-MM-DD (e.g., 2024-01-15)") from e
    start = datetime(d.year, d.month, d.day, tzinfo=UTC)
    return start, start + timedelta(days=1) - _TICK


def range_for_hour(s: str) -> tuple[datetime, datetime]:
    """Return the inclusive UTC hour window for a YYYY-MM-DDTHH selector."""
    try:
        base = datetime.fromisoformat(s)
    except ValueError as e:
        raise ConfigError("hour must look like YYYY-MM-DDTHH (e.g., 2024-01-15T12)") from e
    if base.tzinfo is None:
        base = base.replace(tzinfo=UTC)
    start = base.astimezone(UTC).replace(minute=0, second=0, microsecond=0)
    return start, start + timedelta(hours=1) - _TICK


def range_for_week(s: str) -> tuple[datetime, datetime]:
    """Return the inclusive UTC week window for a YYYY-Www selector."""
    m = _WEEK_RE.match(s)
    if not m:
        raise ConfigError("week must look like YYYY-Www (e.g., 2024-W03)")
    try:
        start_date = date.fromisocalendar(int(m.group("y")), int(m.group("w")), 1)  # Monday
    except ValueError as e:
        raise ConfigError(f"Invalid ISO week {s!r}") from e
    start = datetime(start_date.year, start_date.month, start_date.day, tzinfo=UTC)
    return start, start + timedelta(days=7) - _TICK


def range_for_month(s: str) -> tuple[datetime, datetime]:
    """Return the inclusive UTC month window for a YYYY-MM selector."""
    m = _MONTH_RE.match(s)
    if not m:
        raise ConfigError("month must look like YYYY-MM (e.g., 2024-01)")
    y = int(m.group("y"))
    mo = int(m.group("m"))
    if not 1 <= mo <= 12:
        raise ConfigError("month must be between 01 and 12")
    start = datetime(y, mo, 1, tzinfo=UTC)
    if mo == 12:
        end = datetime(y + 1, 1, 1, tzinfo=UTC)
    else:
        end = datetime(y, mo + 1, 1, tzinfo=UTC)
    return start, end - _TICK


def resolve_time_window(
    *,
    since: str | None = None,
    until: str | None = None,
    date_: str | None = None,
    hour: str | None = None,
    week: str | None = None,
    month: str | None = None,
) -> TimeWindow | None:
    """Resolve an inclusive UTC window; selectors win over explicit bounds."""
    if date_:
        return TimeWindow(*range_for_date(date_))
    if hour:
        return TimeWindow(*range_for_hour(hour))
    if week:
        return TimeWindow(*range_for_week(week))
    if month:
        return TimeWindow(*range_for_month(month))

    s = parse_iso_dt(since) if since else None
    u = parse_iso_dt(until) if until else None
    if s is None and u is None:
        return None
    return TimeWindow(since=s, until=u)
