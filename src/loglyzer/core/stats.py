"""Incremental statistics over admitted access-log records.

One writer (batch driver or tail engines, serialised) and any number of
readers. The lock guards only the counters and is held for an increment or
for the shallow copy taken by ``snapshot()``; ranking and series building run
after the lock is released.
"""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass
from datetime import UTC, datetime

from .models import LogRecord

DEFAULT_TOP_N = 10
DEFAULT_BUCKET_SECONDS = 60

# Longest series that is zero-filled (one week of one-minute buckets).
MAX_FILLED_BUCKETS = 7 * 24 * 60


@dataclass(frozen=True, slots=True)
class StatsSnapshot:
    """Immutable, detached copy of the aggregate at one instant."""

    total: int
    unparsable: int
    filtered: int
    status_codes: tuple[tuple[int, int], ...]  # sorted by status code
    top_ips: tuple[tuple[str, int], ...]
    top_paths: tuple[tuple[str, int], ...]
    time_series: tuple[tuple[datetime, int], ...]  # ordered by bucket start
    bucket_seconds: int

    @property
    def lines(self) -> int:
        return self.total + self.unparsable + self.filtered

    def status_count(self, code: int) -> int:
        return dict(self.status_codes).get(code, 0)


def _rank(counts: dict[str, int], top_n: int) -> tuple[tuple[str, int], ...]:
    # sorted() is stable, so equal counts keep first-seen (insertion) order.
    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    return tuple(ranked[:top_n])


def _series(buckets: dict[int, int], width: int) -> tuple[tuple[datetime, int], ...]:
    if not buckets:
        return ()
    keys = sorted(buckets)
    first, last = keys[0], keys[-1]
    span = (last - first) // width + 1
    if span <= MAX_FILLED_BUCKETS:
        keys = range(first, last + width, width)
    return tuple((datetime.fromtimestamp(k, tz=UTC), buckets.get(k, 0)) for k in keys)


class StatsAggregator:
    """Mutable summary of every record admitted so far.

    Counts never decrease. Per-IP and per-path counters are exact; only the
    top ``top_n`` entries are surfaced by ``snapshot()``.
    """

    def __init__(self, *, top_n: int = DEFAULT_TOP_N, bucket_seconds: int = DEFAULT_BUCKET_SECONDS) -> None:
        if top_n < 1:
            raise ValueError("top_n must be >= 1")
        if bucket_seconds < 1:
            raise ValueError("bucket_seconds must be >= 1")
        self.top_n = top_n
        self.bucket_seconds = bucket_seconds
        self._lock = threading.Lock()
        self._total = 0
        self._unparsable = 0
        self._filtered = 0
        self._status: Counter[int] = Counter()
        self._ips: Counter[str] = Counter()
        self._paths: Counter[str] = Counter()
        self._buckets: Counter[int] = Counter()

    def _bucket_key(self, ts: datetime) -> int:
        epoch = int(ts.timestamp())
        return epoch - epoch % self.bucket_seconds

    def admit(self, record: LogRecord) -> None:
        """Count one admitted record in every sub-aggregate."""
        key = self._bucket_key(record.timestamp)
        with self._lock:
            self._total += 1
            self._status[record.status_code] += 1
            self._ips[record.client_ip] += 1
            self._paths[record.path] += 1
            self._buckets[key] += 1

    def record_unparsable(self) -> None:
        with self._lock:
            self._unparsable += 1

    def record_filtered(self) -> None:
        """Count a parsed record rejected by the time window."""
        with self._lock:
            self._filtered += 1

    @property
    def total(self) -> int:
        return self._total

    @property
    def unparsable(self) -> int:
        return self._unparsable

    @property
    def filtered(self) -> int:
        return self._filtered

    def snapshot(self) -> StatsSnapshot:
        """Copy counters under the lock, then rank and order them outside it."""
        with self._lock:
            total = self._total
            unparsable = self._unparsable
            filtered = self._filtered
            status = dict(self._status)
            ips = dict(self._ips)
            paths = dict(self._paths)
            buckets = dict(self._buckets)

        return StatsSnapshot(
            total=total,
            unparsable=unparsable,
            filtered=filtered,
            status_codes=tuple(sorted(status.items())),
            top_ips=_rank(ips, self.top_n),
            top_paths=_rank(paths, self.top_n),
            time_series=_series(buckets, self.bucket_seconds),
            bucket_seconds=self.bucket_seconds,
        )
