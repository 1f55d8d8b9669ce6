"""Parse -> filter -> aggregate pipeline and the one-shot batch driver.

This module is the main integration point that reads log files and feeds the
aggregator. The tail engine reuses ``IngestPipeline`` and ``split_lines`` so
both modes count lines the same way.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

import aiofiles

from .models import IngestSummary, LogRecord, ParseOutcome, Parsed
from .patterns import LineParser, default_parser
from .stats import StatsAggregator
from .time_window import TimeWindow

LOGGER = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
ENCODING = "utf-8"
DECODE_ERRORS = "replace"


def decode_line(raw: bytes) -> str:
    """Decode one line of bytes, dropping a trailing CR."""
    return raw.rstrip(b"\r").decode(ENCODING, errors=DECODE_ERRORS)


def split_lines(fragment: bytes, chunk: bytes) -> tuple[list[bytes], bytes]:
    """Join a pending fragment with new bytes; return complete lines and the new fragment."""
    *lines, rest = (fragment + chunk).split(b"\n")
    return lines, rest


@dataclass(slots=True)
class LineSplitter:
    """Split a byte stream into complete lines, carrying the unterminated tail."""

    fragment: bytes = b""

    def feed(self, chunk: bytes) -> list[bytes]:
        lines, self.fragment = split_lines(self.fragment, chunk)
        return lines

    def flush(self) -> bytes | None:
        """Return the pending fragment as a final line (end of a batch read)."""
        rest, self.fragment = self.fragment, b""
        return rest or None


@dataclass
class IngestPipeline:
    """Route raw lines through the parser, the time window and the aggregator."""

    stats: StatsAggregator
    parser: LineParser = field(default_factory=default_parser)
    window: TimeWindow | None = None
    on_record: Callable[[LogRecord, str], None] | None = None
    lines: int = 0

    def feed(self, line: str) -> ParseOutcome:
        """Process one line; every call produces exactly one counted outcome."""
        self.lines += 1
        outcome = self.parser.parse(line)
        if not isinstance(outcome, Parsed):
            LOGGER.debug("Unparsable line (%s): %r", outcome.reason, outcome.raw_line)
            self.stats.record_unparsable()
            return outcome

        record = outcome.record
        if self.window is not None and not self.window.admits(record):
            self.stats.record_filtered()
            return outcome

        self.stats.admit(record)
        if self.on_record is not None:
            self.on_record(record, line)
        return outcome

    def feed_bytes(self, raw_lines: Iterable[bytes]) -> int:
        count = 0
        for raw in raw_lines:
            self.feed(decode_line(raw))
            count += 1
        return count


async def ingest_file(path: Path, pipeline: IngestPipeline) -> int:
    """Read one file up to its size at open time; return lines processed."""
    splitter = LineSplitter()
    count = 0
    async with aiofiles.open(path, "rb") as f:
        remaining = os.fstat(f.fileno()).st_size
        while remaining > 0:
            chunk = await f.read(min(CHUNK_SIZE, remaining))
            if not chunk:
                break  # file shrank while reading
            remaining -= len(chunk)
            count += pipeline.feed_bytes(splitter.feed(chunk))

    last = splitter.flush()
    if last is not None:
        count += pipeline.feed_bytes([last])
    return count


async def ingest_files(paths: Iterable[Path], pipeline: IngestPipeline) -> IngestSummary:
    """Ingest files sequentially into one shared aggregator."""
    done: list[str] = []
    failed: list[str] = []

    for path in paths:
        try:
            n = await ingest_file(path, pipeline)
        except OSError as e:
            LOGGER.error("Cannot read %s: %s", path, e)
            failed.append(str(path))
            continue
        LOGGER.info("Read %d line(s) from %s", n, path)
        done.append(str(path))

    stats = pipeline.stats
    return IngestSummary(
        files=tuple(done),
        lines=pipeline.lines,
        admitted=stats.total,
        unparsable=stats.unparsable,
        filtered=stats.filtered,
        failed=tuple(failed),
    )
