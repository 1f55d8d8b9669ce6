"""Core data models for access-log ingestion."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


@dataclass(frozen=True, slots=True)
class LogRecord:
    """One parsed access-log line."""

    client_ip: str
    timestamp: datetime  # always timezone-aware
    method: str | None
    path: str
    status_code: int
    response_bytes: int = 0


@dataclass(frozen=True, slots=True)
class Parsed:
    """Successful parse outcome."""

    record: LogRecord


@dataclass(frozen=True, slots=True)
class Unparsable:
    """Failed parse outcome: the raw line and a human-readable reason."""

    raw_line: str
    reason: str


ParseOutcome = Parsed | Unparsable


@dataclass(frozen=True, slots=True)
class FileIdentity:
    """Stable handle for the file behind a path; changes when the file is replaced."""

    device: int
    inode: int

    @classmethod
    def from_stat(cls, st: os.stat_result) -> FileIdentity:
        return cls(device=st.st_dev, inode=st.st_ino)


class TailStatus(str, Enum):
    """Lifecycle states of a followed file."""

    OPENING = "opening"
    TAILING = "tailing"
    REOPENING = "reopening"
    STOPPED = "stopped"


@dataclass(slots=True)
class TailState:
    """Per-file bookkeeping owned by one tailer."""

    identity: FileIdentity | None = None
    offset: int = 0
    fragment: bytes = b""  # bytes of a line that has not seen its newline yet
    checkpoint: bytes = b""  # last bytes read, ending at offset

    def reset(self) -> None:
        self.identity = None
        self.offset = 0
        self.fragment = b""
        self.checkpoint = b""


@dataclass(frozen=True, slots=True)
class IngestSummary:
    """Totals emitted by a batch run."""

    files: tuple[str, ...]
    lines: int
    admitted: int
    unparsable: int
    filtered: int
    failed: tuple[str, ...] = field(default_factory=tuple)
