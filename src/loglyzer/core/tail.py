"""Follow a growing log file across rotation and truncation.

Polling, not filesystem notifications: every ``poll_interval`` seconds the
path is stat'ed and compared with the recorded identity and offset.

States::

    OPENING -> TAILING -> (REOPENING -> TAILING)* -> STOPPED

Rename-based rotation loses nothing: the old handle is drained before the new
file is opened. Truncation loses at most the unterminated fragment that was
pending when it was detected. A file truncated and refilled past the old offset
between two polls is caught by comparing the last bytes read with what now
sits just before the offset.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from .errors import FatalIOError, TransientIOError
from .ingest import IngestPipeline, split_lines
from .models import FileIdentity, TailState, TailStatus

LOGGER = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0
CHECKPOINT_SIZE = 64


def _classify(path: Path, e: OSError) -> Exception:
    if isinstance(e, (PermissionError, IsADirectoryError, NotADirectoryError)):
        return FatalIOError(f"{path}: {e}")
    return TransientIOError(f"{path}: {e}")


class FileTailer:
    """Tail one file into an IngestPipeline until stopped or cancelled."""

    def __init__(
        self,
        path: str | Path,
        pipeline: IngestPipeline,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        from_start: bool = False,
    ) -> None:
        if poll_interval <= 0:
            raise ValueError("poll_interval must be > 0")
        self.path = Path(path)
        self.pipeline = pipeline
        self.poll_interval = poll_interval
        self.from_start = from_start
        self.status = TailStatus.OPENING
        self.state = TailState()
        self._handle: Any = None
        self._stop_event = asyncio.Event()

    async def _close(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            await handle.close()

    async def _open(self, *, at_end: bool) -> None:
        try:
            handle = await aiofiles.open(self.path, "rb")
        except OSError as e:
            raise _classify(self.path, e) from e

        st = os.fstat(handle.fileno())
        offset = st.st_size if at_end else 0
        checkpoint = b""
        if offset:
            start = max(0, offset - CHECKPOINT_SIZE)
            await handle.seek(start)
            checkpoint = await handle.read(offset - start)
            offset = start + len(checkpoint)

        self._handle = handle
        self.state.identity = FileIdentity.from_stat(st)
        self.state.offset = offset
        self.state.fragment = b""
        self.state.checkpoint = checkpoint
        self.status = TailStatus.TAILING
        LOGGER.debug("Opened %s at offset %d (identity %s)", self.path, offset, self.state.identity)

    def _route(self, data: bytes) -> int:
        lines, self.state.fragment = split_lines(self.state.fragment, data)
        return self.pipeline.feed_bytes(lines)

    async def _read(self, size: int | None = None) -> int:
        try:
            data = await (self._handle.read() if size is None else self._handle.read(size))
        except OSError as e:
            raise _classify(self.path, e) from e
        if not data:
            return 0
        self.state.offset += len(data)
        self.state.checkpoint = (self.state.checkpoint + data)[-CHECKPOINT_SIZE:]
        return self._route(data)

    async def _rewritten(self) -> bool:
        """True when the bytes before offset no longer match what was read there."""
        checkpoint = self.state.checkpoint
        if not checkpoint:
            return False
        try:
            await self._handle.seek(self.state.offset - len(checkpoint))
            current = await self._handle.read(len(checkpoint))
        except OSError as e:
            raise _classify(self.path, e) from e
        return current != checkpoint

    async def _begin_reopen(self, reason: str) -> None:
        dropped = len(self.state.fragment)
        if dropped:
            LOGGER.warning("%s %s; discarding %d byte(s) of partial line", self.path, reason, dropped)
        else:
            LOGGER.info("%s %s; reopening", self.path, reason)
        await self._close()
        self.state.reset()
        self.status = TailStatus.REOPENING

    async def _poll(self) -> int:
        try:
            st = await aiofiles.os.stat(self.path)
        except OSError as e:
            raise _classify(self.path, e) from e

        if FileIdentity.from_stat(st) != self.state.identity:
            # Replaced: whatever was appended to the old file before the swap still counts.
            n = await self._read()
            await self._begin_reopen("was replaced")
            return n

        if st.st_size < self.state.offset:
            await self._begin_reopen("was truncated")
            return 0

        if st.st_size == self.state.offset:
            return 0
        if await self._rewritten():
            await self._begin_reopen("was truncated and refilled")
            return 0
        return await self._read(st.st_size - self.state.offset)

    async def step(self) -> int:
        """Run one poll tick; return the number of lines routed.

        Transient I/O errors are logged and swallowed (retried next tick).
        FatalIOError propagates.
        """
        if self.status is TailStatus.STOPPED:
            return 0

        processed = 0
        try:
            if self.status in (TailStatus.OPENING, TailStatus.REOPENING):
                at_end = self.status is TailStatus.OPENING and not self.from_start
                await self._open(at_end=at_end)
            processed += await self._poll()
            if self.status is TailStatus.REOPENING:
                await self._open(at_end=False)
                processed += await self._poll()
        except TransientIOError as e:
            LOGGER.info("Transient I/O error, retrying next tick: %s", e)
        return processed

    def stop(self) -> None:
        """Request the poll loop to finish after the current tick."""
        self._stop_event.set()

    async def run(self) -> None:
        """Poll until stop() or cancellation; always releases the file handle."""
        LOGGER.info("Following %s (poll every %.2fs)", self.path, self.poll_interval)
        try:
            while not self._stop_event.is_set():
                await self.step()
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self.poll_interval)
                except TimeoutError:
                    pass
        except FatalIOError as e:
            LOGGER.error("Stopped following %s: %s", self.path, e)
            raise
        finally:
            await self._close()
            self.status = TailStatus.STOPPED
            LOGGER.debug("Tail of %s stopped", self.path)
