"""Wire configuration into batch and follow runs.

Batch: enumerate -> ingest every file once -> summary.
Follow: one FileTailer task per file, all writing to one shared aggregator,
optionally alongside the HTTP stats server and a periodic summary logger.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from pathlib import Path

import uvicorn

from .core.config import LoglyzerConfig
from .core.errors import FatalIOError
from .core.ingest import IngestPipeline, ingest_files
from .core.models import IngestSummary, LogRecord
from .core.patterns import LineParser
from .core.sources import expand_sources
from .core.stats import StatsAggregator, StatsSnapshot
from .core.tail import FileTailer

LOGGER = logging.getLogger(__name__)


def build_pipeline(
    config: LoglyzerConfig,
    *,
    stats: StatsAggregator | None = None,
    on_record: Callable[[LogRecord, str], None] | None = None,
) -> IngestPipeline:
    """Validate pattern and window up front (ConfigError before any ingestion)."""
    parser = LineParser(config.extraction_pattern())
    window = config.time_window()
    stats = stats or StatsAggregator(top_n=config.top_n, bucket_seconds=config.bucket_seconds)
    return IngestPipeline(stats=stats, parser=parser, window=window, on_record=on_record)


def format_summary(snap: StatsSnapshot) -> str:
    """Human-readable totals; always includes the unparsable count."""
    lines = [
        f"Total: {snap.total}",
        f"Unparsable: {snap.unparsable}",
    ]
    if snap.filtered:
        lines.append(f"Outside time window: {snap.filtered}")
    lines.append("By status:")
    for code, count in snap.status_codes:
        lines.append(f"  {code}: {count}")
    return "\n".join(lines)


async def run_batch(config: LoglyzerConfig, pipeline: IngestPipeline) -> IngestSummary:
    paths = expand_sources(config.inputs)
    return await ingest_files(paths, pipeline)


async def _log_summaries(stats: StatsAggregator, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        snap = stats.snapshot()
        LOGGER.info(
            "Summary: %d admitted, %d unparsable, %d outside window",
            snap.total,
            snap.unparsable,
            snap.filtered,
        )


def _report_task_end(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None and not isinstance(exc, FatalIOError):
        LOGGER.error("Task %s failed: %r", task.get_name(), exc)


async def run_follow(
    tailers: Sequence[FileTailer],
    *,
    server: uvicorn.Server | None = None,
    summary_interval: float = 0,
) -> bool:
    """Run tailers (and the server) until cancelled.

    Without a server this returns once every tailer has ended (only possible
    through fatal I/O errors). With a server it returns when the server shuts
    down. Returns True when at least one tailer was still healthy.
    """
    tasks = [asyncio.create_task(t.run(), name=f"tail:{t.path}") for t in tailers]
    for task in tasks:
        task.add_done_callback(_report_task_end)

    extra: list[asyncio.Task] = []
    if summary_interval > 0 and tailers:
        stats = tailers[0].pipeline.stats
        extra.append(asyncio.create_task(_log_summaries(stats, summary_interval), name="summary"))

    try:
        if server is not None:
            await server.serve()
        else:
            await asyncio.gather(*tasks, return_exceptions=True)
    finally:
        for t in tailers:
            t.stop()
        for task in (*tasks, *extra):
            task.cancel()
        results = await asyncio.gather(*tasks, *extra, return_exceptions=True)

    fatal = sum(isinstance(r, FatalIOError) for r in results[: len(tasks)])
    return fatal < len(tasks)


def make_tailers(
    paths: Sequence[Path],
    pipeline: IngestPipeline,
    config: LoglyzerConfig,
) -> list[FileTailer]:
    return [
        FileTailer(p, pipeline, poll_interval=config.poll_interval, from_start=config.from_start)
        for p in paths
    ]
