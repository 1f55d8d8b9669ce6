"""MCP tool implementations.

This module contains the *implementation* behind the exposed MCP tools.
Keep this layer thin: validate inputs, translate them into core calls, and
return JSON-serializable data structures.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from loglyzer.core.config import merge_config
from loglyzer.core.errors import NoMatchError
from loglyzer.runner import build_pipeline, run_batch
from loglyzer.server.schemas import snapshot_to_dict

DEFAULT_TOP_N = 10
HARD_TOP_N = 500


async def summarize_access_logs_impl(
    *,
    inputs: Sequence[str],
    since: str | None = None,
    until: str | None = None,
    date: str | None = None,
    hour: str | None = None,
    week: str | None = None,
    month: str | None = None,
    pattern: str | None = None,
    date_format: str | None = None,
    top_n: int | None = None,
) -> dict[str, Any]:
    """Implementation for the `summarize_access_logs` MCP tool.

    Notes
    -----
    - Runs one batch ingest; nothing is retained between calls.
    - Selector precedence: date/hour/week/month over since/until.
    - top_n is capped at HARD_TOP_N.
    - Raises ValueError for configuration problems and for inputs matching
      no file, so the MCP client receives a readable tool error.
    """
    inputs = [s for s in inputs if s and s.strip()]
    if not inputs:
        raise ValueError("inputs must contain at least one path or glob pattern")
    if top_n is None:
        top_n = DEFAULT_TOP_N
    if top_n <= 0:
        raise ValueError("top_n must be > 0")
    top_n = min(top_n, HARD_TOP_N)

    config = merge_config(
        {},
        {
            "inputs": inputs,
            "since": since,
            "until": until,
            "date": date,
            "hour": hour,
            "week": week,
            "month": month,
            "pattern": pattern,
            "date_format": date_format,
            "top_n": top_n,
        },
    )
    pipeline = build_pipeline(config)

    try:
        summary = await run_batch(config, pipeline)
    except NoMatchError as e:
        raise ValueError(str(e)) from e

    return {
        "files": list(summary.files),
        "failed": list(summary.failed),
        "lines": summary.lines,
        "stats": snapshot_to_dict(pipeline.stats.snapshot()),
    }
