from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Sequence
from typing import Any

from loglyzer.core.config import LoglyzerConfig, load_config_file, merge_config
from loglyzer.core.errors import ConfigError, NoMatchError
from loglyzer.core.ingest import IngestPipeline
from loglyzer.core.models import LogRecord
from loglyzer.core.report import export_html
from loglyzer.core.sources import expand_sources
from loglyzer.runner import build_pipeline, format_summary, make_tailers, run_batch, run_follow
from loglyzer.server.stats_server import build_server

LOGGER = logging.getLogger(__name__)


def configure_logging() -> None:
    """Log to stderr; level from LOGLYZER_LOG_LEVEL (default INFO)."""
    level_name = os.getenv("LOGLYZER_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="loglyzer",
        description="Access-log analyzer with live follow mode and a JSON stats feed.",
    )
    p.add_argument("inputs", nargs="*", help="Files or glob patterns (e.g. 'logs/*.log')")
    p.add_argument("--config", default=None, help="TOML config file (default: ./.loglyzer.toml if present)")
    p.add_argument(
        "--pattern",
        default=None,
        help="Extraction regex; must name groups ip, time, url, status (bytes, method optional)",
    )
    p.add_argument(
        "--date-format",
        default=None,
        help="strptime format of the time group (default Apache: '%%d/%%b/%%Y:%%H:%%M:%%S %%z')",
    )

    # Time window (inclusive)
    p.add_argument("--since", default=None, help="ISO8601 start, inclusive (assumes UTC if tz missing)")
    p.add_argument("--until", default=None, help="ISO8601 end, inclusive (assumes UTC if tz missing)")
    p.add_argument("--date", default=None, help="YYYY-MM-DD (UTC day)")
    p.add_argument("--hour", default=None, help="YYYY-MM-DDTHH (UTC hour)")
    p.add_argument("--week", default=None, help="YYYY-Www (ISO week, UTC)")
    p.add_argument("--month", default=None, help="YYYY-MM (UTC month)")

    # Follow mode
    p.add_argument("--follow", action="store_true", default=None, help="Follow files as they grow (tail -f)")
    p.add_argument("--from-start", action="store_true", default=None, help="In follow mode, read existing content first")
    p.add_argument("--poll-interval", type=float, default=None, help="Seconds between polls (default 1.0)")
    p.add_argument("--summary-interval", type=float, default=None, help="Seconds between summary logs; 0 disables")
    p.add_argument("--echo", action="store_true", default=None, help="Print admitted lines to stdout")

    # Outputs
    p.add_argument("--export-html", default=None, help="Write an HTML report to this path")
    p.add_argument("--serve", type=int, default=None, help="Serve GET /data JSON on this port")
    p.add_argument("--host", default=None, help="Bind address for --serve (default 127.0.0.1)")
    p.add_argument("--top", dest="top_n", type=int, default=None, help="Top-N IPs/paths to report (default 10)")
    p.add_argument("--bucket-seconds", type=int, default=None, help="Time-series bucket width (default 60)")
    return p


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    values = vars(args).copy()
    values.pop("config", None)
    return values


def _echo(record: LogRecord, line: str) -> None:
    print(line, flush=True)


def _finish(config: LoglyzerConfig, pipeline: IngestPipeline) -> None:
    snap = pipeline.stats.snapshot()
    print(format_summary(snap))
    if config.export_html:
        try:
            export_html(snap, config.export_html)
        except OSError as e:
            LOGGER.error("HTML export failed: %s", e)
        else:
            print(f"HTML export -> {config.export_html}")


async def _batch(config: LoglyzerConfig, pipeline: IngestPipeline) -> int:
    summary = await run_batch(config, pipeline)
    if summary.failed:
        print(f"Failed to read {len(summary.failed)} file(s): {', '.join(summary.failed)}", file=sys.stderr)
    _finish(config, pipeline)

    if config.serve is not None:
        await build_server(pipeline.stats, host=config.host, port=config.serve).serve()
    return 0


async def _follow(config: LoglyzerConfig, pipeline: IngestPipeline) -> int:
    paths = expand_sources(config.inputs)
    tailers = make_tailers(paths, pipeline, config)
    server = None
    if config.serve is not None:
        server = build_server(pipeline.stats, host=config.host, port=config.serve)

    try:
        healthy = await run_follow(tailers, server=server, summary_interval=config.summary_interval)
    finally:
        _finish(config, pipeline)
    return 0 if healthy else 1


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entrypoint."""
    configure_logging()
    args = build_arg_parser().parse_args(argv)

    try:
        config = merge_config(load_config_file(args.config), _overrides(args))
        if not config.inputs:
            raise ConfigError("No inputs given (pass paths or set 'inputs' in the config file)")
        pipeline = build_pipeline(config, on_record=_echo if config.echo else None)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)

    runner = _follow if config.follow else _batch
    try:
        code = asyncio.run(runner(config, pipeline))
    except NoMatchError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(1)
    except KeyboardInterrupt:
        code = 0
    raise SystemExit(code)


if __name__ == "__main__":
    main()
