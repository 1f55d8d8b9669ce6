"""Access-log ingestion engine: parsing, filtering, aggregation, tailing."""

from __future__ import annotations

from .errors import (
    ConfigError,
    FatalIOError,
    LoglyzerError,
    NoMatchError,
    ParseFailure,
    TransientIOError,
)
from .ingest import IngestPipeline, ingest_files
from .models import LogRecord, Parsed, ParseOutcome, Unparsable
from .patterns import ExtractionPattern, LineParser, compile_pattern, default_parser
from .sources import expand_sources
from .stats import StatsAggregator, StatsSnapshot
from .tail import FileTailer
from .time_window import TimeWindow, resolve_time_window

__all__ = [
    "ConfigError",
    "ExtractionPattern",
    "FatalIOError",
    "FileTailer",
    "IngestPipeline",
    "LineParser",
    "LogRecord",
    "LoglyzerError",
    "NoMatchError",
    "ParseFailure",
    "ParseOutcome",
    "Parsed",
    "StatsAggregator",
    "StatsSnapshot",
    "TimeWindow",
    "TransientIOError",
    "Unparsable",
    "compile_pattern",
    "default_parser",
    "expand_sources",
    "ingest_files",
    "resolve_time_window",
]
