"""Error taxonomy for the ingestion engine.

Configuration and enumeration errors halt startup. Parse failures never leave
the line parser. Tail I/O errors are split into transient (retried on the next
poll tick) and fatal (ends monitoring of that one file).
"""

from __future__ import annotations


class LoglyzerError(Exception):
    """Base class for all loglyzer errors."""


class ConfigError(LoglyzerError, ValueError):
    """Invalid configuration: bad pattern, missing named slots, bad bounds."""


class NoMatchError(LoglyzerError):
    """No input file matched any of the given path patterns."""

    def __init__(self, patterns: list[str] | tuple[str, ...]) -> None:
        self.patterns = tuple(patterns)
        joined = ", ".join(self.patterns) or "<none>"
        super().__init__(f"No log files found matching: {joined}")


class ParseFailure(LoglyzerError):
    """One malformed line. Converted to an Unparsable outcome by the parser."""


class TransientIOError(LoglyzerError):
    """Momentary read failure while tailing (e.g. file missing mid-rotation)."""


class FatalIOError(LoglyzerError):
    """Unrecoverable read failure (permission denied, path is a directory...)."""
