"""Expand path patterns into a deterministic list of input files."""

from __future__ import annotations

import glob
import logging
from collections.abc import Iterable
from pathlib import Path

from .errors import NoMatchError

LOGGER = logging.getLogger(__name__)

_WILDCARDS = ("*", "?", "[")


def _is_pattern(raw: str) -> bool:
    return any(c in raw for c in _WILDCARDS)


def _matches(raw: str) -> list[Path]:
    if _is_pattern(raw):
        candidates = (Path(m) for m in glob.glob(raw, recursive=True))
    else:
        candidates = iter([Path(raw).expanduser()])
    return [p for p in candidates if p.is_file()]


def expand_sources(patterns: Iterable[str]) -> list[Path]:
    """Expand patterns to existing files, deduplicated and sorted by real path.

    Paths are returned as given (a symlink stays a symlink) so that a tailer
    notices when the link is re-pointed; the resolved path is only the key.

    A pattern matching nothing is only a warning while another pattern still
    matches (partial availability is expected mid-rotation). When nothing
    matches at all, NoMatchError is raised.
    """
    patterns = list(patterns)
    found: dict[str, Path] = {}

    for raw in patterns:
        matches = _matches(raw)
        if not matches:
            LOGGER.warning("No files match %r", raw)
            continue
        for p in matches:
            found.setdefault(str(p.resolve()), p)

    if not found:
        raise NoMatchError(patterns)

    return [found[k] for k in sorted(found)]
