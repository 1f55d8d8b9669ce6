from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

SAMPLE_LINES = [
    '203.0.113.7 - - [15/Jan/2024:12:04:12 +0000] "GET / HTTP/1.1" 200 5120',
    '8.8.8.8 - - [15/Jan/2024:12:05:00 +0000] "GET /health HTTP/1.1" 204 0',
    '203.0.113.7 - - [15/Jan/2024:12:05:31 +0000] "POST /api/login HTTP/1.1" 401 312',
    "this line is garbage",
    '198.51.100.2 - - [15/Jan/2024:12:06:02 +0000] "GET /missing HTTP/1.1" 404 -',
]


def make_line(
    ip: str = "10.0.0.1",
    ts: str = "15/Jan/2024:12:00:00 +0000",
    method: str = "GET",
    path: str = "/",
    status: int = 200,
    size: int | str = 10,
) -> str:
    return f'{ip} - - [{ts}] "{method} {path} HTTP/1.1" {status} {size}'


@pytest.fixture
def line() -> Callable[..., str]:
    return make_line


@pytest.fixture
def write_access_log() -> Callable[[Path], None]:
    def _write(path: Path) -> None:
        path.write_text("\n".join(SAMPLE_LINES) + "\n", encoding="utf-8")

    return _write


@pytest.fixture
def append() -> Callable[[Path, str], None]:
    def _append(path: Path, text: str) -> None:
        with path.open("a", encoding="utf-8") as f:
            f.write(text)

    return _append
