"""HTTP stats feed: one read-only JSON endpoint over the live aggregate.

Run inside the same event loop as the tailers; each request copies a fresh
snapshot, so readers never hold the aggregator lock while serialising.
"""

from __future__ import annotations

import logging

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from ..core.stats import StatsAggregator
from .schemas import snapshot_to_dict

LOGGER = logging.getLogger(__name__)

DATA_PATH = "/data"


def create_app(stats: StatsAggregator) -> Starlette:
    """Build the ASGI app exposing ``GET /data``."""

    async def data(request: Request) -> JSONResponse:
        return JSONResponse(snapshot_to_dict(stats.snapshot()))

    return Starlette(routes=[Route(DATA_PATH, data, methods=["GET"])])


def build_server(stats: StatsAggregator, *, host: str = "127.0.0.1", port: int = 8080) -> uvicorn.Server:
    """Return a uvicorn server for the stats app (not started)."""
    config = uvicorn.Config(
        create_app(stats),
        host=host,
        port=port,
        log_level=logging.getLevelName(logging.getLogger().getEffectiveLevel()).lower(),
        access_log=False,
    )
    LOGGER.info("Serving stats JSON on http://%s:%d%s", host, port, DATA_PATH)
    return uvicorn.Server(config)
