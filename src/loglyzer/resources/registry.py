"""MCP resource registry.

Resources are addressable by URI and can be fetched by the MCP client on demand.
"""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from loglyzer.core.patterns import DEFAULT_DATE_FORMAT, DEFAULT_PATTERN, OPTIONAL_SLOTS, REQUIRED_SLOTS
from loglyzer.server.schemas import StatsResponse

SAMPLE_LOG = (
    '203.0.113.7 - - [15/Jan/2024:12:04:12 +0000] "GET / HTTP/1.1" 200 5120\n'
    '8.8.8.8 - - [15/Jan/2024:12:05:00 +0000] "GET /health HTTP/1.1" 204 0\n'
    '203.0.113.7 - - [15/Jan/2024:12:05:31 +0000] "POST /api/login HTTP/1.1" 401 312\n'
    '198.51.100.2 - - [15/Jan/2024:12:06:02 +0000] "GET /missing HTTP/1.1" 404 -\n'
)


def register_resources(mcp: FastMCP) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://loglyzer/help")
    def help_resource() -> str:
        """Return a short list of available resource URIs."""
        return (
            "Resources:\n"
            "- app://loglyzer/help\n"
            "- app://loglyzer/config/default-pattern\n"
            "- app://loglyzer/schemas/stats-response\n"
            "- app://loglyzer/examples/sample-log\n"
            "\nTools:\n"
            "- summarize_access_logs(inputs, since?, until?, date?, hour?, week?, month?, "
            "pattern?, date_format?, top_n?)\n"
        )

    @mcp.resource("app://loglyzer/config/default-pattern")
    def default_pattern() -> dict[str, Any]:
        """Return the default extraction pattern and its slot rules."""
        return {
            "pattern": DEFAULT_PATTERN,
            "date_format": DEFAULT_DATE_FORMAT,
            "required_groups": list(REQUIRED_SLOTS),
            "optional_groups": list(OPTIONAL_SLOTS),
        }

    @mcp.resource("app://loglyzer/schemas/stats-response")
    def stats_schema() -> dict[str, Any]:
        """Return the JSON schema of the stats payload."""
        return StatsResponse.model_json_schema()

    @mcp.resource("app://loglyzer/examples/sample-log")
    def sample_log() -> str:
        """Return a tiny combined-format access log for demos and tests."""
        return SAMPLE_LOG
