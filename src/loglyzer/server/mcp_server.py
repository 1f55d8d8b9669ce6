"""MCP server entrypoint (stdio transport).

This module wires together:
- Tools: callable actions (summarize access logs over a time window)
- Resources: addressable data blobs (default pattern, payload schema, sample log)
- Prompts: reusable conversation templates that clients can invoke

Run locally (stdio):
    python -m loglyzer.server.mcp_server
"""

from __future__ import annotations

import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from loglyzer.cli import configure_logging
from loglyzer.prompts.registry import register_prompts
from loglyzer.resources.registry import register_resources
from loglyzer.tools.summary import summarize_access_logs_impl

LOGGER = logging.getLogger(__name__)

mcp = FastMCP("loglyzer", json_response=True)

register_resources(mcp)
register_prompts(mcp)


@mcp.tool()
async def summarize_access_logs(
    inputs: list[str],
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
    """Aggregate access-log statistics for files and an optional time window.

    Parameters
    ----------
    inputs:
        Local file paths or glob patterns (e.g., ["/var/log/nginx/access.log*"]).
    since/until:
        ISO-8601 datetimes, both inclusive. If timezone is omitted, UTC is assumed.
    date/hour/week/month:
        Convenience selectors (2024-01-15, 2024-01-15T12, 2024-W03, 2024-01).
        They take priority over since/until.
    pattern:
        Custom extraction regex. Must name groups ip, time, url, status;
        bytes and method are optional.
    date_format:
        strptime format of the time group (default "%d/%b/%Y:%H:%M:%S %z").
    top_n:
        How many top IPs/paths to return (default 10, hard-capped).

    Returns
    -------
    dict:
        {"files": [...], "failed": [...], "lines": int, "stats": {...}}
    """
    return await summarize_access_logs_impl(
        inputs=inputs,
        since=since,
        until=until,
        date=date,
        hour=hour,
        week=week,
        month=month,
        pattern=pattern,
        date_format=date_format,
        top_n=top_n,
    )


def main() -> None:
    """Start the MCP server over stdio."""
    configure_logging()
    LOGGER.debug("Starting MCP server (transport=stdio)")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
