"""MCP prompt registry.

Prompts are predefined conversation/workflow templates that the client can invoke explicitly.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from mcp.server.fastmcp import FastMCP


def _format_inputs(inputs: Sequence[str] | str) -> str:
    """Return inputs as a JSON array literal for prompt display."""
    if isinstance(inputs, str):
        items = [s.strip() for s in inputs.split(",") if s.strip()]
    else:
        items = [str(s).strip() for s in inputs if str(s).strip()]
    if not items:
        return "[]"
    quoted = ", ".join(f'"{item}"' for item in items)
    return f"[{quoted}]"


def build_traffic_review_prompt(
    inputs: Sequence[str] | str,
    *,
    since: str | None = None,
    until: str | None = None,
    date: str | None = None,
) -> list[dict[str, Any]]:
    """Build a prompt that reviews access-log traffic through the summary tool."""
    call_lines = [f"- inputs: {_format_inputs(inputs)}"]
    if date is not None:
        call_lines.append(f"- date: {date}")
    else:
        if since is not None:
            call_lines.append(f"- since: {since}")
        if until is not None:
            call_lines.append(f"- until: {until}")
    call_block = "\n".join(call_lines)
    return [
        {
            "role": "system",
            "content": (
                "You are a web operations assistant. Summarize HTTP traffic from aggregate "
                "access-log statistics. Do not invent numbers; quote the tool output."
            ),
        },
        {
            "role": "user",
            "content": (
                "Call summarize_access_logs with:\n"
                f"{call_block}\n\n"
                "Then report:\n"
                "1) Volume: admitted records, unparsable lines (flag if > 1% of lines)\n"
                "2) Error rate: share of 4xx and 5xx status codes\n"
                "3) Hot spots: top client IPs and paths worth a closer look\n"
                "4) Timeline: peaks in the time series and when they happened\n"
            ),
        },
    ]


def register_prompts(mcp: FastMCP) -> None:
    """Register prompt templates on the MCP server."""

    @mcp.prompt()
    def review_access_traffic(
        inputs: Sequence[str] | str,
        since: str | None = None,
        until: str | None = None,
        date: str | None = None,
    ) -> list[dict[str, Any]]:
        """Build a prompt for an access-traffic review."""
        return build_traffic_review_prompt(inputs, since=since, until=until, date=date)
