from __future__ import annotations

import inspect

import pytest

from loglyzer.server import mcp_server


def test_main_takes_no_arguments() -> None:
    assert inspect.signature(mcp_server.main).parameters == {}


@pytest.mark.asyncio
async def test_registrations() -> None:
    tools = {t.name for t in await mcp_server.mcp.list_tools()}
    prompts = {p.name for p in await mcp_server.mcp.list_prompts()}
    resources = {str(r.uri) for r in await mcp_server.mcp.list_resources()}

    assert tools == {"summarize_access_logs"}
    assert prompts == {"review_access_traffic"}
    assert resources == {
        "app://loglyzer/help",
        "app://loglyzer/config/default-pattern",
        "app://loglyzer/schemas/stats-response",
        "app://loglyzer/examples/sample-log",
    }
