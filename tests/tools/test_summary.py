from __future__ import annotations

from pathlib import Path

import pytest

from loglyzer.prompts.registry import build_traffic_review_prompt
from loglyzer.tools.summary import HARD_TOP_N, summarize_access_logs_impl


@pytest.mark.asyncio
async def test_summary_over_glob(tmp_path: Path, write_access_log) -> None:
    write_access_log(tmp_path / "a.log")
    write_access_log(tmp_path / "b.log")

    out = await summarize_access_logs_impl(inputs=[str(tmp_path / "*.log")])

    assert len(out["files"]) == 2
    assert out["failed"] == []
    assert out["lines"] == 10
    assert out["stats"]["total"] == 8
    assert out["stats"]["unparsable"] == 2
    assert out["stats"]["status_codes"]["404"] == 2


@pytest.mark.asyncio
async def test_summary_with_window_and_top_n(tmp_path: Path, write_access_log) -> None:
    write_access_log(tmp_path / "access.log")

    out = await summarize_access_logs_impl(
        inputs=[str(tmp_path / "access.log")],
        since="2024-01-15T12:05:00Z",
        until="2024-01-15T12:05:31Z",
        top_n=1,
    )

    assert out["stats"]["total"] == 2
    assert out["stats"]["filtered"] == 2
    assert len(out["stats"]["top_ips"]) == 1


@pytest.mark.asyncio
async def test_summary_rejects_bad_input(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        await summarize_access_logs_impl(inputs=[])
    with pytest.raises(ValueError):
        await summarize_access_logs_impl(inputs=[str(tmp_path / "x.log")], top_n=0)
    with pytest.raises(ValueError, match="No log files"):
        await summarize_access_logs_impl(inputs=[str(tmp_path / "*.log")])
    with pytest.raises(ValueError, match="status"):
        await summarize_access_logs_impl(inputs=[str(tmp_path / "x.log")], pattern=r"(?P<ip>\S+)")


@pytest.mark.asyncio
async def test_top_n_is_capped(tmp_path: Path, write_access_log) -> None:
    write_access_log(tmp_path / "access.log")
    out = await summarize_access_logs_impl(inputs=[str(tmp_path / "access.log")], top_n=HARD_TOP_N * 10)
    assert len(out["stats"]["top_paths"]) == 4


def test_traffic_prompt_mentions_tool_and_inputs() -> None:
    messages = build_traffic_review_prompt("a.log, b.log", date="2024-01-15")
    text = messages[1]["content"]
    assert "summarize_access_logs" in text
    assert '["a.log", "b.log"]' in text
    assert "- date: 2024-01-15" in text
