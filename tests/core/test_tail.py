from __future__ import annotations

import asyncio
import os
from pathlib import Path

import pytest

from loglyzer.core.errors import FatalIOError
from loglyzer.core.ingest import IngestPipeline
from loglyzer.core.models import TailStatus
from loglyzer.core.sources import expand_sources
from loglyzer.core.stats import StatsAggregator
from loglyzer.core.tail import FileTailer


def _tailer(path: Path, *, from_start: bool = False) -> FileTailer:
    pipeline = IngestPipeline(stats=StatsAggregator())
    return FileTailer(path, pipeline, poll_interval=0.01, from_start=from_start)


@pytest.mark.asyncio
async def test_starts_at_end_by_default(tmp_path: Path, write_access_log, append, line) -> None:
    path = tmp_path / "access.log"
    write_access_log(path)
    tailer = _tailer(path)

    assert await tailer.step() == 0
    assert tailer.status is TailStatus.TAILING
    assert tailer.pipeline.stats.total == 0

    append(path, line(status=503) + "\n")
    assert await tailer.step() == 1
    snap = tailer.pipeline.stats.snapshot()
    assert snap.total == 1
    assert snap.status_count(503) == 1


@pytest.mark.asyncio
async def test_from_start_reads_existing_content(tmp_path: Path, write_access_log) -> None:
    path = tmp_path / "access.log"
    write_access_log(path)
    tailer = _tailer(path, from_start=True)

    assert await tailer.step() == 5
    assert tailer.pipeline.stats.total == 4
    assert tailer.pipeline.stats.unparsable == 1


@pytest.mark.asyncio
async def test_append_one_line_bumps_one_status(tmp_path: Path, write_access_log, append, line) -> None:
    path = tmp_path / "access.log"
    write_access_log(path)
    tailer = _tailer(path, from_start=True)
    await tailer.step()
    before = tailer.pipeline.stats.snapshot()

    append(path, line(status=204) + "\n")
    await tailer.step()
    after = tailer.pipeline.stats.snapshot()

    assert after.total == before.total + 1
    assert after.status_count(204) == before.status_count(204) + 1
    assert after.unparsable == before.unparsable


@pytest.mark.asyncio
async def test_partial_line_waits_for_newline(tmp_path: Path, append, line) -> None:
    path = tmp_path / "access.log"
    path.write_text("", encoding="utf-8")
    tailer = _tailer(path)
    await tailer.step()

    full = line(path="/slow")
    append(path, full[:20])
    assert await tailer.step() == 0
    assert tailer.pipeline.stats.unparsable == 0
    assert tailer.state.fragment == full[:20].encode()

    append(path, full[20:] + "\n")
    assert await tailer.step() == 1
    assert tailer.pipeline.stats.total == 1
    assert tailer.state.fragment == b""


@pytest.mark.asyncio
async def test_rotation_by_replace_reads_new_file_without_duplicates(tmp_path: Path, line) -> None:
    path = tmp_path / "access.log"
    path.write_text("".join(line(ip=f"10.0.0.{i}") + "\n" for i in range(3)), encoding="utf-8")
    tailer = _tailer(path, from_start=True)
    await tailer.step()
    assert tailer.pipeline.stats.total == 3
    old_identity = tailer.state.identity

    fresh = tmp_path / "access.log.new"
    fresh.write_text(line(ip="192.168.1.1") + "\n" + line(ip="192.168.1.2") + "\n", encoding="utf-8")
    os.replace(fresh, path)

    await tailer.step()
    await tailer.step()

    snap = tailer.pipeline.stats.snapshot()
    assert snap.total == 5
    counts = dict(snap.top_ips)
    assert all(counts[f"10.0.0.{i}"] == 1 for i in range(3))
    assert counts["192.168.1.1"] == 1
    assert counts["192.168.1.2"] == 1
    assert tailer.state.identity != old_identity
    assert tailer.status is TailStatus.TAILING


@pytest.mark.asyncio
async def test_rotation_drains_lines_written_before_swap(tmp_path: Path, append, line) -> None:
    path = tmp_path / "access.log"
    path.write_text("", encoding="utf-8")
    tailer = _tailer(path)
    await tailer.step()

    append(path, line(path="/late") + "\n")
    path.rename(tmp_path / "access.log.1")
    path.write_text(line(path="/new") + "\n", encoding="utf-8")

    await tailer.step()
    paths = dict(tailer.pipeline.stats.snapshot().top_paths)
    assert paths == {"/late": 1, "/new": 1}


@pytest.mark.asyncio
async def test_truncation_resets_offset_and_drops_fragment(tmp_path: Path, append, line) -> None:
    path = tmp_path / "access.log"
    path.write_text("".join(line() + "\n" for _ in range(5)), encoding="utf-8")
    tailer = _tailer(path, from_start=True)
    await tailer.step()
    append(path, "dangling fragment")
    await tailer.step()
    assert tailer.state.fragment

    path.write_text(line(status=418) + "\n", encoding="utf-8")
    await tailer.step()

    snap = tailer.pipeline.stats.snapshot()
    assert snap.total == 6
    assert snap.status_count(418) == 1
    assert snap.unparsable == 0
    assert tailer.state.offset == path.stat().st_size


@pytest.mark.asyncio
async def test_missing_file_is_transient(tmp_path: Path, line) -> None:
    path = tmp_path / "later.log"
    tailer = _tailer(path, from_start=True)

    assert await tailer.step() == 0
    assert tailer.status is TailStatus.OPENING

    path.write_text(line() + "\n", encoding="utf-8")
    assert await tailer.step() == 1


@pytest.mark.asyncio
async def test_directory_is_fatal(tmp_path: Path) -> None:
    tailer = _tailer(tmp_path)
    with pytest.raises(FatalIOError):
        await tailer.run()
    assert tailer.status is TailStatus.STOPPED


@pytest.mark.asyncio
async def test_run_until_stop_closes_handle(tmp_path: Path, append, line) -> None:
    path = tmp_path / "access.log"
    path.write_text("", encoding="utf-8")
    tailer = _tailer(path)

    task = asyncio.create_task(tailer.run())
    for _ in range(200):
        if tailer.status is TailStatus.TAILING:
            break
        await asyncio.sleep(0.01)
    append(path, line() + "\n")
    for _ in range(200):
        if tailer.pipeline.stats.total:
            break
        await asyncio.sleep(0.01)

    tailer.stop()
    await asyncio.wait_for(task, timeout=2)
    assert tailer.pipeline.stats.total == 1
    assert tailer.status is TailStatus.STOPPED
    assert tailer._handle is None


@pytest.mark.asyncio
async def test_cancel_stops_loop(tmp_path: Path) -> None:
    path = tmp_path / "access.log"
    path.write_text("", encoding="utf-8")
    tailer = _tailer(path)

    task = asyncio.create_task(tailer.run())
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert tailer.status is TailStatus.STOPPED
    assert tailer._handle is None


@pytest.mark.asyncio
async def test_repointed_symlink_is_followed(tmp_path: Path, line) -> None:
    day1 = tmp_path / "access.log.day1"
    day1.write_text("", encoding="utf-8")
    link = tmp_path / "access.log"
    link.symlink_to(day1.name)

    [path] = expand_sources([str(link)])
    tailer = _tailer(path)
    await tailer.step()

    day2 = tmp_path / "access.log.day2"
    day2.write_text(line(path="/day2") + "\n", encoding="utf-8")
    staged = tmp_path / "access.log.tmp"
    staged.symlink_to(day2.name)
    os.replace(staged, link)

    await tailer.step()
    assert tailer.path == link
    assert dict(tailer.pipeline.stats.snapshot().top_paths) == {"/day2": 1}


@pytest.mark.asyncio
async def test_truncate_and_refill_between_polls(tmp_path: Path, line) -> None:
    path = tmp_path / "access.log"
    path.write_text("".join(line(ip=f"10.0.0.{i}") + "\n" for i in range(3)), encoding="utf-8")
    tailer = _tailer(path, from_start=True)
    await tailer.step()
    assert tailer.pipeline.stats.total == 3

    # Same inode, regrown past the previous offset before the next poll.
    with path.open("r+", encoding="utf-8") as f:
        f.truncate(0)
        f.write("".join(line(ip=f"192.168.0.{i}", path=f"/after/{i}") + "\n" for i in range(4)))

    await tailer.step()

    snap = tailer.pipeline.stats.snapshot()
    assert snap.total == 7
    assert snap.unparsable == 0
    counts = dict(snap.top_ips)
    assert all(counts[f"192.168.0.{i}"] == 1 for i in range(4))
    assert tailer.state.offset == path.stat().st_size


@pytest.mark.asyncio
async def test_start_at_end_still_detects_refill(tmp_path: Path, write_access_log, line) -> None:
    path = tmp_path / "access.log"
    write_access_log(path)
    tailer = _tailer(path)
    await tailer.step()
    assert tailer.state.checkpoint

    with path.open("r+", encoding="utf-8") as f:
        f.truncate(0)
        f.write("".join(line(path=f"/refill/{i}") + "\n" for i in range(8)))

    await tailer.step()
    assert tailer.pipeline.stats.total == 8
    assert tailer.pipeline.stats.unparsable == 0


@pytest.mark.asyncio
async def test_path_missing_while_tailing_drains_old_file(tmp_path: Path, append, line) -> None:
    path = tmp_path / "access.log"
    path.write_text("", encoding="utf-8")
    tailer = _tailer(path)
    await tailer.step()

    append(path, line(path="/late") + "\n")
    path.rename(tmp_path / "access.log.1")
    assert await tailer.step() == 0
    assert tailer.status is TailStatus.TAILING
    assert tailer._handle is not None

    path.write_text(line(path="/new") + "\n", encoding="utf-8")
    await tailer.step()

    assert dict(tailer.pipeline.stats.snapshot().top_paths) == {"/late": 1, "/new": 1}
