"""Tests for incremental archive builds."""

import asyncio
import itertools
import threading
import zipfile
from datetime import datetime, timedelta

import pytest

import workmode.core.backup as backup
from tests.helpers import write_file
from workmode.core.backup import BackupEngine, archive_name
from workmode.core.config import set_option
from workmode.core.documents import Document
from workmode.core.excludes import workspace_filter
from workmode.core.jsonl import read_lines
from workmode.core.tracker import ChangeTracker

FIXED = datetime(2025, 11, 10, 17, 30, 45)


def _stamps():
    """Clock returning a new second on every call."""
    counter = itertools.count()
    return lambda: FIXED + timedelta(seconds=next(counter))


@pytest.fixture
def tracker(workspace):
    return ChangeTracker(workspace, workspace_filter(workspace))


@pytest.fixture
def engine(workspace, registry, tracker):
    return BackupEngine(
        workspace, tracker, registry, workspace_filter(workspace), now=_stamps()
    )


def _contents(path):
    with zipfile.ZipFile(path) as archive:
        return {name: archive.read(name) for name in archive.namelist()}


def test_archive_name():
    assert archive_name(FIXED) == "20251110-173045-changed.zip"


@pytest.mark.asyncio
async def test_disk_and_unsaved_entries(workspace, registry, tracker, engine):
    """Test one tracked file plus one dirty buffer make a two-entry archive."""
    write_file(workspace, "src/a.ts", "disk a")
    doc = registry.open(Document.from_file(write_file(workspace, "src/b.ts", "old b")))
    registry.edit(doc, "hello")
    tracker.clear()
    tracker.track("src/a.ts")

    result = await engine.build_if_needed()

    assert result.name == "20251110-173045-changed.zip"
    assert result.path == workspace.backups_dir / result.name
    assert result.files == 2
    assert _contents(result.path) == {"src/a.ts": b"disk a", "src/b.ts": b"hello"}
    assert len(list(workspace.backups_dir.iterdir())) == 1


@pytest.mark.asyncio
async def test_nothing_to_do_writes_nothing(workspace, engine):
    """Test an empty tick touches no files and logs nothing."""
    assert await engine.build_if_needed() is None
    assert not workspace.state_dir.exists()


@pytest.mark.asyncio
async def test_clean_open_documents_write_nothing(workspace, registry, engine):
    registry.open(Document.from_file(write_file(workspace, "a.txt", "saved")))
    assert await engine.build_if_needed() is None
    assert not workspace.state_dir.exists()


@pytest.mark.asyncio
async def test_deleted_only_file_creates_no_archive(workspace, tracker, engine):
    path = write_file(workspace, "a.py", "x")
    tracker.track(path)
    path.unlink()

    assert await engine.build_if_needed() is None
    assert list(workspace.backups_dir.glob("*.zip")) == []
    assert read_lines(workspace.backups_log) == []
    assert len(tracker) == 0


@pytest.mark.asyncio
async def test_deleted_file_is_omitted(workspace, tracker, engine):
    tracker.track(write_file(workspace, "keep.py", "k"))
    gone = write_file(workspace, "gone.py", "g")
    tracker.track(gone)
    gone.unlink()

    result = await engine.build_if_needed()
    assert _contents(result.path) == {"keep.py": b"k"}


@pytest.mark.asyncio
async def test_directories_are_skipped(workspace, tracker, engine):
    (workspace.root / "pkg").mkdir()
    tracker.track(workspace.root / "pkg")
    tracker.track(write_file(workspace, "pkg/mod.py", "m"))

    result = await engine.build_if_needed()
    assert _contents(result.path) == {"pkg/mod.py": b"m"}


@pytest.mark.asyncio
async def test_unsaved_content_wins_over_disk(workspace, registry, tracker, engine):
    path = write_file(workspace, "a.py", "on disk")
    doc = registry.open(Document.from_file(path))
    registry.edit(doc, "in memory")
    tracker.track(path)

    result = await engine.build_if_needed()
    assert result.files == 1
    assert _contents(result.path) == {"a.py": b"in memory"}


@pytest.mark.asyncio
async def test_untitled_documents_go_under_unsaved(workspace, registry, engine):
    registry.open(Document.untitled("scratch.md", "todo"))
    result = await engine.build_if_needed()
    assert _contents(result.path) == {"UNSAVED/scratch.md": b"todo"}


@pytest.mark.asyncio
async def test_newly_excluded_paths_are_skipped(workspace, tracker, engine):
    """Test exclusions are re-checked at build time."""
    tracker.track(write_file(workspace, "notes.tmp", "t"))
    tracker.track(write_file(workspace, "main.py", "m"))
    set_option(workspace, "backup.excludes", ["*.tmp"])

    result = await engine.build_if_needed()
    assert _contents(result.path) == {"main.py": b"m"}


@pytest.mark.asyncio
async def test_success_logs_and_clears(workspace, tracker, engine):
    tracker.track(write_file(workspace, "a.py", "a"))
    tracker.track(write_file(workspace, "b.py", "b"))

    result = await engine.build_if_needed()

    (record,) = read_lines(workspace.backups_log)
    assert record["zip"] == result.name
    assert record["files"] == 2
    assert len(tracker) == 0


@pytest.mark.asyncio
async def test_retention_runs_after_write(workspace, tracker, engine):
    set_option(workspace, "backup.maxItems", 1)
    workspace.backups_dir.mkdir(parents=True)
    (workspace.backups_dir / "20000101-000000-changed.zip").write_bytes(b"PK")
    tracker.track(write_file(workspace, "a.py", "a"))

    result = await engine.build_if_needed()

    assert [p.name for p in workspace.backups_dir.iterdir()] == [result.name]


@pytest.mark.asyncio
async def test_unreadable_file_gives_partial_archive(workspace, tracker, engine, monkeypatch):
    """Test a per-file read error skips only that file and still clears it."""
    real_read = backup._read_tracked_file

    def flaky_read(root, rel, is_excluded):
        if rel == "locked.py":
            raise PermissionError("denied")
        return real_read(root, rel, is_excluded)

    monkeypatch.setattr("workmode.core.backup._read_tracked_file", flaky_read)
    tracker.track(write_file(workspace, "locked.py", "l"))
    tracker.track(write_file(workspace, "open.py", "o"))

    result = await engine.build_if_needed()

    assert _contents(result.path) == {"open.py": b"o"}
    assert len(tracker) == 0


@pytest.mark.asyncio
async def test_archive_write_failure_keeps_paths(workspace, tracker, engine, monkeypatch):
    """Test a failed archive write propagates and leaves paths for the next tick."""

    def broken_write(path, entries):
        raise OSError("disk full")

    monkeypatch.setattr("workmode.core.backup.write_archive", broken_write)
    tracker.track(write_file(workspace, "a.py", "a"))

    with pytest.raises(OSError, match="disk full"):
        await engine.build_if_needed()

    assert tracker.snapshot() == ["a.py"]
    assert read_lines(workspace.backups_log) == []


@pytest.mark.asyncio
async def test_single_flight(workspace, tracker, engine, monkeypatch):
    """Test overlapping builds: timer requests coalesce, waiting requests queue."""
    gate = threading.Event()
    real_pack = backup.pack_entries

    def slow_pack(*args):
        gate.wait(5)
        return real_pack(*args)

    monkeypatch.setattr("workmode.core.backup.pack_entries", slow_pack)
    tracker.track(write_file(workspace, "a.py", "a"))

    first = asyncio.create_task(engine.build_if_needed())
    while not engine.building:
        await asyncio.sleep(0)

    # Tracked while the first build is packing
    tracker.track(write_file(workspace, "late.py", "l"))
    assert await engine.build_if_needed() is None
    queued = asyncio.create_task(engine.build_if_needed(wait=True))
    await asyncio.sleep(0)

    gate.set()
    first_result = await first
    queued_result = await queued

    assert _contents(first_result.path) == {"a.py": b"a"}
    assert _contents(queued_result.path) == {"late.py": b"l"}
    assert first_result.name != queued_result.name
    assert len(tracker) == 0


@pytest.mark.asyncio
async def test_build_file_io_runs_off_the_event_loop(workspace, tracker, engine, monkeypatch):
    """Test retention and the backup log run in a worker thread."""
    loop_thread = threading.get_ident()
    threads = {}
    real_retention = backup.enforce_retention
    real_log = backup.log_backup

    def spy_retention(directory, max_count):
        threads["retention"] = threading.get_ident()
        return real_retention(directory, max_count)

    def spy_log(ws, zip_name, files):
        threads["log"] = threading.get_ident()
        return real_log(ws, zip_name, files)

    monkeypatch.setattr("workmode.core.backup.enforce_retention", spy_retention)
    monkeypatch.setattr("workmode.core.backup.log_backup", spy_log)
    tracker.track(write_file(workspace, "a.py", "a"))

    result = await engine.build_if_needed()

    assert result is not None
    assert set(threads) == {"retention", "log"}
    assert loop_thread not in threads.values()
    assert [r["zip"] for r in read_lines(workspace.backups_log)] == [result.name]
