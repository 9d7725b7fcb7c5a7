"""JSON-line logs for sessions and backups.

Records are appended by rewriting the whole file (read, concatenate,
write). Writes are rare, one per session transition or backup, so the
O(file size) cost is acceptable. A crash mid-write can truncate the last
line; read_lines skips such lines.
"""

import logging
from datetime import datetime
from pathlib import Path

import orjson

from workmode.core.workspace import Workspace

logger = logging.getLogger(__name__)

SESSION_START = "start"
SESSION_STOP = "stop"


def local_iso_timestamp(now: datetime | None = None) -> str:
    """Local time as ISO-8601 with UTC offset, e.g. 2025-11-10T17:30:45+03:00."""
    moment = now if now is not None else datetime.now()
    return moment.astimezone().isoformat(timespec="seconds")


def append_line(path: Path, record: dict) -> bool:
    """Append one JSON record as a line.

    Returns:
        False if the record could not be written. Never raises.
    """
    try:
        line = orjson.dumps(record) + b"\n"
        try:
            previous = path.read_bytes()
        except FileNotFoundError:
            previous = b""
        path.write_bytes(previous + line)
        return True
    except (orjson.JSONEncodeError, OSError):
        logger.debug("cannot append to %s", path, exc_info=True)
        return False


def read_lines(path: Path) -> list[dict]:
    """Read all records from a JSON-line file.

    Returns:
        Parsed records in file order. Missing files read as empty;
        blank and corrupt lines are skipped.
    """
    try:
        content = path.read_bytes()
    except OSError:
        return []

    records = []
    for raw in content.splitlines():
        if not raw.strip():
            continue
        try:
            record = orjson.loads(raw)
        except orjson.JSONDecodeError:
            continue
        if isinstance(record, dict):
            records.append(record)
    return records


def _append_log(workspace: Workspace, path: Path, record: dict) -> bool:
    try:
        workspace.logs_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        logger.debug("cannot create %s", workspace.logs_dir, exc_info=True)
        return False
    return append_line(path, record)


def log_session_event(
    workspace: Workspace, event: str, duration_ms: int | None = None
) -> bool:
    """Record a session start or stop in sessions.jsonl."""
    record: dict = {"event": event, "at": local_iso_timestamp()}
    if duration_ms is not None:
        record["durationMs"] = int(duration_ms)
    return _append_log(workspace, workspace.sessions_log, record)


def log_backup(workspace: Workspace, zip_name: str, files: int) -> bool:
    """Record a written archive in backups.jsonl."""
    record = {"at": local_iso_timestamp(), "zip": zip_name, "files": files}
    return _append_log(workspace, workspace.backups_log, record)
