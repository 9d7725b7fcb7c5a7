"""Incremental zip backups.

A build combines the tracked on-disk paths with in-memory content of
unsaved documents into {workspace}/.workmode/backups/{stamp}-changed.zip.

Builds are single-flight: a timer request that arrives while another build
is running does nothing, while a waiting request (session stop) runs after
the current one finishes.
"""

import asyncio
import io
import logging
import zipfile
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from workmode.core.config import get_backup_max_items
from workmode.core.documents import DocumentRegistry, UnsavedEntry, collect_unsaved
from workmode.core.jsonl import log_backup
from workmode.core.retention import enforce_retention
from workmode.core.tracker import ChangeTracker
from workmode.core.workspace import Workspace

logger = logging.getLogger(__name__)

ARCHIVE_NAME_SUFFIX = "-changed.zip"


@dataclass(frozen=True)
class BackupResult:
    """A written archive.

    Attributes:
        name: Archive file name
        path: Archive location
        files: Number of entries in the archive
    """

    name: str
    path: Path
    files: int


def archive_name(moment: datetime) -> str:
    """Name an archive after a local timestamp (YYYYMMDD-HHMMSS-changed.zip)."""
    return moment.strftime("%Y%m%d-%H%M%S") + ARCHIVE_NAME_SUFFIX


def _read_tracked_file(root: Path, rel: str, is_excluded: Callable[[str], bool]) -> bytes | None:
    path = root / rel
    if not path.is_file() or is_excluded(rel):
        return None
    return path.read_bytes()


def pack_entries(
    root: Path,
    unsaved: Iterable[UnsavedEntry],
    from_disk: Iterable[str],
    is_excluded: Callable[[str], bool],
) -> dict[str, bytes]:
    """Gather archive contents, unsaved entries first.

    Disk paths are re-read now; missing, non-regular, newly excluded and
    unreadable files are skipped. A disk path already supplied by an unsaved
    entry is skipped so the in-memory text wins.

    Returns:
        Mapping of archive path to content, in insertion order.
    """
    entries: dict[str, bytes] = {}
    for entry in unsaved:
        entries.setdefault(entry.archive_path, entry.content)

    for rel in from_disk:
        if rel in entries:
            continue
        try:
            data = _read_tracked_file(root, rel, is_excluded)
        except OSError:
            logger.debug("skipping unreadable %s", rel, exc_info=True)
            continue
        if data is not None:
            entries[rel] = data
    return entries


def write_archive(path: Path, entries: dict[str, bytes]) -> None:
    """Write entries to a zip file at path, replacing any existing file."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, data in entries.items():
            archive.writestr(name, data)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(buffer.getvalue())


class BackupEngine:
    """Builds archives from a tracker and a document registry."""

    def __init__(
        self,
        workspace: Workspace,
        tracker: ChangeTracker,
        registry: DocumentRegistry,
        is_excluded: Callable[[str], bool],
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.workspace = workspace
        self.tracker = tracker
        self.registry = registry
        self._is_excluded = is_excluded
        self._now = now
        self._lock = asyncio.Lock()

    @property
    def building(self) -> bool:
        return self._lock.locked()

    async def build_if_needed(self, wait: bool = False) -> BackupResult | None:
        """Archive tracked and unsaved content if there is any.

        Args:
            wait: Queue behind an in-flight build instead of skipping.

        Returns:
            The written archive, or None when nothing was written.

        Raises:
            OSError: If the archive itself cannot be written. Tracked paths
                are kept for the next attempt.
        """
        if self._lock.locked() and not wait:
            logger.debug("backup already in progress, skipping")
            return None
        async with self._lock:
            return await self._build()

    def _record(self, name: str, files: int) -> None:
        enforce_retention(self.workspace.backups_dir, get_backup_max_items(self.workspace))
        log_backup(self.workspace, name, files)

    async def _build(self) -> BackupResult | None:
        from_disk = self.tracker.snapshot()
        unsaved = collect_unsaved(self.registry, self.workspace, self._is_excluded)
        if not from_disk and not unsaved:
            return None

        name = archive_name(self._now())
        path = self.workspace.backups_dir / name

        entries = await asyncio.to_thread(
            pack_entries, self.workspace.root, unsaved, from_disk, self._is_excluded
        )
        if not entries:
            # Everything tracked vanished or is now excluded
            self.tracker.discard(from_disk)
            return None

        await asyncio.to_thread(write_archive, path, entries)
        await asyncio.to_thread(self._record, name, len(entries))
        self.tracker.discard(from_disk)

        logger.info("backup %s saved (%d files)", name, len(entries))
        return BackupResult(name=name, path=path, files=len(entries))
