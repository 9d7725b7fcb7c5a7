"""Archive retention for the backups directory."""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".zip"


def list_archives(directory: Path) -> list[Path]:
    """List archives in a directory, oldest first.

    Archive names start with a YYYYMMDD-HHMMSS stamp, so name order is
    chronological order.
    """
    if not directory.is_dir():
        return []
    return sorted(
        (p for p in directory.iterdir() if p.suffix == ARCHIVE_SUFFIX and p.is_file()),
        key=lambda p: p.name,
    )


def enforce_retention(directory: Path, max_count: int) -> list[str]:
    """Delete the oldest archives until at most max_count remain.

    Best effort: listing and deletion failures are ignored.

    Args:
        directory: The backups directory.
        max_count: Number of archives to keep.

    Returns:
        Names of the archives that were deleted.
    """
    try:
        archives = list_archives(directory)
    except OSError:
        logger.debug("cannot list %s", directory, exc_info=True)
        return []

    excess = len(archives) - max(max_count, 0)
    deleted: list[str] = []
    for archive in archives[: max(excess, 0)]:
        try:
            archive.unlink()
            deleted.append(archive.name)
        except OSError:
            logger.debug("cannot delete %s", archive, exc_info=True)
    return deleted
