"""Change tracking for incremental backups.

Paths enter the change set from two producers: a recursive filesystem watch
over the workspace (created and modified files) and document-changed events
from the open-document registry. The backup engine drains the set.
"""

import asyncio
import logging
import os
from collections.abc import AsyncIterator, Callable, Iterable

from watchfiles import Change, awatch

from workmode.core.documents import Document, DocumentRegistry, Subscription
from workmode.core.workspace import Workspace

logger = logging.getLogger(__name__)

TRACKED_CHANGES = {Change.added, Change.modified}

ChangeBatch = Iterable[tuple[Change, str]]
ChangeSource = AsyncIterator[ChangeBatch]


class ChangeTracker:
    """Workspace-relative paths changed since the last snapshot."""

    def __init__(
        self, workspace: Workspace, is_excluded: Callable[[str], bool]
    ) -> None:
        self.workspace = workspace
        self._is_excluded = is_excluded
        self._paths: set[str] = set()

    def __len__(self) -> int:
        return len(self._paths)

    def __contains__(self, path: str) -> bool:
        return path in self._paths

    def track(self, path: str | os.PathLike) -> bool:
        """Add a path if it is inside the workspace and not excluded.

        Returns:
            True if the path was accepted.
        """
        rel = self.workspace.relative_path(path)
        if rel is None or self._is_excluded(rel):
            return False
        self._paths.add(rel)
        return True

    def record_changes(self, changes: ChangeBatch) -> int:
        """Track created and modified paths from a watch batch.

        Returns:
            Number of paths accepted.
        """
        accepted = 0
        for change, path in changes:
            if change in TRACKED_CHANGES and self.track(path):
                accepted += 1
        return accepted

    def on_document_changed(self, document: Document) -> None:
        if document.is_untitled:
            return
        self.track(document.path)

    def attach(self, registry: DocumentRegistry) -> Subscription:
        """Track edits to disk-backed documents of a registry."""
        return registry.on_did_change(self.on_document_changed)

    async def watch(
        self,
        source: ChangeSource | None = None,
        stop_event: asyncio.Event | None = None,
    ) -> None:
        """Consume change batches until the source ends or is cancelled.

        Args:
            source: Async iterator of change batches. Defaults to a
                recursive watchfiles watch of the workspace root, unfiltered
                so the exclusion predicate is the only filter.
            stop_event: Ends the default watch when set.
        """
        if source is None:
            source = awatch(self.workspace.root, watch_filter=None, stop_event=stop_event)
        async for changes in source:
            accepted = self.record_changes(changes)
            if accepted:
                logger.debug("tracked %d changed path(s)", accepted)

    def snapshot(self) -> list[str]:
        """Return the tracked paths without clearing them."""
        return sorted(self._paths)

    def discard(self, paths: Iterable[str]) -> None:
        """Forget paths that have been archived."""
        self._paths.difference_update(paths)

    def clear(self) -> None:
        self._paths.clear()
