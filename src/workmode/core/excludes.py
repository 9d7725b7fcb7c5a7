"""Exclusion rules for tracked and archived paths.

Only three pattern shapes are understood:
- "dir/**" (optionally "**/dir/**"): path contains "dir"
- "**/name": path contains "name"
- "*.ext": path ends with ".ext"
Anything else never matches.
"""

from collections.abc import Callable, Sequence

from workmode.core.config import get_backup_excludes
from workmode.core.workspace import STATE_DIR_NAME, Workspace

ALWAYS_EXCLUDED = ("node_modules/", ".git/", "dist/", f"{STATE_DIR_NAME}/")


def _matches(pattern: str, path: str) -> bool:
    if pattern.endswith("/**"):
        prefix = pattern[:-3]
        if prefix.startswith("**/"):
            prefix = prefix[3:]
        return prefix in path
    if pattern.startswith("**/"):
        return pattern[3:] in path
    if pattern.startswith("*."):
        return path.endswith(pattern[1:])
    return False


def should_exclude(relative_path: str, patterns: Sequence[str] = ()) -> bool:
    """Check whether a workspace-relative path is left out of backups."""
    path = relative_path.replace("\\", "/")
    if any(segment in path for segment in ALWAYS_EXCLUDED):
        return True
    return any(_matches(pattern, path) for pattern in patterns)


def workspace_filter(workspace: Workspace) -> Callable[[str], bool]:
    """Build an exclusion predicate that re-reads patterns on every call."""

    def is_excluded(relative_path: str) -> bool:
        return should_exclude(relative_path, get_backup_excludes(workspace))

    return is_excluded
