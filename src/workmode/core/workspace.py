"""Workspace identification and layout for workmode.

A workspace is the git root of the current directory (or the directory
itself outside a repo). All state lives under {root}/.workmode/:
- backups/: timestamped zip archives
- logs/sessions.jsonl, logs/backups.jsonl: JSON-line logs
- config.json: workspace settings
"""

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

STATE_DIR_NAME = ".workmode"


class WorkspaceError(Exception):
    """Raised when a workspace root cannot be used."""

    pass


def get_root_path_for(path: Path) -> Path:
    """Get the workspace root for a path (git root or the path itself)."""
    try:
        result = subprocess.run(
            ["git", "-C", str(path), "rev-parse", "--show-toplevel"],
            capture_output=True,
            text=True,
            check=True,
        )
        return Path(result.stdout.strip())
    except (subprocess.CalledProcessError, FileNotFoundError):
        return path


def get_root_path() -> Path:
    """Get the workspace root for the current directory."""
    return get_root_path_for(Path.cwd())


@dataclass(frozen=True)
class Workspace:
    """A project folder and its workmode state directory.

    Attributes:
        root: Absolute path of the workspace folder.
    """

    root: Path

    def __post_init__(self) -> None:
        object.__setattr__(self, "root", Path(os.path.abspath(self.root)))

    @property
    def state_dir(self) -> Path:
        return self.root / STATE_DIR_NAME

    @property
    def backups_dir(self) -> Path:
        return self.state_dir / "backups"

    @property
    def logs_dir(self) -> Path:
        return self.state_dir / "logs"

    @property
    def sessions_log(self) -> Path:
        return self.logs_dir / "sessions.jsonl"

    @property
    def backups_log(self) -> Path:
        return self.logs_dir / "backups.jsonl"

    @property
    def config_path(self) -> Path:
        return self.state_dir / "config.json"

    def relative_path(self, path: str | os.PathLike) -> str | None:
        """Convert a path to a POSIX workspace-relative path.

        Relative inputs are taken relative to the workspace root.

        Returns:
            The relative path with forward slashes, or None if the path is
            the root itself or resolves outside of it.
        """
        absolute = os.path.abspath(os.path.join(self.root, path))
        try:
            rel = os.path.relpath(absolute, self.root)
        except ValueError:
            # Different drive on Windows
            return None
        if rel == os.curdir:
            return None
        parts = rel.split(os.sep)
        if parts[0] == os.pardir:
            return None
        return "/".join(parts)


def open_workspace(path: Path | None = None) -> Workspace:
    """Open the workspace containing path (default: current directory).

    Raises:
        WorkspaceError: If the path is not an existing directory.
    """
    if path is None:
        return Workspace(get_root_path())
    if not path.is_dir():
        raise WorkspaceError(f"Not a directory: {path}")
    return Workspace(get_root_path_for(path))
