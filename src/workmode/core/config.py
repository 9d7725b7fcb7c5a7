"""Workspace configuration for workmode.

Settings live in {workspace}/.workmode/config.json as a flat object keyed
by option name. The file is read on every access so edits made while a
session runs take effect on the next check.
"""

import orjson

from workmode.core.workspace import Workspace

ENABLE_MINIMAL_UI = "enableMinimalUI"
BACKUP_INTERVAL_SEC = "backup.intervalSec"
BACKUP_MAX_ITEMS = "backup.maxItems"
BACKUP_EXCLUDES = "backup.excludes"

DEFAULT_INTERVAL_SEC = 60
MIN_INTERVAL_SEC = 10
DEFAULT_MAX_ITEMS = 300

DEFAULTS: dict = {
    ENABLE_MINIMAL_UI: False,
    BACKUP_INTERVAL_SEC: DEFAULT_INTERVAL_SEC,
    BACKUP_MAX_ITEMS: DEFAULT_MAX_ITEMS,
    BACKUP_EXCLUDES: [],
}


def read_config(workspace: Workspace) -> dict:
    """Read workspace config, returning empty dict if missing or corrupt."""
    config_path = workspace.config_path
    if not config_path.exists():
        return {}
    try:
        content = config_path.read_bytes()
        config = orjson.loads(content) if content else {}
    except (orjson.JSONDecodeError, OSError):
        return {}
    return config if isinstance(config, dict) else {}


def write_config(workspace: Workspace, config: dict) -> None:
    """Write workspace config."""
    config_path = workspace.config_path
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_bytes(orjson.dumps(config, option=orjson.OPT_INDENT_2))


def get_option(workspace: Workspace, key: str):
    """Get an option value, falling back to its default."""
    if key not in DEFAULTS:
        raise KeyError(key)
    return read_config(workspace).get(key, DEFAULTS[key])


def set_option(workspace: Workspace, key: str, value) -> None:
    """Validate and persist an option.

    Raises:
        KeyError: If key is not a recognized option.
        ValueError: If value has the wrong type for the option.
    """
    if key not in DEFAULTS:
        raise KeyError(key)
    if key == ENABLE_MINIMAL_UI and not isinstance(value, bool):
        raise ValueError(f"{key} must be true or false")
    if key in (BACKUP_INTERVAL_SEC, BACKUP_MAX_ITEMS) and (
        isinstance(value, bool) or not isinstance(value, int)
    ):
        raise ValueError(f"{key} must be an integer")
    if key == BACKUP_EXCLUDES and not (
        isinstance(value, list) and all(isinstance(v, str) for v in value)
    ):
        raise ValueError(f"{key} must be a list of strings")
    config = read_config(workspace)
    config[key] = value
    write_config(workspace, config)


def get_enable_minimal_ui(workspace: Workspace) -> bool:
    return bool(get_option(workspace, ENABLE_MINIMAL_UI))


def get_backup_interval_sec(workspace: Workspace) -> int:
    """Get the backup timer period in seconds (never below 10)."""
    value = get_option(workspace, BACKUP_INTERVAL_SEC)
    if not isinstance(value, int) or isinstance(value, bool):
        value = DEFAULT_INTERVAL_SEC
    return max(MIN_INTERVAL_SEC, value)


def get_backup_max_items(workspace: Workspace) -> int:
    """Get the maximum number of archives kept per workspace."""
    value = get_option(workspace, BACKUP_MAX_ITEMS)
    if not isinstance(value, int) or isinstance(value, bool):
        return DEFAULT_MAX_ITEMS
    return value


def get_backup_excludes(workspace: Workspace) -> list[str]:
    """Get user exclusion patterns, ignoring non-string entries."""
    value = get_option(workspace, BACKUP_EXCLUDES)
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]
