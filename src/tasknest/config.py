"""Load optional project configuration from `.tasknest/config.yaml`."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from .constants import CONFIG_FILE, DEFAULT_COLUMN_TITLES, DEFAULT_LOG_LEVEL, STATE_DIR_NAME
from .io_utils import _load_yaml_with_error


def load_config(project_dir: Path) -> tuple[dict[str, Any], str | None]:
    """Load the optional config file.

    Args:
        project_dir: Project root directory (the one holding `.tasknest/`).

    Returns:
        A tuple of `(config, error_message)`. If the file is missing, returns `({}, None)`.
    """
    path = project_dir.resolve() / STATE_DIR_NAME / CONFIG_FILE
    data, err = _load_yaml_with_error(path, {})
    if err:
        return {}, err
    return data, None


def _get_nested(config: dict[str, Any], *keys: str) -> Any:
    cur: Any = config
    for key in keys:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur


def get_drag_config(config: dict[str, Any]) -> dict[str, Any]:
    """Extract drag settings with defaults applied.

    Returns:
        A mapping with a boolean `rollback_on_cancel` key.
    """
    raw = _get_nested(config, "drag")
    raw = raw if isinstance(raw, dict) else {}
    return {"rollback_on_cancel": bool(raw.get("rollback_on_cancel", False))}


def get_default_columns(config: dict[str, Any]) -> list[str]:
    """Column titles used when a new board is created without explicit columns."""
    raw = _get_nested(config, "board", "default_columns")
    if isinstance(raw, list):
        titles = [str(item).strip() for item in raw if str(item).strip()]
        if titles:
            return titles
    return list(DEFAULT_COLUMN_TITLES)


def get_logging_config(config: dict[str, Any]) -> dict[str, Any]:
    raw = _get_nested(config, "logging")
    raw = raw if isinstance(raw, dict) else {}
    level = raw.get("level")
    log_file = raw.get("file")
    return {
        "level": str(level).upper() if isinstance(level, str) and level else DEFAULT_LOG_LEVEL,
        "file": str(log_file) if isinstance(log_file, str) and log_file else None,
    }
