"""File locking and atomic YAML reads/writes for the state directory."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import yaml

from .constants import WINDOWS_LOCK_BYTES


class FileLock:
    """Best-effort cross-platform file lock."""

    def __init__(self, lock_path: Path):
        self.lock_path = lock_path
        self.handle: Optional[Any] = None
        self.lock_bytes = WINDOWS_LOCK_BYTES

    def __enter__(self) -> "FileLock":
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        self.handle = open(self.lock_path, "w")
        if os.name == "nt":
            import msvcrt

            self.handle.seek(0)
            self.handle.truncate(self.lock_bytes)
            self.handle.flush()
            msvcrt.locking(self.handle.fileno(), msvcrt.LK_LOCK, self.lock_bytes)
        else:
            import fcntl

            fcntl.flock(self.handle, fcntl.LOCK_EX)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self.handle:
            return
        if os.name == "nt":
            import msvcrt

            self.handle.seek(0)
            msvcrt.locking(self.handle.fileno(), msvcrt.LK_UNLCK, self.lock_bytes)
        else:
            import fcntl

            fcntl.flock(self.handle, fcntl.LOCK_UN)
        self.handle.close()
        self.handle = None


def _load_yaml_with_error(path: Path, default: dict[str, Any]) -> tuple[dict[str, Any], Optional[str]]:
    """
    Load a YAML mapping and return (data, error_message).

    Parse and IO failures are reported rather than raised so callers can
    refuse to overwrite a corrupted file.
    """
    if not path.exists():
        return default, None
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except OSError as exc:
        return default, f"{path.name}: {exc.__class__.__name__}: {exc}"
    except yaml.YAMLError as exc:
        return default, f"{path.name}: YAMLError: {exc}"
    if data is None:
        return default, None
    if not isinstance(data, dict):
        return default, f"{path.name}: expected mapping, got {type(data).__name__}"
    return data, None


def _atomic_write_yaml(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with open(tmp_path, "w", encoding="utf-8") as handle:
        yaml.safe_dump(
            data,
            handle,
            sort_keys=False,
            default_flow_style=False,
            allow_unicode=True,
        )
        handle.flush()
        os.fsync(handle.fileno())
    os.replace(tmp_path, path)
