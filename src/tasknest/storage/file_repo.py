from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Callable, Optional

from loguru import logger

from ..board.model import Board
from ..board.store import BoardEvent, BoardStore
from ..constants import BOARDS_SCHEMA_VERSION
from ..io_utils import FileLock, _atomic_write_yaml, _load_yaml_with_error


class CorruptStateError(RuntimeError):
    """Raised when the boards file exists but cannot be parsed."""


class FileBoardRepository:
    """YAML-backed board collection guarded by a lock file.

    The file holds ``{"version": 1, "current_board_id": ..., "boards": [...]}``.
    A file that fails to parse is never overwritten; reads and writes raise
    :class:`CorruptStateError` instead.
    """

    def __init__(self, path: Path, lock_path: Path) -> None:
        self._path = path
        self._lock = FileLock(lock_path)
        self._thread_lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, Any]:
        data, err = _load_yaml_with_error(self._path, {})
        if err:
            raise CorruptStateError(err)
        if not isinstance(data.get("boards") or [], list):
            raise CorruptStateError(f"{self._path.name}: 'boards' must be a list")
        return data

    @staticmethod
    def _boards(data: dict[str, Any]) -> list[Board]:
        return [Board.from_dict(item) for item in data.get("boards") or [] if isinstance(item, dict)]

    @staticmethod
    def _current(data: dict[str, Any]) -> Optional[str]:
        current = data.get("current_board_id")
        return str(current) if current else None

    def _save(self, boards: list[Board], current_board_id: Optional[str]) -> None:
        payload = {
            "version": BOARDS_SCHEMA_VERSION,
            "current_board_id": current_board_id,
            "boards": [b.to_dict() for b in boards],
        }
        _atomic_write_yaml(self._path, payload)

    def list(self) -> list[Board]:
        with self._thread_lock:
            with self._lock:
                return self._boards(self._read())

    def get(self, board_id: str) -> Optional[Board]:
        for board in self.list():
            if board.id == board_id:
                return board
        return None

    def current_board_id(self) -> Optional[str]:
        with self._thread_lock:
            with self._lock:
                return self._current(self._read())

    def set_current_board_id(self, board_id: Optional[str]) -> None:
        with self._thread_lock:
            with self._lock:
                data = self._read()
                self._save(self._boards(data), board_id)

    def upsert(self, board: Board) -> Board:
        with self._thread_lock:
            with self._lock:
                data = self._read()
                boards = self._boards(data)
                for idx, existing in enumerate(boards):
                    if existing.id == board.id:
                        boards[idx] = board
                        break
                else:
                    boards.append(board)
                self._save(boards, self._current(data))
        return board

    def delete(self, board_id: str) -> bool:
        """Remove a board; a selection pointing at it is cleared too."""
        with self._thread_lock:
            with self._lock:
                data = self._read()
                boards = self._boards(data)
                kept = [b for b in boards if b.id != board_id]
                if len(kept) == len(boards):
                    return False
                current = self._current(data)
                self._save(kept, None if current == board_id else current)
                return True

    def save_all(self, boards: list[Board], current_board_id: Optional[str] = None) -> None:
        with self._thread_lock:
            with self._lock:
                self._save(list(boards), current_board_id)


def attach_repository(
    store: BoardStore,
    repo: FileBoardRepository,
    on_error: Optional[Callable[[BoardEvent, Exception], None]] = None,
) -> Callable[[], None]:
    """Persist every store mutation through *repo*; returns the unsubscribe callable.

    A failed write leaves the store ahead of the file.  It is logged as an
    error and handed to *on_error*; without a handler it propagates to the
    store's listener guard.
    """

    def _persist(event: BoardEvent) -> None:
        try:
            if event.type == "board.selected":
                repo.set_current_board_id(event.entity_id)
            elif event.board is None:
                repo.delete(event.board_id)
            else:
                repo.upsert(event.board)
        except (CorruptStateError, OSError) as exc:
            logger.error(
                "Board {} changed in memory but was NOT saved to {} ({}): {}",
                event.board_id, repo.path, event.type, exc,
            )
            if on_error is None:
                raise
            on_error(event, exc)
            return
        logger.debug("Persisted {} for board {}", event.type, event.board_id)

    return store.subscribe(_persist)
