from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from loguru import logger

from ..board.drag import DragCoordinator
from ..board.store import BoardEvent, BoardStore
from ..config import get_default_columns, get_drag_config, load_config
from ..constants import BOARDS_FILE, BOARDS_LOCK_FILE
from .bootstrap import ensure_state_root
from .file_repo import FileBoardRepository, attach_repository


class TaskNestContainer:
    """Wire config, the YAML repository and a store loaded from it."""

    def __init__(self, project_dir: Path) -> None:
        self.project_dir = project_dir.resolve()
        self.root = ensure_state_root(self.project_dir)

        self.config: dict[str, Any]
        self.config, err = load_config(self.project_dir)
        if err:
            logger.warning("Ignoring unreadable config: {}", err)

        self.boards = FileBoardRepository(self.root / BOARDS_FILE, self.root / BOARDS_LOCK_FILE)
        self.store = BoardStore(self.boards.list())
        current = self.boards.current_board_id()
        if current and self.store.find_board(current) is not None:
            self.store.set_current_board(current)
        self._save_error: Optional[str] = None
        self._detach = attach_repository(self.store, self.boards, on_error=self._record_save_error)

    def _record_save_error(self, event: BoardEvent, exc: Exception) -> None:
        self._save_error = f"{event.type} on board {event.board_id} was not saved: {exc}"

    def take_save_error(self) -> Optional[str]:
        """Return and clear the last persistence failure, if any."""
        err, self._save_error = self._save_error, None
        return err

    @property
    def default_columns(self) -> list[str]:
        return get_default_columns(self.config)

    def drag_coordinator(self, board_id: str) -> DragCoordinator:
        options = get_drag_config(self.config)
        return DragCoordinator(self.store, board_id, rollback_on_cancel=options["rollback_on_cancel"])

    def close(self) -> None:
        self._detach()
