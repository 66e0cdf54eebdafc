"""Drag coordinator: turns gesture events into store moves.

The coordinator is a two-state machine (``IDLE`` / ``LIFTED``).  While an
item is lifted every hover is applied to the store immediately, so the board
always shows the tentative placement.  Nothing is held back until the drop.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from loguru import logger

from .errors import BoardError
from .model import Board
from .store import BoardStore


class DragState(str, Enum):
    IDLE = "idle"
    LIFTED = "lifted"


class ItemKind(str, Enum):
    TASK = "task"
    COLUMN = "column"


class TargetKind(str, Enum):
    TASK = "task"
    COLUMN = "column"
    # The droppable area of a column (its empty space / task list).
    CONTAINER = "container"


@dataclass(frozen=True)
class LiftedItem:
    item_id: str
    item_kind: ItemKind
    origin_container_id: str


@dataclass(frozen=True)
class DragStart:
    item_id: str
    item_kind: ItemKind
    source_container_id: Optional[str] = None


@dataclass(frozen=True)
class DragOver:
    target_id: str
    target_kind: TargetKind


@dataclass(frozen=True)
class DragEnd:
    target_id: Optional[str] = None
    target_kind: Optional[TargetKind] = None


DragEvent = Union[DragStart, DragOver, DragEnd]


class DragCoordinator:
    """Apply one gesture at a time to a single board.

    With ``rollback_on_cancel`` the board is snapshotted at drag start and
    restored if the gesture ends without a target (or is cancelled).
    """

    def __init__(self, store: BoardStore, board_id: str, *, rollback_on_cancel: bool = False) -> None:
        self._store = store
        self._board_id = board_id
        self._rollback_on_cancel = rollback_on_cancel
        self._lifted: Optional[LiftedItem] = None
        self._snapshot: Optional[Board] = None

    @property
    def state(self) -> DragState:
        return DragState.LIFTED if self._lifted is not None else DragState.IDLE

    @property
    def lifted(self) -> Optional[LiftedItem]:
        return self._lifted

    @property
    def board_id(self) -> str:
        return self._board_id

    @property
    def rollback_on_cancel(self) -> bool:
        return self._rollback_on_cancel

    def handle(self, event: DragEvent) -> DragState:
        if isinstance(event, DragStart):
            self._start(event)
            return self.state

        if isinstance(event, DragOver):
            if self._lifted is None:
                logger.debug("Ignoring hover over {} while idle", event.target_id)
                return self.state
            self._apply(event.target_id, event.target_kind)
            return self.state

        if isinstance(event, DragEnd):
            if self._lifted is None:
                return self.state
            if event.target_id is not None and event.target_kind is not None:
                self._apply(event.target_id, event.target_kind)
                self._reset()
            else:
                self.cancel()
            return self.state

        raise TypeError(f"Unsupported drag event: {type(event).__name__}")

    def cancel(self) -> DragState:
        """End the gesture without a target, restoring the snapshot if configured."""
        if self._lifted is None:
            return self.state
        if self._rollback_on_cancel and self._snapshot is not None:
            try:
                self._store.replace_board(self._snapshot)
                logger.info("Drag of {} cancelled; board {} restored", self._lifted.item_id, self._board_id)
            except BoardError as exc:
                logger.warning("Could not restore board {} after drag: {}", self._board_id, exc)
        self._reset()
        return self.state

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _reset(self) -> None:
        self._lifted = None
        self._snapshot = None

    def _board(self) -> Optional[Board]:
        return self._store.find_board(self._board_id)

    def _start(self, event: DragStart) -> None:
        if self._lifted is not None:
            logger.debug("Drag of {} superseded by {}", self._lifted.item_id, event.item_id)
            self._reset()
        board = self._board()
        if board is None:
            logger.warning("Drag start on missing board {}", self._board_id)
            return

        kind = ItemKind(event.item_kind)
        if kind is ItemKind.TASK:
            task = board.get_task(event.item_id)
            origin = task.column_id if task is not None else None
        else:
            origin = board.id if board.get_column(event.item_id) is not None else None
        if origin is None:
            logger.debug("Drag start on unknown {} {}", kind.value, event.item_id)
            return
        if event.source_container_id and event.source_container_id != origin:
            logger.debug(
                "Drag start for {} reported container {}, using {}",
                event.item_id, event.source_container_id, origin,
            )

        self._lifted = LiftedItem(item_id=event.item_id, item_kind=kind, origin_container_id=origin)
        self._snapshot = board if self._rollback_on_cancel else None

    def _apply(self, target_id: str, target_kind: TargetKind) -> None:
        lifted = self._lifted
        board = self._board()
        if lifted is None or board is None or target_id == lifted.item_id:
            return
        target_kind = TargetKind(target_kind)
        try:
            if lifted.item_kind is ItemKind.TASK:
                self._move_task(board, lifted.item_id, target_id, target_kind)
            elif target_kind is TargetKind.COLUMN:
                self._move_column(board, lifted.item_id, target_id)
        except BoardError as exc:
            logger.warning("Drag of {} over {} failed: {}", lifted.item_id, target_id, exc)

    def _move_task(self, board: Board, task_id: str, target_id: str, target_kind: TargetKind) -> None:
        task = board.get_task(task_id)
        if task is None:
            return
        if target_kind is TargetKind.TASK:
            index = board.task_index(target_id)
            target = board.get_task(target_id)
            if target is None or index is None:
                return
            destination = target.column_id
        else:
            column = board.get_column(target_id)
            if column is None or column.id == task.column_id:
                return
            destination = column.id
            index = len(board.tasks_in(destination))
        self._store.move_task(self._board_id, task_id, task.column_id, destination, index)

    def _move_column(self, board: Board, column_id: str, target_id: str) -> None:
        ids = board.column_ids()
        if column_id not in ids or target_id not in ids:
            return
        self._store.move_column(self._board_id, column_id, ids.index(target_id))
