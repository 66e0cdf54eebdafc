from .drag import (
    DragCoordinator,
    DragEnd,
    DragEvent,
    DragOver,
    DragStart,
    DragState,
    ItemKind,
    LiftedItem,
    TargetKind,
)
from .errors import BoardError, InvalidArgumentError, NotFoundError
from .model import Board, Column, Comment, Priority, Task, board_view
from .store import BoardEvent, BoardStore

__all__ = [
    "Board",
    "BoardError",
    "BoardEvent",
    "BoardStore",
    "Column",
    "Comment",
    "DragCoordinator",
    "DragEnd",
    "DragEvent",
    "DragOver",
    "DragStart",
    "DragState",
    "InvalidArgumentError",
    "ItemKind",
    "LiftedItem",
    "NotFoundError",
    "Priority",
    "TargetKind",
    "Task",
    "board_view",
]
