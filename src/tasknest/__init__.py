"""Provide the public `tasknest` package exports."""

from __future__ import annotations

__version__ = "0.1.0"

from .board import (
    Board,
    BoardError,
    BoardStore,
    Column,
    Comment,
    DragCoordinator,
    InvalidArgumentError,
    NotFoundError,
    Priority,
    Task,
)

__all__ = [
    "__version__",
    "Board",
    "BoardError",
    "BoardStore",
    "Column",
    "Comment",
    "DragCoordinator",
    "InvalidArgumentError",
    "NotFoundError",
    "Priority",
    "Task",
]
