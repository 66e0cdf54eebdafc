"""Immutable board model: Board, Column, Task and Comment snapshots.

Every entity is a frozen dataclass.  The store never edits a snapshot in
place; it derives a new one with :func:`dataclasses.replace` and swaps it in,
so a reader holding an older :class:`Board` keeps a consistent view.

Tasks are stored flat on the board and point at their column through
``column_id``; comments live on their task.  Ordering among siblings is the
integer ``order`` field, kept dense (``0..n-1``) by the store.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Optional

from loguru import logger

from ..constants import DEFAULT_BACKGROUND_COLOR
from ..utils import _now, _parse_iso, _to_iso


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Priority(str, Enum):
    """Optional task priority shown on the card."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def coerce(cls, value: Any) -> Optional["Priority"]:
        """Return a Priority for *value*; ``None``/empty means no priority.

        Raises :class:`ValueError` for anything else.
        """
        if value is None or value == "":
            return None
        if isinstance(value, cls):
            return value
        return cls(str(value).lower())


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _required_ts(value: Any) -> datetime:
    """Re-hydrate a required timestamp; unparseable values become now."""
    return _parse_iso(value) or _now()


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def _order_value(value: Any) -> int:
    """Stored order, or -1 when missing/invalid (sorted last on load)."""
    if isinstance(value, bool):
        return -1
    try:
        return int(value)
    except (TypeError, ValueError):
        return -1


def _dense(items: Iterable[Any], positions: dict[str, int]) -> list[Any]:
    """Sort loaded items by their stored order (ties by file position) and renumber."""
    ranked = sorted(
        items,
        key=lambda item: (
            item.order if item.order >= 0 else float("inf"),
            positions[item.id],
        ),
    )
    return [item if item.order == idx else replace(item, order=idx) for idx, item in enumerate(ranked)]


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Comment:
    id: str
    task_id: str = ""
    content: str = ""
    author: str = ""
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "content": self.content,
            "author": self.author,
            "created_at": _to_iso(self.created_at),
            "updated_at": _to_iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Comment":
        return cls(
            id=str(data.get("id") or ""),
            task_id=str(data.get("task_id") or ""),
            content=str(data.get("content") or ""),
            author=str(data.get("author") or ""),
            created_at=_required_ts(data.get("created_at")),
            updated_at=_required_ts(data.get("updated_at")),
        )


@dataclass(frozen=True)
class Column:
    id: str
    title: str = ""
    order: int = 0
    board_id: str = ""
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "order": self.order,
            "board_id": self.board_id,
            "created_at": _to_iso(self.created_at),
            "updated_at": _to_iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Column":
        return cls(
            id=str(data.get("id") or ""),
            title=str(data.get("title") or ""),
            order=_order_value(data.get("order")),
            board_id=str(data.get("board_id") or ""),
            created_at=_required_ts(data.get("created_at")),
            updated_at=_required_ts(data.get("updated_at")),
        )


@dataclass(frozen=True)
class Task:
    id: str
    title: str = ""
    column_id: str = ""
    order: int = 0
    description: Optional[str] = None
    tags: tuple[str, ...] = ()
    assignee: Optional[str] = None
    priority: Optional[Priority] = None
    due_date: Optional[datetime] = None
    comments: tuple[Comment, ...] = ()
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def get_comment(self, comment_id: str) -> Optional[Comment]:
        for comment in self.comments:
            if comment.id == comment_id:
                return comment
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "column_id": self.column_id,
            "order": self.order,
            "tags": list(self.tags),
            "assignee": self.assignee,
            "priority": self.priority.value if self.priority else None,
            "due_date": _to_iso(self.due_date),
            "comments": [c.to_dict() for c in self.comments],
            "created_at": _to_iso(self.created_at),
            "updated_at": _to_iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        task_id = str(data.get("id") or "")
        try:
            priority = Priority.coerce(data.get("priority"))
        except ValueError:
            priority = None
        comments = tuple(
            Comment.from_dict({**raw, "task_id": task_id})
            for raw in list(data.get("comments") or [])
            if isinstance(raw, dict)
        )
        return cls(
            id=task_id,
            title=str(data.get("title") or ""),
            description=_optional_str(data.get("description")),
            column_id=str(data.get("column_id") or ""),
            order=_order_value(data.get("order")),
            tags=tuple(str(tag) for tag in list(data.get("tags") or [])),
            assignee=_optional_str(data.get("assignee")),
            priority=priority,
            due_date=_parse_iso(data.get("due_date")),
            comments=comments,
            created_at=_required_ts(data.get("created_at")),
            updated_at=_required_ts(data.get("updated_at")),
        )


@dataclass(frozen=True)
class Board:
    """A board snapshot.

    ``columns`` is kept sorted by ``order``.  ``tasks`` is flat; use
    :meth:`tasks_in` for a column's ordered task list.
    """

    id: str
    title: str = ""
    description: Optional[str] = None
    background_color: str = DEFAULT_BACKGROUND_COLOR
    columns: tuple[Column, ...] = ()
    tasks: tuple[Task, ...] = ()
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    # ------------------------------------------------------------------
    # Read model
    # ------------------------------------------------------------------

    def get_column(self, column_id: str) -> Optional[Column]:
        for column in self.columns:
            if column.id == column_id:
                return column
        return None

    def get_task(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def column_ids(self) -> list[str]:
        return [c.id for c in self.columns]

    def tasks_in(self, column_id: str) -> list[Task]:
        return sorted((t for t in self.tasks if t.column_id == column_id), key=lambda t: t.order)

    def task_index(self, task_id: str) -> Optional[int]:
        task = self.get_task(task_id)
        if task is None:
            return None
        for idx, sibling in enumerate(self.tasks_in(task.column_id)):
            if sibling.id == task_id:
                return idx
        return None

    def find_comment(self, comment_id: str) -> Optional[tuple[Task, Comment]]:
        for task in self.tasks:
            comment = task.get_comment(comment_id)
            if comment is not None:
                return task, comment
        return None

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict for YAML/JSON persistence."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "background_color": self.background_color,
            "columns": [c.to_dict() for c in self.columns],
            "tasks": [t.to_dict() for t in self.tasks],
            "created_at": _to_iso(self.created_at),
            "updated_at": _to_iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Board":
        """Deserialize from a plain dict.

        Timestamps are re-hydrated at every level; orphaned tasks (pointing at
        a column that is not on the board) are dropped, and ``order`` values
        are re-derived so each container is dense again.
        """
        board_id = str(data.get("id") or "")
        raw_columns = [r for r in list(data.get("columns") or []) if isinstance(r, dict)]
        raw_tasks = [r for r in list(data.get("tasks") or []) if isinstance(r, dict)]

        columns = [Column.from_dict({**raw, "board_id": board_id}) for raw in raw_columns]
        column_pos = {c.id: idx for idx, c in enumerate(columns)}
        columns = _dense(columns, column_pos)

        tasks = [Task.from_dict(raw) for raw in raw_tasks]
        orphans = [t.id for t in tasks if t.column_id not in column_pos]
        if orphans:
            logger.warning("Board {} dropped {} orphaned task(s): {}", board_id, len(orphans), orphans)
        task_pos = {t.id: idx for idx, t in enumerate(tasks)}
        dense_tasks: dict[str, Task] = {}
        for column in columns:
            for task in _dense([t for t in tasks if t.column_id == column.id], task_pos):
                dense_tasks[task.id] = task

        return cls(
            id=board_id,
            title=str(data.get("title") or ""),
            description=_optional_str(data.get("description")),
            background_color=str(data.get("background_color") or DEFAULT_BACKGROUND_COLOR),
            columns=tuple(columns),
            tasks=tuple(dense_tasks[t.id] for t in tasks if t.id in dense_tasks),
            created_at=_required_ts(data.get("created_at")),
            updated_at=_required_ts(data.get("updated_at")),
        )


def board_view(board: Board) -> dict[str, Any]:
    """Return the board as columns with their ordered tasks nested, for rendering."""
    data = board.to_dict()
    data.pop("tasks")
    data["columns"] = [
        {**column.to_dict(), "tasks": [t.to_dict() for t in board.tasks_in(column.id)]}
        for column in board.columns
    ]
    return data
