"""Board aggregate store, the single owner of board state.

All mutations go through :class:`BoardStore`.  Each operation validates its
inputs, computes the new ordering with :mod:`.reorder`, builds a fresh
:class:`~.model.Board` snapshot and only then swaps it in, so a failed call
leaves the store untouched and readers holding an older snapshot are never
affected.  Successful mutations notify subscribers (presentation layer,
persistence) with a :class:`BoardEvent`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable, Iterable, Optional, Sequence

from loguru import logger

from . import reorder
from .errors import InvalidArgumentError, NotFoundError
from .model import Board, Column, Comment, Priority, Task
from ..utils import _now, _parse_iso


# ---------------------------------------------------------------------------
# Update policy
# ---------------------------------------------------------------------------

# Fields the engine owns.  Naming one in an update is a caller error.
_DERIVED_FIELDS = frozenset({
    "id",
    "order",
    "board_id",
    "column_id",
    "task_id",
    "columns",
    "tasks",
    "comments",
    "created_at",
    "updated_at",
})

_BOARD_FIELDS = frozenset({"title", "description", "background_color"})
_COLUMN_FIELDS = frozenset({"title"})
_TASK_FIELDS = frozenset({"title", "description", "tags", "assignee", "priority", "due_date"})
_COMMENT_FIELDS = frozenset({"content", "author"})
# Fields that may be cleared with None; every other field is required text.
_NULLABLE_FIELDS = frozenset({"description", "assignee", "priority", "due_date"})


@dataclass(frozen=True)
class BoardEvent:
    """Notification sent to subscribers after a successful mutation.

    ``board`` is the new snapshot, or ``None`` when the board was deleted.
    """

    type: str
    board_id: str
    board: Optional[Board]
    entity_id: Optional[str] = None


Listener = Callable[[BoardEvent], None]


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value) or None


def _coerce_task_value(key: str, value: Any) -> Any:
    if key == "priority":
        try:
            return Priority.coerce(value)
        except ValueError as exc:
            raise InvalidArgumentError(f"Invalid priority {value!r}") from exc
    if key == "due_date":
        if value is None or value == "":
            return None
        parsed = _parse_iso(value)
        if parsed is None:
            raise InvalidArgumentError(f"Invalid due_date {value!r}")
        return parsed
    if key == "tags":
        if isinstance(value, str) or not isinstance(value, Iterable):
            raise InvalidArgumentError("'tags' must be a list of strings")
        return tuple(str(tag) for tag in value)
    if key in {"description", "assignee"}:
        return _optional_text(value)
    return str(value)


def _validated_changes(kind: str, changes: dict[str, Any], allowed: frozenset[str]) -> dict[str, Any]:
    derived = sorted(k for k in changes if k in _DERIVED_FIELDS)
    if derived:
        raise InvalidArgumentError(f"Cannot update {kind} field(s) {derived} directly")
    unknown = sorted(k for k in changes if k not in allowed)
    if unknown:
        raise InvalidArgumentError(f"Unknown {kind} field(s) {unknown}")
    cleared = sorted(k for k, v in changes.items() if v is None and k not in _NULLABLE_FIELDS)
    if cleared:
        raise InvalidArgumentError(f"{kind.capitalize()} field(s) {cleared} cannot be null")
    return dict(changes)


def _merge(entity: Any, values: dict[str, Any], now: datetime) -> Any:
    """Return *entity* with *values* applied, or the same object if nothing differs."""
    if all(getattr(entity, k) == v for k, v in values.items()):
        return entity
    return replace(entity, **values, updated_at=now)


def _touched(before: dict[str, Any], after: Iterable[Any], now: datetime) -> list[Any]:
    """Items of *after* that differ from *before*, with ``updated_at`` refreshed."""
    return [replace(item, updated_at=now) for item in after if before.get(item.id) is not item]


def _touch_columns(columns: Sequence[Column], column_ids: set[str], now: datetime) -> tuple[Column, ...]:
    return tuple(replace(c, updated_at=now) if c.id in column_ids else c for c in columns)


def _replace_items(items: Sequence[Any], changed: Iterable[Any], removed: Iterable[str] = ()) -> tuple[Any, ...]:
    changed_map = {item.id: item for item in changed}
    removed_ids = set(removed)
    kept = tuple(changed_map.pop(item.id, item) for item in items if item.id not in removed_ids)
    return kept + tuple(changed_map.values())


def _normalize(board: Board) -> Board:
    """Force back-references and dense ordering on a caller-supplied board."""
    columns = reorder.renumber(
        replace(c, board_id=board.id) if c.board_id != board.id else c
        for c in reorder.sort_by_order(board.columns)
    )
    column_ids = {c.id for c in columns}
    if len(column_ids) != len(columns):
        raise InvalidArgumentError(f"Board {board.id} has duplicate column ids")
    task_ids = [t.id for t in board.tasks]
    if len(set(task_ids)) != len(task_ids):
        raise InvalidArgumentError(f"Board {board.id} has duplicate task ids")
    orphans = sorted(t.id for t in board.tasks if t.column_id not in column_ids)
    if orphans:
        raise InvalidArgumentError(f"Tasks {orphans} reference columns not on board {board.id}")

    dense: dict[str, Task] = {}
    for column in columns:
        for task in reorder.renumber(reorder.sort_by_order(t for t in board.tasks if t.column_id == column.id)):
            if any(c.task_id != task.id for c in task.comments):
                task = replace(task, comments=tuple(replace(c, task_id=task.id) for c in task.comments))
            dense[task.id] = task
    tasks = tuple(dense[t.id] for t in board.tasks)
    if columns == board.columns and tasks == board.tasks:
        return board
    return replace(board, columns=columns, tasks=tasks)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class BoardStore:
    """In-memory, single-writer owner of every board.

    Parameters
    ----------
    boards:
        Initial snapshots (e.g. loaded by a repository).  They are normalized
        but do not trigger notifications.
    clock:
        Source of ``updated_at`` timestamps; one reading is taken per
        operation so every entity touched by it shares the same value.
    """

    def __init__(self, boards: Iterable[Board] = (), *, clock: Callable[[], datetime] = _now) -> None:
        self._boards: dict[str, Board] = {}
        self._current_id: Optional[str] = None
        self._listeners: list[Listener] = []
        self._clock = clock
        for board in boards:
            if board.id in self._boards:
                raise InvalidArgumentError(f"Board {board.id} already exists")
            self._boards[board.id] = _normalize(board)
        if self._boards:
            self._current_id = next(iter(self._boards))

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener* for every successful mutation; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, event: BoardEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Board listener failed for {} on {}", event.type, event.board_id)

    def _commit(self, board: Board, event_type: str, entity_id: Optional[str] = None) -> Board:
        self._boards[board.id] = board
        logger.debug("{} board={} entity={}", event_type, board.id, entity_id)
        self._notify(BoardEvent(type=event_type, board_id=board.id, board=board, entity_id=entity_id))
        return board

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _require_board(self, board_id: str) -> Board:
        board = self._boards.get(board_id)
        if board is None:
            raise NotFoundError("Board", board_id)
        return board

    @staticmethod
    def _require_column(board: Board, column_id: str) -> Column:
        column = board.get_column(column_id)
        if column is None:
            raise NotFoundError("Column", column_id)
        return column

    @staticmethod
    def _require_task(board: Board, task_id: str) -> Task:
        task = board.get_task(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return task

    def get_board(self, board_id: str) -> Board:
        return self._require_board(board_id)

    def find_board(self, board_id: str) -> Optional[Board]:
        return self._boards.get(board_id)

    def list_boards(self) -> list[Board]:
        return list(self._boards.values())

    @property
    def current_board(self) -> Optional[Board]:
        return self._boards.get(self._current_id) if self._current_id else None

    def set_current_board(self, board_id: Optional[str]) -> Optional[Board]:
        """Select *board_id* (or clear the selection with ``None``).

        A change of selection is published as ``board.selected``; the event
        carries the newly selected board, or ``None`` when cleared.
        """
        if board_id is not None:
            self._require_board(board_id)
        previous = self._current_id
        if board_id == previous:
            return self.current_board
        self._current_id = board_id
        selected = self.current_board
        self._notify(
            BoardEvent(type="board.selected", board_id=board_id or previous, board=selected, entity_id=board_id)
        )
        return selected

    def export_state(self) -> dict[str, Any]:
        """Return the whole state tree as plain data for a persistence collaborator."""
        return {
            "current_board_id": self._current_id,
            "boards": [b.to_dict() for b in self._boards.values()],
        }

    @classmethod
    def from_state(cls, data: dict[str, Any], *, clock: Callable[[], datetime] = _now) -> "BoardStore":
        boards = [Board.from_dict(raw) for raw in list(data.get("boards") or []) if isinstance(raw, dict)]
        store = cls(boards, clock=clock)
        current = data.get("current_board_id")
        if current and store.find_board(str(current)) is not None:
            store._current_id = str(current)
        return store

    # ------------------------------------------------------------------
    # Boards
    # ------------------------------------------------------------------

    def add_board(self, board: Board) -> Board:
        if board.id in self._boards:
            raise InvalidArgumentError(f"Board {board.id} already exists")
        board = _normalize(board)
        if self._current_id is None:
            self._current_id = board.id
        logger.info("Created board {}: {}", board.id, board.title)
        return self._commit(board, "board.created", board.id)

    def update_board(self, board_id: str, changes: dict[str, Any]) -> Board:
        board = self._require_board(board_id)
        values = _validated_changes("board", changes, _BOARD_FIELDS)
        if "description" in values:
            values["description"] = _optional_text(values["description"])
        for key in ("title", "background_color"):
            if key in values:
                values[key] = str(values[key])
        updated = _merge(board, values, self._clock())
        if updated is board:
            return board
        return self._commit(updated, "board.updated", board_id)

    def replace_board(self, board: Board) -> Board:
        """Swap a whole snapshot back in (e.g. restoring a pre-drag snapshot)."""
        current = self._require_board(board.id)
        board = _normalize(board)
        if board == current:
            return current
        return self._commit(board, "board.replaced", board.id)

    def delete_board(self, board_id: str) -> None:
        board = self._require_board(board_id)
        del self._boards[board_id]
        if self._current_id == board_id:
            self._current_id = None
        logger.info(
            "Deleted board {} ({} columns, {} tasks)", board_id, len(board.columns), len(board.tasks)
        )
        self._notify(BoardEvent(type="board.deleted", board_id=board_id, board=None, entity_id=board_id))

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    def add_column(self, board_id: str, column: Column) -> Board:
        board = self._require_board(board_id)
        if board.get_column(column.id) is not None:
            raise InvalidArgumentError(f"Column {column.id} already exists on board {board_id}")
        now = self._clock()
        columns = reorder.append(board.columns, replace(column, board_id=board_id))
        return self._commit(replace(board, columns=columns, updated_at=now), "column.created", column.id)

    def update_column(self, board_id: str, column_id: str, changes: dict[str, Any]) -> Board:
        board = self._require_board(board_id)
        column = self._require_column(board, column_id)
        values = {k: str(v) for k, v in _validated_changes("column", changes, _COLUMN_FIELDS).items()}
        now = self._clock()
        updated = _merge(column, values, now)
        if updated is column:
            return board
        columns = _replace_items(board.columns, [updated])
        return self._commit(replace(board, columns=columns, updated_at=now), "column.updated", column_id)

    def delete_column(self, board_id: str, column_id: str) -> Board:
        """Remove a column and cascade to its tasks (and their comments)."""
        board = self._require_board(board_id)
        self._require_column(board, column_id)
        now = self._clock()
        _, rest = reorder.remove(board.columns, column_id)
        before = {c.id: c for c in board.columns}
        columns = _replace_items(rest, _touched(before, rest, now))
        tasks = tuple(t for t in board.tasks if t.column_id != column_id)
        dropped = len(board.tasks) - len(tasks)
        if dropped:
            logger.info("Column {} delete cascaded to {} task(s)", column_id, dropped)
        return self._commit(
            replace(board, columns=columns, tasks=tasks, updated_at=now), "column.deleted", column_id
        )

    def reorder_columns(self, board_id: str, ordered_column_ids: Sequence[str]) -> Board:
        """Apply a full permutation of the board's column ids.

        Partial or inconsistent permutations raise :class:`InvalidArgumentError`
        and are never applied.
        """
        board = self._require_board(board_id)
        try:
            permuted = reorder.permute(board.columns, list(ordered_column_ids))
        except ValueError as exc:
            raise InvalidArgumentError(f"Invalid column order for board {board_id}: {exc}") from exc
        return self._write_columns(board, permuted, "columns.reordered", None)

    def move_column(self, board_id: str, column_id: str, requested_index: int) -> Board:
        board = self._require_board(board_id)
        self._require_column(board, column_id)
        moved = reorder.move_within(board.columns, column_id, requested_index)
        return self._write_columns(board, moved, "column.moved", column_id)

    def _write_columns(self, board: Board, columns: tuple[Column, ...], event_type: str, entity_id: Optional[str]) -> Board:
        before = {c.id: c for c in board.columns}
        now = self._clock()
        changed = _touched(before, columns, now)
        if not changed:
            return board
        changed_map = {c.id: c for c in changed}
        columns = tuple(changed_map.get(c.id, c) for c in columns)
        return self._commit(replace(board, columns=columns, updated_at=now), event_type, entity_id)

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def add_task(self, board_id: str, task: Task) -> Board:
        board = self._require_board(board_id)
        self._require_column(board, task.column_id)
        if board.get_task(task.id) is not None:
            raise InvalidArgumentError(f"Task {task.id} already exists on board {board_id}")
        now = self._clock()
        siblings = reorder.append(board.tasks_in(task.column_id), task)
        added = siblings[-1]
        if any(c.task_id != added.id for c in added.comments):
            added = replace(added, comments=tuple(replace(c, task_id=added.id) for c in added.comments))
        tasks = _replace_items(board.tasks, siblings[:-1]) + (added,)
        columns = _touch_columns(board.columns, {task.column_id}, now)
        return self._commit(
            replace(board, columns=columns, tasks=tasks, updated_at=now), "task.created", task.id
        )

    def update_task(self, board_id: str, task_id: str, changes: dict[str, Any]) -> Board:
        board = self._require_board(board_id)
        task = self._require_task(board, task_id)
        values = {
            k: _coerce_task_value(k, v)
            for k, v in _validated_changes("task", changes, _TASK_FIELDS).items()
        }
        now = self._clock()
        updated = _merge(task, values, now)
        if updated is task:
            return board
        return self._write_task(board, updated, now, "task.updated")

    def delete_task(self, board_id: str, task_id: str) -> Board:
        """Remove a task (and its comments) and renumber its column."""
        board = self._require_board(board_id)
        task = self._require_task(board, task_id)
        now = self._clock()
        _, rest = reorder.remove(board.tasks_in(task.column_id), task_id)
        before = {t.id: t for t in board.tasks}
        tasks = _replace_items(board.tasks, _touched(before, rest, now), removed=[task_id])
        columns = _touch_columns(board.columns, {task.column_id}, now)
        return self._commit(
            replace(board, columns=columns, tasks=tasks, updated_at=now), "task.deleted", task_id
        )

    def move_task(
        self,
        board_id: str,
        task_id: str,
        from_column_id: str,
        to_column_id: str,
        requested_index: int,
    ) -> Board:
        """Move a task within its column or into another column.

        The task's stored ``column_id`` is authoritative: if *from_column_id*
        names another existing column the move is recomputed against the column the task is
        actually in.  Out-of-range indices are clamped.
        """
        board = self._require_board(board_id)
        task = self._require_task(board, task_id)
        self._require_column(board, from_column_id)
        self._require_column(board, to_column_id)
        source_id = task.column_id
        if from_column_id != source_id:
            logger.warning(
                "move_task {}: caller source column {} is stale, task is in {}",
                task_id, from_column_id, source_id,
            )

        if source_id == to_column_id:
            result = reorder.move_within(board.tasks_in(source_id), task_id, requested_index)
        else:
            new_source, new_dest = reorder.move_between(
                board.tasks_in(source_id),
                board.tasks_in(to_column_id),
                task_id,
                requested_index,
                parent_field="column_id",
                destination_id=to_column_id,
            )
            result = new_source + new_dest

        now = self._clock()
        before = {t.id: t for t in board.tasks}
        changed = _touched(before, result, now)
        if not changed:
            return board
        tasks = _replace_items(board.tasks, changed)
        columns = _touch_columns(board.columns, {source_id, to_column_id}, now)
        return self._commit(
            replace(board, columns=columns, tasks=tasks, updated_at=now), "task.moved", task_id
        )

    def _write_task(self, board: Board, task: Task, now: datetime, event_type: str, entity_id: Optional[str] = None) -> Board:
        tasks = _replace_items(board.tasks, [task])
        columns = _touch_columns(board.columns, {task.column_id}, now)
        return self._commit(
            replace(board, columns=columns, tasks=tasks, updated_at=now), event_type, entity_id or task.id
        )

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def add_comment(self, board_id: str, task_id: str, comment: Comment) -> Board:
        board = self._require_board(board_id)
        task = self._require_task(board, task_id)
        if board.find_comment(comment.id) is not None:
            raise InvalidArgumentError(f"Comment {comment.id} already exists on board {board_id}")
        now = self._clock()
        added = replace(comment, task_id=task_id)
        updated = replace(task, comments=task.comments + (added,), updated_at=now)
        return self._write_task(board, updated, now, "comment.created", comment.id)

    def update_comment(self, board_id: str, task_id: str, comment_id: str, changes: dict[str, Any]) -> Board:
        board = self._require_board(board_id)
        task = self._require_task(board, task_id)
        comment = task.get_comment(comment_id)
        if comment is None:
            raise NotFoundError("Comment", comment_id)
        values = {k: str(v) for k, v in _validated_changes("comment", changes, _COMMENT_FIELDS).items()}
        now = self._clock()
        updated = _merge(comment, values, now)
        if updated is comment:
            return board
        new_task = replace(task, comments=_replace_items(task.comments, [updated]), updated_at=now)
        return self._write_task(board, new_task, now, "comment.updated", comment_id)

    def delete_comment(self, board_id: str, task_id: str, comment_id: str) -> Board:
        board = self._require_board(board_id)
        task = self._require_task(board, task_id)
        if task.get_comment(comment_id) is None:
            raise NotFoundError("Comment", comment_id)
        now = self._clock()
        new_task = replace(task, comments=_replace_items(task.comments, [], removed=[comment_id]), updated_at=now)
        return self._write_task(board, new_task, now, "comment.deleted", comment_id)
