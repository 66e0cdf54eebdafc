"""Board API endpoints.

A FastAPI router with board, column, task and comment CRUD, explicit move /
reorder operations, and a ``drag`` endpoint set that feeds gesture events to a
per-board :class:`~tasknest.board.drag.DragCoordinator`.  Mounted under
``/api/boards`` by :func:`tasknest.server.api.create_app`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Optional

from fastapi import APIRouter
from loguru import logger
from pydantic import BaseModel, Field

from ..board.drag import DragCoordinator, DragEnd, DragOver, DragStart, ItemKind, TargetKind
from ..board.errors import InvalidArgumentError
from ..board.model import Board, Column, Comment, Priority, Task, board_view
from ..constants import DEFAULT_BACKGROUND_COLOR
from ..storage.bootstrap import new_board
from ..storage.container import TaskNestContainer
from ..utils import _parse_iso, new_id


# ---------------------------------------------------------------------------
# Pydantic request models
# ---------------------------------------------------------------------------

class CreateBoardRequest(BaseModel):
    title: str
    description: Optional[str] = None
    background_color: Optional[str] = None
    columns: Optional[list[str]] = None


class UpdateBoardRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    background_color: Optional[str] = None


class CreateColumnRequest(BaseModel):
    title: str


class UpdateColumnRequest(BaseModel):
    title: Optional[str] = None


class MoveColumnRequest(BaseModel):
    index: int


class ReorderColumnsRequest(BaseModel):
    column_ids: list[str]


class CreateTaskRequest(BaseModel):
    title: str
    column_id: str
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    assignee: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[datetime] = None


class UpdateTaskRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[list[str]] = None
    assignee: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[datetime] = None


class MoveTaskRequest(BaseModel):
    to_column_id: str
    index: int
    from_column_id: Optional[str] = None


class CreateCommentRequest(BaseModel):
    content: str
    author: str = ""


class UpdateCommentRequest(BaseModel):
    content: Optional[str] = None
    author: Optional[str] = None


class DragStartRequest(BaseModel):
    item_id: str
    item_kind: ItemKind
    source_container_id: Optional[str] = None


class DragOverRequest(BaseModel):
    target_id: str
    target_kind: TargetKind


class DragEndRequest(BaseModel):
    target_id: Optional[str] = None
    target_kind: Optional[TargetKind] = None


# ---------------------------------------------------------------------------
# Router factory
# ---------------------------------------------------------------------------

def create_board_router(get_container: Callable[[], TaskNestContainer]) -> APIRouter:
    """Create the board router; *get_container* returns the app's container."""
    router = APIRouter(prefix="/api/boards", tags=["boards"])
    coordinators: dict[str, DragCoordinator] = {}

    def _view(board: Board) -> dict[str, Any]:
        return {"board": board_view(board)}

    def _coordinator(board_id: str) -> DragCoordinator:
        container = get_container()
        container.store.get_board(board_id)
        if board_id not in coordinators:
            coordinators[board_id] = container.drag_coordinator(board_id)
        return coordinators[board_id]

    def _drag_response(coordinator: DragCoordinator) -> dict[str, Any]:
        lifted = coordinator.lifted
        board = get_container().store.find_board(coordinator.board_id)
        return {
            "state": coordinator.state.value,
            "lifted": (
                {
                    "item_id": lifted.item_id,
                    "item_kind": lifted.item_kind.value,
                    "origin_container_id": lifted.origin_container_id,
                }
                if lifted
                else None
            ),
            "board": board_view(board) if board else None,
        }

    # -- boards ---------------------------------------------------------

    @router.get("")
    async def list_boards() -> dict[str, Any]:
        store = get_container().store
        current = store.current_board
        return {
            "boards": [b.to_dict() for b in store.list_boards()],
            "current_board_id": current.id if current else None,
        }

    @router.post("", status_code=201)
    async def create_board(body: CreateBoardRequest) -> dict[str, Any]:
        container = get_container()
        board = new_board(
            body.title,
            column_titles=body.columns if body.columns is not None else container.default_columns,
            description=body.description,
            background_color=body.background_color or DEFAULT_BACKGROUND_COLOR,
        )
        return _view(container.store.add_board(board))

    @router.get("/{board_id}")
    async def get_board(board_id: str) -> dict[str, Any]:
        return _view(get_container().store.get_board(board_id))

    @router.patch("/{board_id}")
    async def update_board(board_id: str, body: UpdateBoardRequest) -> dict[str, Any]:
        changes = body.model_dump(exclude_unset=True)
        return _view(get_container().store.update_board(board_id, changes))

    @router.delete("/{board_id}")
    async def delete_board(board_id: str) -> dict[str, Any]:
        get_container().store.delete_board(board_id)
        coordinators.pop(board_id, None)
        return {"deleted": board_id}

    @router.post("/{board_id}/current")
    async def select_board(board_id: str) -> dict[str, Any]:
        return _view(get_container().store.set_current_board(board_id))

    # -- columns --------------------------------------------------------

    @router.post("/{board_id}/columns", status_code=201)
    async def add_column(board_id: str, body: CreateColumnRequest) -> dict[str, Any]:
        column = Column(id=new_id("col"), title=body.title)
        return _view(get_container().store.add_column(board_id, column))

    @router.post("/{board_id}/columns/reorder")
    async def reorder_columns(board_id: str, body: ReorderColumnsRequest) -> dict[str, Any]:
        return _view(get_container().store.reorder_columns(board_id, body.column_ids))

    @router.patch("/{board_id}/columns/{column_id}")
    async def update_column(board_id: str, column_id: str, body: UpdateColumnRequest) -> dict[str, Any]:
        changes = body.model_dump(exclude_unset=True)
        return _view(get_container().store.update_column(board_id, column_id, changes))

    @router.delete("/{board_id}/columns/{column_id}")
    async def delete_column(board_id: str, column_id: str) -> dict[str, Any]:
        return _view(get_container().store.delete_column(board_id, column_id))

    @router.post("/{board_id}/columns/{column_id}/move")
    async def move_column(board_id: str, column_id: str, body: MoveColumnRequest) -> dict[str, Any]:
        return _view(get_container().store.move_column(board_id, column_id, body.index))

    # -- tasks ----------------------------------------------------------

    @router.post("/{board_id}/tasks", status_code=201)
    async def add_task(board_id: str, body: CreateTaskRequest) -> dict[str, Any]:
        try:
            priority = Priority.coerce(body.priority)
        except ValueError as exc:
            raise InvalidArgumentError(f"Invalid priority {body.priority!r}") from exc
        task = Task(
            id=new_id("task"),
            title=body.title,
            column_id=body.column_id,
            description=body.description,
            tags=tuple(body.tags),
            assignee=body.assignee,
            priority=priority,
            due_date=_parse_iso(body.due_date),
        )
        return _view(get_container().store.add_task(board_id, task))

    @router.patch("/{board_id}/tasks/{task_id}")
    async def update_task(board_id: str, task_id: str, body: UpdateTaskRequest) -> dict[str, Any]:
        changes = body.model_dump(exclude_unset=True)
        return _view(get_container().store.update_task(board_id, task_id, changes))

    @router.delete("/{board_id}/tasks/{task_id}")
    async def delete_task(board_id: str, task_id: str) -> dict[str, Any]:
        return _view(get_container().store.delete_task(board_id, task_id))

    @router.post("/{board_id}/tasks/{task_id}/move")
    async def move_task(board_id: str, task_id: str, body: MoveTaskRequest) -> dict[str, Any]:
        store = get_container().store
        from_column_id = body.from_column_id
        if from_column_id is None:
            task = store.get_board(board_id).get_task(task_id)
            from_column_id = task.column_id if task else body.to_column_id
        return _view(store.move_task(board_id, task_id, from_column_id, body.to_column_id, body.index))

    # -- comments -------------------------------------------------------

    @router.post("/{board_id}/tasks/{task_id}/comments", status_code=201)
    async def add_comment(board_id: str, task_id: str, body: CreateCommentRequest) -> dict[str, Any]:
        comment = Comment(id=new_id("comment"), content=body.content, author=body.author)
        return _view(get_container().store.add_comment(board_id, task_id, comment))

    @router.patch("/{board_id}/tasks/{task_id}/comments/{comment_id}")
    async def update_comment(
        board_id: str, task_id: str, comment_id: str, body: UpdateCommentRequest
    ) -> dict[str, Any]:
        changes = body.model_dump(exclude_unset=True)
        return _view(get_container().store.update_comment(board_id, task_id, comment_id, changes))

    @router.delete("/{board_id}/tasks/{task_id}/comments/{comment_id}")
    async def delete_comment(board_id: str, task_id: str, comment_id: str) -> dict[str, Any]:
        return _view(get_container().store.delete_comment(board_id, task_id, comment_id))

    # -- drag -----------------------------------------------------------

    @router.post("/{board_id}/drag/start")
    async def drag_start(board_id: str, body: DragStartRequest) -> dict[str, Any]:
        coordinator = _coordinator(board_id)
        coordinator.handle(DragStart(body.item_id, body.item_kind, body.source_container_id))
        return _drag_response(coordinator)

    @router.post("/{board_id}/drag/over")
    async def drag_over(board_id: str, body: DragOverRequest) -> dict[str, Any]:
        coordinator = _coordinator(board_id)
        coordinator.handle(DragOver(body.target_id, body.target_kind))
        return _drag_response(coordinator)

    @router.post("/{board_id}/drag/end")
    async def drag_end(board_id: str, body: DragEndRequest) -> dict[str, Any]:
        coordinator = _coordinator(board_id)
        coordinator.handle(DragEnd(body.target_id, body.target_kind))
        logger.debug("Drag ended on board {}", board_id)
        return _drag_response(coordinator)

    return router
