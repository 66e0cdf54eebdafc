from __future__ import annotations

import argparse
import json
import sys
from itertools import zip_longest
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.table import Table

from .board.errors import BoardError, InvalidArgumentError
from .board.model import Board, Column, Comment, Priority, Task, board_view
from .config import get_logging_config, load_config
from .constants import STATE_DIR_NAME
from .logging_utils import configure_logging, summarize_board
from .storage import CorruptStateError, TaskNestContainer, new_board, sample_board
from .utils import _parse_iso, new_id


def _resolve_project_dir(project_dir: Optional[str]) -> Path:
    return Path(project_dir).expanduser().resolve() if project_dir else Path.cwd().resolve()


def _ctx(args: argparse.Namespace) -> TaskNestContainer:
    return TaskNestContainer(_resolve_project_dir(args.project_dir))


def _emit(payload: dict[str, Any]) -> int:
    sys.stdout.write(json.dumps(payload, indent=2) + "\n")
    return 0


def _init(args: argparse.Namespace) -> int:
    container = _ctx(args)
    seeded = None
    if args.sample and not container.store.list_boards():
        seeded = container.store.add_board(sample_board()).id
    return _emit({"root": str(container.root), "boards": len(container.store.list_boards()), "seeded": seeded})


def _board_list(args: argparse.Namespace) -> int:
    container = _ctx(args)
    return _emit({"boards": [summarize_board(b) for b in container.store.list_boards()]})


def _render_board(board: Board) -> Table:
    table = Table(title=board.title, caption=board.description or None)
    lanes = []
    for column in board.columns:
        tasks = board.tasks_in(column.id)
        table.add_column(f"{column.title} ({len(tasks)})")
        lanes.append(tasks)
    for row in zip_longest(*lanes):
        table.add_row(*(_card(task) for task in row))
    return table


def _card(task: Optional[Task]) -> str:
    if task is None:
        return ""
    marks = {Priority.HIGH: "[red]!![/red] ", Priority.MEDIUM: "[yellow]![/yellow] "}
    label = marks.get(task.priority, "") + task.title
    if task.assignee:
        label += f" [dim]@{task.assignee}[/dim]"
    return label


def _board_show(args: argparse.Namespace) -> int:
    board = _ctx(args).store.get_board(args.board_id)
    if args.json:
        return _emit({"board": board_view(board)})
    Console().print(_render_board(board))
    return 0


def _board_create(args: argparse.Namespace) -> int:
    container = _ctx(args)
    board = new_board(
        args.title,
        column_titles=args.column or container.default_columns,
        description=args.description,
    )
    return _emit({"board": board_view(container.store.add_board(board))})


def _board_delete(args: argparse.Namespace) -> int:
    _ctx(args).store.delete_board(args.board_id)
    return _emit({"deleted": args.board_id})


def _column_add(args: argparse.Namespace) -> int:
    store = _ctx(args).store
    column_id = new_id("col")
    board = store.add_column(args.board_id, Column(id=column_id, title=args.title))
    return _emit({"column": board.get_column(column_id).to_dict()})


def _column_delete(args: argparse.Namespace) -> int:
    board = _ctx(args).store.delete_column(args.board_id, args.column_id)
    return _emit({"deleted": args.column_id, "board": summarize_board(board)})


def _column_move(args: argparse.Namespace) -> int:
    board = _ctx(args).store.move_column(args.board_id, args.column_id, args.index)
    return _emit({"columns": [c.to_dict() for c in board.columns]})


def _task_add(args: argparse.Namespace) -> int:
    store = _ctx(args).store
    due_date = _parse_iso(args.due) if args.due else None
    if args.due and due_date is None:
        raise InvalidArgumentError(f"Invalid --due {args.due!r}")
    task_id = new_id("task")
    task = Task(
        id=task_id,
        title=args.title,
        column_id=args.column_id,
        description=args.description,
        tags=tuple(args.tag or ()),
        assignee=args.assignee,
        priority=Priority.coerce(args.priority),
        due_date=due_date,
    )
    board = store.add_task(args.board_id, task)
    return _emit({"task": board.get_task(task_id).to_dict()})


def _task_move(args: argparse.Namespace) -> int:
    store = _ctx(args).store
    board = store.get_board(args.board_id)
    task = board.get_task(args.task_id)
    from_column_id = task.column_id if task else args.to_column_id
    index = args.index if args.index is not None else len(board.tasks_in(args.to_column_id))
    board = store.move_task(args.board_id, args.task_id, from_column_id, args.to_column_id, index)
    return _emit({"task": board.get_task(args.task_id).to_dict()})


def _task_delete(args: argparse.Namespace) -> int:
    _ctx(args).store.delete_task(args.board_id, args.task_id)
    return _emit({"deleted": args.task_id})


def _comment_add(args: argparse.Namespace) -> int:
    store = _ctx(args).store
    comment = Comment(id=new_id("comment"), content=args.content, author=args.author)
    board = store.add_comment(args.board_id, args.task_id, comment)
    return _emit({"comment": board.find_comment(comment.id)[1].to_dict()})


def _server(args: argparse.Namespace) -> int:
    try:
        import uvicorn
    except ImportError:
        sys.stderr.write("Install server extras: pip install 'tasknest[server]'\n")
        return 1

    from .server import create_app

    app = create_app(project_dir=_resolve_project_dir(args.project_dir))
    uvicorn.run(app, host=args.host, port=args.port, reload=args.reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tasknest", description="TaskNest kanban boards")
    parser.add_argument("--project-dir", default=None, help="Directory holding .tasknest/ (default: current working directory)")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init = subparsers.add_parser("init", help="Create the .tasknest state directory")
    init.add_argument("--sample", action="store_true", help="Seed a sample board when none exist")
    init.set_defaults(func=_init)

    server = subparsers.add_parser("server", help="Start the board web server")
    server.add_argument("--host", default="127.0.0.1")
    server.add_argument("--port", default=8000, type=int)
    server.add_argument("--reload", action="store_true")
    server.set_defaults(func=_server)

    board = subparsers.add_parser("board", help="Manage boards")
    board_sub = board.add_subparsers(dest="board_cmd", required=True)
    blist = board_sub.add_parser("list", help="List boards")
    blist.set_defaults(func=_board_list)
    bshow = board_sub.add_parser("show", help="Show a board")
    bshow.add_argument("board_id")
    bshow.add_argument("--json", action="store_true", help="Print JSON instead of a table")
    bshow.set_defaults(func=_board_show)
    bcreate = board_sub.add_parser("create", help="Create a board")
    bcreate.add_argument("title")
    bcreate.add_argument("--description", default=None)
    bcreate.add_argument("--column", action="append", help="Column title (repeatable)")
    bcreate.set_defaults(func=_board_create)
    bdelete = board_sub.add_parser("delete", help="Delete a board")
    bdelete.add_argument("board_id")
    bdelete.set_defaults(func=_board_delete)

    column = subparsers.add_parser("column", help="Manage columns")
    column_sub = column.add_subparsers(dest="column_cmd", required=True)
    cadd = column_sub.add_parser("add", help="Append a column")
    cadd.add_argument("board_id")
    cadd.add_argument("title")
    cadd.set_defaults(func=_column_add)
    cdelete = column_sub.add_parser("delete", help="Delete a column and its tasks")
    cdelete.add_argument("board_id")
    cdelete.add_argument("column_id")
    cdelete.set_defaults(func=_column_delete)
    cmove = column_sub.add_parser("move", help="Move a column to an index")
    cmove.add_argument("board_id")
    cmove.add_argument("column_id")
    cmove.add_argument("index", type=int)
    cmove.set_defaults(func=_column_move)

    task = subparsers.add_parser("task", help="Manage tasks")
    task_sub = task.add_subparsers(dest="task_cmd", required=True)
    tadd = task_sub.add_parser("add", help="Append a task to a column")
    tadd.add_argument("board_id")
    tadd.add_argument("column_id")
    tadd.add_argument("title")
    tadd.add_argument("--description", default=None)
    tadd.add_argument("--tag", action="append")
    tadd.add_argument("--assignee", default=None)
    tadd.add_argument("--priority", default=None, choices=[p.value for p in Priority])
    tadd.add_argument("--due", default=None, help="ISO-8601 due date")
    tadd.set_defaults(func=_task_add)
    tmove = task_sub.add_parser("move", help="Move a task to a column/index")
    tmove.add_argument("board_id")
    tmove.add_argument("task_id")
    tmove.add_argument("to_column_id")
    tmove.add_argument("--index", default=None, type=int, help="Target index (default: end of column)")
    tmove.set_defaults(func=_task_move)
    tdelete = task_sub.add_parser("delete", help="Delete a task")
    tdelete.add_argument("board_id")
    tdelete.add_argument("task_id")
    tdelete.set_defaults(func=_task_delete)

    comment = subparsers.add_parser("comment", help="Manage comments")
    comment_sub = comment.add_subparsers(dest="comment_cmd", required=True)
    madd = comment_sub.add_parser("add", help="Comment on a task")
    madd.add_argument("board_id")
    madd.add_argument("task_id")
    madd.add_argument("content")
    madd.add_argument("--author", default="")
    madd.set_defaults(func=_comment_add)

    return parser


def _setup_logging(args: argparse.Namespace) -> None:
    project_dir = _resolve_project_dir(args.project_dir)
    config, _ = load_config(project_dir)
    settings = get_logging_config(config)
    log_file = settings["file"]
    configure_logging(
        args.log_level or settings["level"],
        project_dir / STATE_DIR_NAME / log_file if log_file else None,
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    handler = getattr(args, "func", None)
    if handler is None:
        parser.print_help()
        return 1
    _setup_logging(args)
    try:
        return int(handler(args) or 0)
    except (BoardError, CorruptStateError) as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
