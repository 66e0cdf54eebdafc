from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Optional, Sequence

import yaml

from ..board.model import Board, Column, Priority, Task
from ..constants import (
    BOARDS_FILE,
    BOARDS_SCHEMA_VERSION,
    CONFIG_FILE,
    DEFAULT_BACKGROUND_COLOR,
    DEFAULT_COLUMN_TITLES,
    STATE_DIR_NAME,
)
from ..utils import _now, new_id

DEFAULT_CONFIG = {
    "board": {"default_columns": list(DEFAULT_COLUMN_TITLES)},
    "drag": {"rollback_on_cancel": False},
    "logging": {"level": "INFO"},
}


def ensure_state_root(project_dir: Path) -> Path:
    """Create `.tasknest/` with an empty boards file and a default config."""
    root = project_dir.resolve() / STATE_DIR_NAME
    root.mkdir(parents=True, exist_ok=True)

    boards = root / BOARDS_FILE
    if not boards.exists():
        boards.write_text(f"version: {BOARDS_SCHEMA_VERSION}\nboards: []\n", encoding="utf-8")

    config = root / CONFIG_FILE
    if not config.exists():
        config.write_text(yaml.safe_dump(DEFAULT_CONFIG, sort_keys=False), encoding="utf-8")
    return root


def new_board(
    title: str,
    *,
    column_titles: Sequence[str] = DEFAULT_COLUMN_TITLES,
    description: Optional[str] = None,
    background_color: str = DEFAULT_BACKGROUND_COLOR,
    board_id: Optional[str] = None,
) -> Board:
    board_id = board_id or new_id("board")
    now = _now()
    columns = tuple(
        Column(id=new_id("col"), title=str(name), order=idx, board_id=board_id, created_at=now, updated_at=now)
        for idx, name in enumerate(column_titles)
    )
    return Board(
        id=board_id,
        title=title,
        description=description,
        background_color=background_color,
        columns=columns,
        created_at=now,
        updated_at=now,
    )


def sample_board() -> Board:
    """A starter board with three columns and a few tasks, used by ``init --sample``."""
    now = _now()
    board = new_board(
        "TaskNest sample board",
        column_titles=("To Do", "In Progress", "Done"),
        description="Start managing your tasks!",
    )
    todo, doing, _ = board.columns
    seed = [
        (todo, "Build the TaskNest app", "Create a modern task manager", ("dev",), "developer", Priority.HIGH, 7),
        (doing, "Improve UI/UX design", "Design changes that improve usability", ("design", "ux"), "designer", Priority.MEDIUM, 3),
        (todo, "Write documentation", "Write the project's technical docs", ("docs",), "tech writer", Priority.LOW, 14),
        (doing, "Implement tests", "Add unit and end-to-end tests", ("testing", "quality"), "qa engineer", Priority.HIGH, 5),
    ]
    tasks = []
    counts: dict[str, int] = {}
    for column, title, description, tags, assignee, priority, due_days in seed:
        order = counts.get(column.id, 0)
        counts[column.id] = order + 1
        tasks.append(
            Task(
                id=new_id("task"),
                title=title,
                description=description,
                column_id=column.id,
                order=order,
                tags=tags,
                assignee=assignee,
                priority=priority,
                due_date=now + timedelta(days=due_days),
                created_at=now,
                updated_at=now,
            )
        )
    return Board(
        id=board.id,
        title=board.title,
        description=board.description,
        background_color=board.background_color,
        columns=board.columns,
        tasks=tuple(tasks),
        created_at=now,
        updated_at=now,
    )
