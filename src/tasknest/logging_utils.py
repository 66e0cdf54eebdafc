"""Configure loguru sinks and format compact board summaries for log lines."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from .board.model import Board


def configure_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """Replace loguru's default sink with a stderr sink (and optionally a file)."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{module}</cyan>:<cyan>{line}</cyan> - "
            "{message}"
        ),
    )
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(str(log_file), level=level.upper(), rotation="5 MB", retention=3, encoding="utf-8")


def summarize_board(board: Optional[Board]) -> dict[str, Any]:
    """Render a compact, JSON-friendly summary of a board snapshot.

    Args:
        board: Board snapshot (or None, e.g. after a delete).

    Returns:
        A dictionary with the board id, title and per-column task counts.
    """
    if board is None:
        return {"board": None}
    return {
        "board": board.id,
        "title": board.title,
        "columns": [
            {"id": c.id, "title": c.title, "tasks": len(board.tasks_in(c.id))}
            for c in board.columns
        ],
        "updated_at": board.updated_at.isoformat(),
    }


def pretty(obj: Any) -> str:
    return json.dumps(obj, indent=2, sort_keys=True, default=str)
