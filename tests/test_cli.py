from __future__ import annotations

import json
from pathlib import Path

import pytest

from tasknest.cli import main


def _run(capsys: pytest.CaptureFixture[str], project: Path, *argv: str) -> dict:
    rc = main(["--project-dir", str(project), *argv])
    assert rc == 0
    return json.loads(capsys.readouterr().out)


def test_init_with_sample(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    out = _run(capsys, tmp_path, "init", "--sample")
    assert out["boards"] == 1
    assert out["seeded"]
    assert (tmp_path / ".tasknest" / "boards.yaml").exists()

    again = _run(capsys, tmp_path, "init", "--sample")
    assert again["boards"] == 1
    assert again["seeded"] is None


def test_board_column_task_comment_flow(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    board = _run(capsys, tmp_path, "board", "create", "Sprint", "--column", "A", "--column", "B")["board"]
    bid = board["id"]
    col_a, col_b = (c["id"] for c in board["columns"])

    extra = _run(capsys, tmp_path, "column", "add", bid, "C")["column"]
    assert extra["order"] == 2

    task = _run(capsys, tmp_path, "task", "add", bid, col_a, "Write docs", "--priority", "high", "--tag", "docs")["task"]
    assert task["priority"] == "high"
    assert task["tags"] == ["docs"]

    moved = _run(capsys, tmp_path, "task", "move", bid, task["id"], col_b)["task"]
    assert moved["column_id"] == col_b
    assert moved["order"] == 0

    comment = _run(capsys, tmp_path, "comment", "add", bid, task["id"], "looks good", "--author", "amy")["comment"]
    assert comment["task_id"] == task["id"]

    columns = _run(capsys, tmp_path, "column", "move", bid, extra["id"], "0")["columns"]
    assert [c["title"] for c in columns] == ["C", "A", "B"]

    shown = _run(capsys, tmp_path, "board", "show", bid, "--json")["board"]
    lane_b = next(c for c in shown["columns"] if c["id"] == col_b)
    assert [t["title"] for t in lane_b["tasks"]] == ["Write docs"]

    _run(capsys, tmp_path, "column", "delete", bid, col_b)
    listing = _run(capsys, tmp_path, "board", "list")["boards"]
    assert [c["tasks"] for c in listing[0]["columns"]] == [0, 0]

    _run(capsys, tmp_path, "board", "delete", bid)
    assert _run(capsys, tmp_path, "board", "list")["boards"] == []


def test_board_show_renders_table(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    seeded = _run(capsys, tmp_path, "init", "--sample")["seeded"]
    assert main(["--project-dir", str(tmp_path), "board", "show", seeded]) == 0
    out = capsys.readouterr().out
    assert "TaskNest sample board" in out
    assert "To Do" in out


def test_errors_exit_nonzero(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--project-dir", str(tmp_path), "board", "show", "ghost"]) == 1
    assert "ghost" in capsys.readouterr().err

    board = _run(capsys, tmp_path, "board", "create", "Sprint")["board"]
    rc = main(["--project-dir", str(tmp_path), "task", "add", board["id"], board["columns"][0]["id"], "t", "--due", "soon"])
    assert rc == 1
    assert "Invalid --due" in capsys.readouterr().err
