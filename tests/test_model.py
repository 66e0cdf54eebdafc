"""Tests for the board model and its serialization (board/model.py)."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from tasknest.board.model import Board, Column, Comment, Priority, Task, board_view


def _raw_board() -> dict:
    return {
        "id": "b1",
        "title": "Board",
        "columns": [
            {"id": "a", "title": "A", "order": 0, "created_at": "2024-01-01T00:00:00Z", "updated_at": "garbage"},
            {"id": "b", "title": "B", "order": 1, "created_at": "2024-01-01T00:00:00+00:00"},
        ],
        "tasks": [
            {
                "id": "t1",
                "title": "One",
                "column_id": "a",
                "order": 0,
                "due_date": "not-a-date",
                "comments": [{"id": "m1", "content": "hi", "created_at": "nope", "updated_at": "2024-03-01T10:00:00"}],
            },
            {"id": "t2", "title": "Two", "column_id": "a", "order": 1, "due_date": "2024-05-01T12:00:00Z"},
        ],
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": "2024-01-02T00:00:00Z",
    }


class TestPriority:
    def test_coerce_values(self) -> None:
        assert Priority.coerce("High") is Priority.HIGH
        assert Priority.coerce(Priority.LOW) is Priority.LOW
        assert Priority.coerce(None) is None
        assert Priority.coerce("") is None

    def test_coerce_invalid(self) -> None:
        with pytest.raises(ValueError):
            Priority.coerce("urgent")


class TestDateRehydration:
    def test_valid_dates_parsed_at_every_level(self) -> None:
        board = Board.from_dict(_raw_board())
        assert board.created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert board.get_column("b").created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert board.get_task("t2").due_date == datetime(2024, 5, 1, 12, tzinfo=timezone.utc)
        comment = board.get_task("t1").comments[0]
        # naive timestamps are read as UTC
        assert comment.updated_at == datetime(2024, 3, 1, 10, tzinfo=timezone.utc)

    def test_invalid_required_dates_become_now(self) -> None:
        before = datetime.now(timezone.utc)
        board = Board.from_dict(_raw_board())
        assert board.get_column("a").updated_at >= before
        assert board.get_column("b").updated_at >= before  # missing
        assert board.get_task("t1").comments[0].created_at >= before

    def test_invalid_due_date_is_absent(self) -> None:
        board = Board.from_dict(_raw_board())
        assert board.get_task("t1").due_date is None

    def test_yaml_native_datetimes_accepted(self) -> None:
        raw = _raw_board()
        raw["created_at"] = datetime(2023, 6, 1, 8, 30)
        board = Board.from_dict(raw)
        assert board.created_at == datetime(2023, 6, 1, 8, 30, tzinfo=timezone.utc)


class TestLoadNormalization:
    def test_orders_rederived_densely(self) -> None:
        raw = _raw_board()
        raw["columns"][0]["order"] = 5
        raw["columns"][1]["order"] = 2
        raw["tasks"][0]["order"] = None
        raw["tasks"][1]["order"] = 9
        board = Board.from_dict(raw)
        assert [(c.id, c.order) for c in board.columns] == [("b", 0), ("a", 1)]
        assert [(t.id, t.order) for t in board.tasks_in("a")] == [("t2", 0), ("t1", 1)]

    def test_orphan_tasks_dropped(self) -> None:
        raw = _raw_board()
        raw["tasks"].append({"id": "t3", "column_id": "gone", "order": 0})
        board = Board.from_dict(raw)
        assert board.get_task("t3") is None
        assert len(board.tasks) == 2

    def test_back_references_forced(self) -> None:
        raw = _raw_board()
        raw["columns"][0]["board_id"] = "other"
        raw["tasks"][0]["comments"][0]["task_id"] = "other"
        board = Board.from_dict(raw)
        assert board.get_column("a").board_id == "b1"
        assert board.get_task("t1").comments[0].task_id == "t1"

    def test_round_trip(self) -> None:
        board = Board.from_dict(_raw_board())
        assert Board.from_dict(board.to_dict()) == board


class TestReadModel:
    def _board(self) -> Board:
        return Board(
            id="b",
            columns=(Column(id="a", order=0), Column(id="c", order=1)),
            tasks=(
                Task(id="t2", column_id="a", order=1, priority=Priority.HIGH),
                Task(id="t1", column_id="a", order=0, comments=(Comment(id="m", task_id="t1"),)),
            ),
        )

    def test_tasks_in_sorted(self) -> None:
        assert [t.id for t in self._board().tasks_in("a")] == ["t1", "t2"]
        assert self._board().tasks_in("c") == []

    def test_task_index_and_lookup(self) -> None:
        board = self._board()
        assert board.task_index("t2") == 1
        assert board.task_index("ghost") is None
        task, comment = board.find_comment("m")
        assert task.id == "t1"
        assert comment.id == "m"

    def test_board_view_nests_tasks(self) -> None:
        view = board_view(self._board())
        assert "tasks" not in view
        assert [t["id"] for t in view["columns"][0]["tasks"]] == ["t1", "t2"]
        assert view["columns"][0]["tasks"][1]["priority"] == "high"
        assert view["columns"][1]["tasks"] == []
