"""Tests for the pure reordering functions (board/reorder.py)."""

from __future__ import annotations

import pytest

from tasknest.board import reorder
from tasknest.board.model import Task


def _tasks(*ids: str, column: str = "c1") -> tuple[Task, ...]:
    return tuple(Task(id=task_id, title=task_id, column_id=column, order=idx) for idx, task_id in enumerate(ids))


def _ids(items) -> list[str]:
    return [item.id for item in items]


def _orders(items) -> list[int]:
    return [item.order for item in items]


class TestClamp:
    def test_inside_range(self) -> None:
        assert reorder.clamp(2, 0, 4) == 2

    def test_below_and_above(self) -> None:
        assert reorder.clamp(-3, 0, 4) == 0
        assert reorder.clamp(99, 0, 4) == 4

    def test_empty_range_returns_high(self) -> None:
        assert reorder.clamp(5, 0, -1) == -1


class TestRenumber:
    def test_assigns_positions(self) -> None:
        items = (Task(id="a", order=5), Task(id="b", order=9))
        out = reorder.renumber(items)
        assert _orders(out) == [0, 1]

    def test_keeps_items_already_in_place(self) -> None:
        items = _tasks("a", "b")
        out = reorder.renumber(items)
        assert out[0] is items[0]
        assert out[1] is items[1]


class TestAppendRemove:
    def test_append_sets_order_to_sibling_count(self) -> None:
        out = reorder.append(_tasks("a", "b"), Task(id="c", order=42))
        assert _ids(out) == ["a", "b", "c"]
        assert _orders(out) == [0, 1, 2]

    def test_append_to_empty(self) -> None:
        out = reorder.append((), Task(id="x", order=7))
        assert _orders(out) == [0]

    def test_remove_renumbers_rest(self) -> None:
        removed, rest = reorder.remove(_tasks("a", "b", "c", "d"), "b")
        assert removed.id == "b"
        assert _ids(rest) == ["a", "c", "d"]
        assert _orders(rest) == [0, 1, 2]

    def test_remove_unknown_raises(self) -> None:
        with pytest.raises(KeyError):
            reorder.remove(_tasks("a"), "zzz")


class TestMoveWithin:
    def test_move_down(self) -> None:
        out = reorder.move_within(_tasks("a", "b", "c", "d"), "a", 2)
        assert _ids(out) == ["b", "c", "a", "d"]
        assert _orders(out) == [0, 1, 2, 3]

    def test_move_up(self) -> None:
        out = reorder.move_within(_tasks("a", "b", "c", "d"), "d", 0)
        assert _ids(out) == ["d", "a", "b", "c"]

    def test_last_slot_reachable(self) -> None:
        out = reorder.move_within(_tasks("a", "b", "c"), "a", 2)
        assert _ids(out) == ["b", "c", "a"]

    def test_index_clamped(self) -> None:
        assert _ids(reorder.move_within(_tasks("a", "b", "c"), "b", 50)) == ["a", "c", "b"]
        assert _ids(reorder.move_within(_tasks("a", "b", "c"), "b", -5)) == ["b", "a", "c"]

    def test_same_index_is_identity(self) -> None:
        items = _tasks("a", "b", "c")
        out = reorder.move_within(items, "b", 1)
        assert all(x is y for x, y in zip(out, items))

    def test_deterministic(self) -> None:
        items = _tasks("a", "b", "c", "d")
        assert reorder.move_within(items, "c", 0) == reorder.move_within(items, "c", 0)


class TestMoveBetween:
    def test_insert_in_middle(self) -> None:
        source = _tasks("a", "b", "c", column="c1")
        dest = _tasks("x", "y", column="c2")
        new_source, new_dest = reorder.move_between(
            source, dest, "b", 1, parent_field="column_id", destination_id="c2"
        )
        assert _ids(new_source) == ["a", "c"]
        assert _orders(new_source) == [0, 1]
        assert _ids(new_dest) == ["x", "b", "y"]
        assert _orders(new_dest) == [0, 1, 2]
        assert all(t.column_id == "c2" for t in new_dest)

    def test_into_empty_destination(self) -> None:
        new_source, new_dest = reorder.move_between(
            _tasks("a"), (), "a", 3, parent_field="column_id", destination_id="c9"
        )
        assert new_source == ()
        assert _ids(new_dest) == ["a"]
        assert new_dest[0].order == 0
        assert new_dest[0].column_id == "c9"

    def test_index_clamped_to_end(self) -> None:
        _, new_dest = reorder.move_between(
            _tasks("a", "b"), _tasks("x", column="c2"), "a", 99, parent_field="column_id", destination_id="c2"
        )
        assert _ids(new_dest) == ["x", "a"]

    def test_total_count_preserved(self) -> None:
        source = _tasks("a", "b", "c")
        dest = _tasks("x", "y", column="c2")
        new_source, new_dest = reorder.move_between(
            source, dest, "c", 0, parent_field="column_id", destination_id="c2"
        )
        assert len(new_source) + len(new_dest) == len(source) + len(dest)


class TestPermute:
    def test_full_permutation(self) -> None:
        out = reorder.permute(_tasks("a", "b", "c"), ["c", "a", "b"])
        assert _ids(out) == ["c", "a", "b"]
        assert _orders(out) == [0, 1, 2]

    def test_missing_id_rejected(self) -> None:
        with pytest.raises(ValueError, match="missing"):
            reorder.permute(_tasks("a", "b", "c"), ["a", "b"])

    def test_unknown_id_rejected(self) -> None:
        with pytest.raises(ValueError, match="unknown"):
            reorder.permute(_tasks("a", "b"), ["a", "b", "z"])

    def test_duplicate_id_rejected(self) -> None:
        with pytest.raises(ValueError, match="duplicate"):
            reorder.permute(_tasks("a", "b"), ["a", "a"])
