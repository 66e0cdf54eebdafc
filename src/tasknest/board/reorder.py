"""Pure reordering functions for ordered sibling collections.

Each function takes sibling sequences (items with ``id`` and ``order``) and
returns new tuples whose ``order`` values are dense (``0..n-1``) in sequence
position.  Nothing here reads a clock or touches shared state, so identical
inputs always yield identical outputs; the drag coordinator relies on that to
re-apply tentative moves on every hover tick.

Items are frozen dataclasses and are rebuilt with :func:`dataclasses.replace`.
An item whose ``order`` (and parent) is already correct is returned as the
same object, which lets callers detect "nothing changed" cheaply.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterable, Sequence, TypeVar

T = TypeVar("T")


def clamp(index: int, low: int, high: int) -> int:
    """Clamp *index* into ``[low, high]`` (``high`` wins if the range is empty)."""
    return max(low, min(int(index), high)) if high >= low else high


def sort_by_order(items: Iterable[T]) -> list[T]:
    return sorted(items, key=lambda item: getattr(item, "order"))


def renumber(items: Iterable[T]) -> tuple[T, ...]:
    """Assign ``order = position``, keeping items that are already in place."""
    out: list[T] = []
    for idx, item in enumerate(items):
        out.append(item if getattr(item, "order") == idx else replace(item, order=idx))  # type: ignore[type-var]
    return tuple(out)


def index_of(siblings: Sequence[Any], item_id: str) -> int:
    for idx, item in enumerate(siblings):
        if item.id == item_id:
            return idx
    raise KeyError(item_id)


def append(siblings: Sequence[T], item: T) -> tuple[T, ...]:
    """Return *siblings* with *item* appended at ``order = len(siblings)``."""
    ordered = renumber(sort_by_order(siblings))
    return ordered + (replace(item, order=len(ordered)),)  # type: ignore[type-var]


def remove(siblings: Sequence[T], item_id: str) -> tuple[T, tuple[T, ...]]:
    """Remove *item_id*; return ``(removed, renumbered_remainder)``.

    Raises :class:`KeyError` if the item is not among *siblings*.
    """
    ordered = sort_by_order(siblings)
    idx = index_of(ordered, item_id)
    removed = ordered.pop(idx)
    return removed, renumber(ordered)


def move_within(siblings: Sequence[T], item_id: str, requested_index: int) -> tuple[T, ...]:
    """Move *item_id* to *requested_index* inside one container.

    The index is clamped to ``[0, n-1]`` (``n`` = sibling count), so hovering
    past either edge lands on the first or last slot.  Moving an item to its
    current index returns the same item objects.
    """
    ordered = sort_by_order(siblings)
    moving = ordered.pop(index_of(ordered, item_id))
    ordered.insert(clamp(requested_index, 0, len(ordered)), moving)
    return renumber(ordered)


def move_between(
    source: Sequence[T],
    destination: Sequence[T],
    item_id: str,
    requested_index: int,
    *,
    parent_field: str,
    destination_id: str,
) -> tuple[tuple[T, ...], tuple[T, ...]]:
    """Move *item_id* from *source* into *destination* at *requested_index*.

    The source is renumbered ``0..n-2``; the item is inserted at
    ``clamp(requested_index, 0, m)`` (``m`` = destination length before the
    insert) with its *parent_field* back-reference set to *destination_id*,
    and the destination is renumbered ``0..m``.
    """
    moving, new_source = remove(source, item_id)
    dest = sort_by_order(destination)
    target = clamp(requested_index, 0, len(dest))
    dest.insert(target, replace(moving, **{parent_field: destination_id}))  # type: ignore[type-var]
    return new_source, renumber(dest)


def permute(siblings: Sequence[T], ordered_ids: Sequence[str]) -> tuple[T, ...]:
    """Reorder *siblings* to follow *ordered_ids* exactly.

    Raises :class:`ValueError` unless *ordered_ids* is a permutation of the
    sibling ids (no missing, extra or duplicate ids).
    """
    by_id = {item.id: item for item in siblings}  # type: ignore[attr-defined]
    if len(ordered_ids) != len(set(ordered_ids)):
        dupes = sorted({i for i in ordered_ids if list(ordered_ids).count(i) > 1})
        raise ValueError(f"duplicate ids: {dupes}")
    missing = sorted(set(by_id) - set(ordered_ids))
    unknown = sorted(set(ordered_ids) - set(by_id))
    if missing or unknown:
        raise ValueError(f"not a permutation (missing={missing}, unknown={unknown})")
    return renumber(by_id[i] for i in ordered_ids)
