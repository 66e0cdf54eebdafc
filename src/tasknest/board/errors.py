"""Error kinds raised by the board engine.

Every store operation either returns a new snapshot or raises one of these
before touching state, so callers never observe a half-applied mutation.
"""

from __future__ import annotations


class BoardError(Exception):
    """Base class for board engine failures."""


class NotFoundError(BoardError, KeyError):
    """A referenced board, column, task or comment does not exist."""

    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"{kind} {entity_id} not found")
        self.kind = kind
        self.entity_id = entity_id

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message.
        return str(self.args[0])


class InvalidArgumentError(BoardError, ValueError):
    """Malformed request: bad permutation, duplicate id, derived-field update."""
