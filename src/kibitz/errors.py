"""Exception types shared across kibitz packages."""

from __future__ import annotations


class KibitzError(Exception):
    """Base class for all kibitz errors."""


class EngineUnavailableError(KibitzError):
    """Raised when an operation needs a running engine and there is none."""


class InvalidHistoryError(KibitzError, ValueError):
    """Raised when a move history cannot be replayed from its start position.

    Args:
        index: 0-based ply of the offending move.
        move_text: SAN or UCI text of the move, for the message.
    """

    def __init__(self, index: int, move_text: str) -> None:
        super().__init__(f"Move {index + 1} is invalid ({move_text})")
        self.index = index
        self.move_text = move_text
