"""Replay a move list into a navigable sequence of positions."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import chess

from kibitz.analysis.models import PlayedMove, TimelineEntry
from kibitz.errors import InvalidHistoryError

_LOGGER = logging.getLogger(__name__)

Timeline = tuple[TimelineEntry, ...]


@dataclass(slots=True, frozen=True)
class SanitizedHistory:
    """Result of a tolerant replay.

    ``truncated_at`` is the 0-based ply of the first rejected move, or
    ``None`` when the whole history replayed.
    """

    moves: tuple[chess.Move, ...]
    board: chess.Board
    truncated_at: int | None = None


def build_timeline(
    moves: Iterable[chess.Move],
    start_fen: str = chess.STARTING_FEN,
) -> Timeline:
    """Replay *moves* from *start_fen*, one entry per position.

    N moves give N + 1 entries. Entry 0 has no ``played_move``, the last
    entry has no ``next_move``, and ``entries[i].next_move`` is
    ``entries[i + 1].played_move``.

    Raises:
        InvalidHistoryError: a move is illegal where it occurs.
    """
    board = chess.Board(start_fen)
    fens = [board.fen()]
    turns = [board.turn]
    played: list[PlayedMove] = []

    for index, move in enumerate(moves):
        if not board.is_legal(move):
            raise InvalidHistoryError(index, move.uci())
        played.append(PlayedMove(move=move, san=board.san(move)))
        board.push(move)
        fens.append(board.fen())
        turns.append(board.turn)

    return tuple(
        TimelineEntry(
            position=fen,
            index=index,
            turn=turns[index],
            played_move=played[index - 1] if index > 0 else None,
            next_move=played[index] if index < len(played) else None,
        )
        for index, fen in enumerate(fens)
    )


def sanitize_history(
    moves: Iterable[chess.Move],
    start_fen: str = chess.STARTING_FEN,
) -> SanitizedHistory:
    """Replay *moves* and keep the legal prefix instead of failing."""
    board = chess.Board(start_fen)
    kept: list[chess.Move] = []
    for index, move in enumerate(moves):
        if not board.is_legal(move):
            _LOGGER.warning(
                "History truncated at move %d (%s): illegal in %s",
                index + 1,
                move.uci(),
                board.fen(),
            )
            return SanitizedHistory(tuple(kept), board, truncated_at=index)
        board.push(move)
        kept.append(move)
    return SanitizedHistory(tuple(kept), board)


def navigate_to(timeline: Sequence[TimelineEntry], index: int) -> TimelineEntry:
    """Return the entry at *index*, clamped into the timeline's range."""
    if not timeline:
        raise ValueError("Cannot navigate an empty timeline")
    return timeline[max(0, min(len(timeline) - 1, index))]
