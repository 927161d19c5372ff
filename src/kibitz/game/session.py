"""One human-vs-engine game.

Validates and applies moves from both sides, tracks whose turn it is and
notifies listeners through plain callbacks.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import IntEnum, auto

import chess

from kibitz.analysis.notation import move_from_squares
from kibitz.game.outcome import game_over_text

_LOGGER = logging.getLogger(__name__)

MoveCallback = Callable[[chess.Move, str], None]  # move, san
GameOverCallback = Callable[[str], None]
NewGameCallback = Callable[[chess.Color], None]


class GamePhase(IntEnum):
    AWAITING_MOVE = auto()
    THINKING = auto()  # engine to move
    GAME_OVER = auto()


@dataclass
class GameEvents:
    """Observable callbacks. Multiple handlers per event."""

    on_move: list[MoveCallback] = field(default_factory=list)
    on_game_over: list[GameOverCallback] = field(default_factory=list)
    on_new_game: list[NewGameCallback] = field(default_factory=list)


class GameSession:
    """Board, side assignment and game-over state for a game against the engine."""

    __slots__ = ("_board", "_player_color", "_game_over", "events")

    def __init__(self, player_color: chess.Color = chess.WHITE) -> None:
        self._board = chess.Board()
        self._player_color = player_color
        self._game_over: str | None = None
        self.events = GameEvents()

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def fen(self) -> str:
        return self._board.fen()

    @property
    def board(self) -> chess.Board:
        """A copy of the game board; mutate the game through this class only."""
        return self._board.copy()

    @property
    def player_color(self) -> chess.Color:
        return self._player_color

    @property
    def game_over(self) -> str | None:
        return self._game_over

    @property
    def phase(self) -> GamePhase:
        if self._game_over is not None:
            return GamePhase.GAME_OVER
        if self.is_engine_turn:
            return GamePhase.THINKING
        return GamePhase.AWAITING_MOVE

    @property
    def is_engine_turn(self) -> bool:
        return self._game_over is None and self._board.turn != self._player_color

    @property
    def in_check(self) -> bool:
        return self._board.is_check()

    def moves(self) -> tuple[chess.Move, ...]:
        return tuple(self._board.move_stack)

    def history(self) -> list[str]:
        """SAN of every move played so far."""
        replay = self._board.root()
        sans: list[str] = []
        for move in self._board.move_stack:
            sans.append(replay.san(move))
            replay.push(move)
        return sans

    # ── Actions ──────────────────────────────────────────────────────────

    def new_game(self, player_color: chess.Color = chess.WHITE) -> None:
        self._board = chess.Board()
        self._player_color = player_color
        self._game_over = None
        for cb in self.events.on_new_game:
            cb(player_color)

    def submit_move(self, from_square: str, to_square: str) -> bool:
        """Play the human's move; pawns reaching the last rank become queens."""
        if self._game_over is not None or self.is_engine_turn:
            return False
        move = move_from_squares(self._board, from_square, to_square)
        if move is None:
            move = move_from_squares(self._board, from_square, to_square, "q")
        if move is None:
            return False
        self._apply(move)
        return True

    def apply_engine_move(self, move: chess.Move | None) -> bool:
        """Play the engine's reply; an illegal or missing move is logged and skipped."""
        if move is None or not self.is_engine_turn:
            return False
        if not self._board.is_legal(move):
            _LOGGER.warning("Engine made invalid move %s in %s", move.uci(), self.fen)
            return False
        self._apply(move)
        return True

    def _apply(self, move: chess.Move) -> None:
        san = self._board.san(move)
        self._board.push(move)
        for cb in self.events.on_move:
            cb(move, san)

        over = game_over_text(self._board)
        if over is not None:
            self._game_over = over
            for cb in self.events.on_game_over:
                cb(over)
