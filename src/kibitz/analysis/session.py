"""Analysis mode: step through a finished game and explore side lines."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import StrEnum

import chess

from kibitz.analysis.models import PlayedMove, Suggestion, TimelineEntry
from kibitz.analysis.notation import move_from_squares
from kibitz.analysis.timeline import Timeline, build_timeline, navigate_to
from kibitz.errors import InvalidHistoryError

_LOGGER = logging.getLogger(__name__)

LoadSuggestions = Callable[[str], object]
ResetAnalysis = Callable[[], None]
CachedSuggestions = Callable[[str], "tuple[Suggestion, ...] | None"]


class NavigationAction(StrEnum):
    NEXT = "next"
    PREVIOUS = "previous"
    START = "start"
    END = "end"
    JUMP = "jump"


@dataclass(slots=True, frozen=True)
class AnalysisSnapshot:
    """What the analysis board currently shows."""

    fen: str
    index: int
    total: int
    last_move: PlayedMove | None
    next_move: PlayedMove | None
    suggestions: tuple[Suggestion, ...]
    exploring: bool


class AnalysisSession:
    """Owns the analysis timeline, the cursor and a scratch exploration board.

    Every position change is followed by ``load_suggestions(fen)``; the
    engine side decides whether that is a cache hit or a new request.

    Args:
        load_suggestions: ``(fen) -> Any``, schedules suggestions for *fen*.
        reset_analysis: ``() -> None``, drops in-flight analysis and the
            suggestion cache; called on entering and leaving analysis mode.
        cached_suggestions: ``(fen) -> tuple | None``, a cache lookup used to
            fill snapshots without waiting.
    """

    __slots__ = (
        "_load_suggestions",
        "_reset_analysis",
        "_cached_suggestions",
        "_timeline",
        "_index",
        "_board",
        "_error",
    )

    def __init__(
        self,
        *,
        load_suggestions: LoadSuggestions,
        reset_analysis: ResetAnalysis,
        cached_suggestions: CachedSuggestions | None = None,
    ) -> None:
        self._load_suggestions = load_suggestions
        self._reset_analysis = reset_analysis
        self._cached_suggestions = cached_suggestions or (lambda _fen: None)
        self._timeline: Timeline = ()
        self._index = 0
        self._board: chess.Board | None = None
        self._error: str | None = None

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def active(self) -> bool:
        return bool(self._timeline)

    @property
    def timeline(self) -> Timeline:
        return self._timeline

    @property
    def index(self) -> int:
        return self._index

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def fen(self) -> str | None:
        return self._board.fen() if self._board is not None else None

    @property
    def current_entry(self) -> TimelineEntry | None:
        if not self._timeline:
            return None
        return self._timeline[self._index]

    # ── Mode ─────────────────────────────────────────────────────────────

    def enter(
        self,
        moves: Iterable[chess.Move],
        start_fen: str = chess.STARTING_FEN,
    ) -> bool:
        """Build the timeline for *moves* and show its first position."""
        history = list(moves)
        if not history:
            return False
        try:
            timeline = build_timeline(history, start_fen)
        except InvalidHistoryError as exc:
            _LOGGER.warning("Analysis failed: %s", exc)
            self._error = f"Analysis failed: {exc}"
            return False

        _LOGGER.info("Entering analysis mode (%d plies)", len(history))
        self._reset_analysis()
        self._timeline = timeline
        self._error = None
        self._show(0)
        return True

    def leave(self) -> None:
        self._reset_analysis()
        self._timeline = ()
        self._index = 0
        self._board = None
        self._error = None

    # ── Navigation ───────────────────────────────────────────────────────

    def go_to(self, index: int) -> TimelineEntry | None:
        if not self._timeline:
            _LOGGER.debug("go_to(%d) ignored: not in analysis mode", index)
            return None
        entry = navigate_to(self._timeline, index)
        self._show(entry.index)
        return entry

    def navigate(
        self,
        action: NavigationAction | str,
        index: int | None = None,
    ) -> TimelineEntry | None:
        """Apply a named navigation *action* (``jump`` uses *index*)."""
        action = NavigationAction(action)
        if action == NavigationAction.NEXT:
            target = self._index + 1
        elif action == NavigationAction.PREVIOUS:
            target = self._index - 1
        elif action == NavigationAction.START:
            target = 0
        elif action == NavigationAction.END:
            target = len(self._timeline) - 1
        else:
            if index is None:
                raise ValueError("jump requires an index")
            target = index
        return self.go_to(target)

    # ── Exploration ──────────────────────────────────────────────────────

    def explore_move(self, from_square: str, to_square: str) -> bool:
        """Play a side-line move on the analysis board.

        A move that only works as a promotion is promoted to a queen.
        """
        board = self._board
        if board is None or from_square == to_square:
            return False
        move = move_from_squares(board, from_square, to_square)
        if move is None:
            move = move_from_squares(board, from_square, to_square, "q")
        if move is None:
            return False
        board.push(move)
        self._load_suggestions(board.fen())
        return True

    def explore_san(self, san: str) -> bool:
        board = self._board
        if board is None:
            return False
        try:
            move = board.parse_san(san)
        except ValueError:
            _LOGGER.warning("Rejected exploration move %r in %s", san, board.fen())
            return False
        board.push(move)
        self._load_suggestions(board.fen())
        return True

    def reset_position(self) -> None:
        """Drop the side line and return to the current timeline entry."""
        if self._timeline:
            self._show(self._index)

    def snapshot(self) -> AnalysisSnapshot | None:
        entry = self.current_entry
        if entry is None or self._board is None:
            return None
        fen = self._board.fen()
        return AnalysisSnapshot(
            fen=fen,
            index=entry.index,
            total=len(self._timeline),
            last_move=entry.played_move,
            next_move=entry.next_move,
            suggestions=self._cached_suggestions(fen) or (),
            exploring=fen != entry.position,
        )

    def _show(self, index: int) -> None:
        self._index = index
        entry = self._timeline[index]
        self._board = chess.Board(entry.position)
        self._load_suggestions(entry.position)
