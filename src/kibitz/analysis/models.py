"""Value types produced by engine analysis and timeline replay."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

import chess


class ResultStatus(StrEnum):
    """Whether a ranked request was still the current one when it finished."""

    FRESH = "fresh"
    SUPERSEDED = "superseded"


class LoadOutcome(StrEnum):
    """How a ``load_suggestions`` call ended."""

    CACHED = "cached"
    FRESH = "fresh"
    SUPERSEDED = "superseded"  # finished, but a newer request took over
    ABANDONED = "abandoned"  # never reached the engine
    UNAVAILABLE = "unavailable"  # no engine
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class Suggestion:
    """One ranked engine line for a position.

    ``score`` is in centipawns from the side to move, with mate scores
    saturated to ``±MATE_SCORE``.
    """

    move: chess.Move
    san: str
    score: int
    rank: int

    @property
    def uci(self) -> str:
        return self.move.uci()


@dataclass(slots=True, frozen=True)
class PlayedMove:
    """A move from the game record, with its SAN in context."""

    move: chess.Move
    san: str

    @property
    def uci(self) -> str:
        return self.move.uci()

    @property
    def from_square(self) -> str:
        return chess.square_name(self.move.from_square)

    @property
    def to_square(self) -> str:
        return chess.square_name(self.move.to_square)


@dataclass(slots=True, frozen=True)
class TimelineEntry:
    """A position in a replayed game.

    ``played_move`` produced this position from the previous entry;
    ``next_move`` is the move the game continued with from here.
    """

    position: str
    index: int
    turn: chess.Color
    played_move: PlayedMove | None = None
    next_move: PlayedMove | None = None


@dataclass(slots=True, frozen=True)
class SuggestionResult:
    """Ranked lines for one position, tagged fresh or superseded."""

    position: str
    suggestions: tuple[Suggestion, ...]
    status: ResultStatus

    @property
    def is_fresh(self) -> bool:
        return self.status == ResultStatus.FRESH


@dataclass(slots=True, frozen=True)
class SuggestionState:
    """The externally visible suggestion panel state."""

    position: str | None = None
    suggestions: tuple[Suggestion, ...] = ()
    loading: bool = False
    error: str | None = None


def rank_suggestions(items: Iterable[Suggestion]) -> tuple[Suggestion, ...]:
    """Order suggestions by score, best first.

    Input is first put in engine rank order so equal scores keep the order
    the engine reported them in.
    """
    by_rank = sorted(items, key=lambda s: s.rank)
    return tuple(sorted(by_rank, key=lambda s: s.score, reverse=True))
