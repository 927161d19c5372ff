"""Tests for rating-limited move selection."""

from __future__ import annotations

import asyncio

import chess
from conftest import ScriptedEngine

from kibitz.engine.coordinator import RequestCoordinator
from kibitz.engine.opponent import request_weak_or_best_move

START = chess.STARTING_FEN


class _FixedRoll:
    def __init__(self, roll: float) -> None:
        self.roll = roll

    def random(self) -> float:
        return self.roll

    def choice(self, seq):  # noqa: ANN001, ANN201
        return seq[0]


def _three_lines(engine: ScriptedEngine) -> None:
    engine.script(
        START,
        [
            "info depth 8 multipv 1 score cp 40 pv e2e4",
            "info depth 8 multipv 2 score cp 30 pv d2d4",
            "info depth 8 multipv 3 score cp 20 pv g1f3",
        ],
        "e2e4",
    )


def test_strong_rating_asks_for_best_move_only(engine: ScriptedEngine) -> None:
    _three_lines(engine)
    coordinator = RequestCoordinator(engine)

    move = asyncio.run(request_weak_or_best_move(coordinator, START, 2000))

    assert move == chess.Move.from_uci("e2e4")
    assert engine.commands("setoption name MultiPV") == []
    assert engine.go_count == 1


def test_weak_rating_picks_from_ranked_lines(engine: ScriptedEngine) -> None:
    _three_lines(engine)
    coordinator = RequestCoordinator(engine)

    # p = 0.8 at 600: a 0.5 roll lands in the "weakest of top three" tier.
    move = asyncio.run(
        request_weak_or_best_move(coordinator, START, 600, rng=_FixedRoll(0.5))
    )

    assert move == chess.Move.from_uci("g1f3")
    assert engine.commands("setoption name MultiPV") == [
        "setoption name MultiPV value 3",
        "setoption name MultiPV value 1",
    ]


def test_falls_back_to_best_move_without_lines(engine: ScriptedEngine) -> None:
    engine.script(START, [], "d2d4")
    coordinator = RequestCoordinator(engine)

    move = asyncio.run(
        request_weak_or_best_move(coordinator, START, 900, rng=_FixedRoll(0.9))
    )

    assert move == chess.Move.from_uci("d2d4")
    assert engine.go_count == 2
