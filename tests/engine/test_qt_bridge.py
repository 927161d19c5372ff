"""Tests for the Qt engine bridge."""

from __future__ import annotations

import time
from collections.abc import Callable

import chess
from conftest import EngineFactory, ScriptedEngine

from kibitz.analysis.models import SuggestionState
from kibitz.engine.qt_bridge import EngineBridge

START = chess.STARTING_FEN


def _script(engine: ScriptedEngine) -> None:
    engine.script(
        START,
        [
            "info depth 8 multipv 1 score cp 40 pv e2e4",
            "info depth 8 multipv 2 score cp 30 pv d2d4",
        ],
        "e2e4",
    )


def _wait_for(app, predicate: Callable[[], bool], timeout: float = 5.0) -> None:  # noqa: ANN001
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached")
        app.processEvents()
        time.sleep(0.01)


class _FailingEngine(ScriptedEngine):
    async def start(self) -> None:
        raise FileNotFoundError("stockfish not found")


class TestEngineBridge:
    def test_ready_then_best_move(self, qapp) -> None:  # noqa: ANN001
        bridge = EngineBridge(transport_factory=EngineFactory(_script))
        ready: list[bool] = []
        moves: list[tuple[int, object]] = []
        bridge.engine_ready.connect(lambda: ready.append(True))
        bridge.best_move_ready.connect(lambda rid, move: moves.append((rid, move)))

        bridge.setup(1600)
        try:
            _wait_for(qapp, lambda: bool(ready))
            request_id = bridge.request_move(START, 2500)
            _wait_for(qapp, lambda: bool(moves))
        finally:
            bridge.shutdown()

        assert moves == [(request_id, chess.Move.from_uci("e2e4"))]
        assert not bridge.is_started

    def test_suggestions_are_published(self, qapp) -> None:  # noqa: ANN001
        bridge = EngineBridge(transport_factory=EngineFactory(_script))
        states: list[SuggestionState] = []
        bridge.suggestions_changed.connect(states.append)

        bridge.setup()
        try:
            bridge.load_suggestions(START)
            _wait_for(qapp, lambda: any(s.suggestions for s in states))
        finally:
            bridge.shutdown()

        final = next(s for s in states if s.suggestions)
        assert final.position == START
        assert [s.uci for s in final.suggestions] == ["e2e4", "d2d4"]

    def test_only_latest_move_request_is_reported(self, qapp) -> None:  # noqa: ANN001
        factory = EngineFactory(lambda e: (_script(e), e.hold.add(START)))
        bridge = EngineBridge(transport_factory=factory)
        ready: list[bool] = []
        moves: list[tuple[int, object]] = []
        bridge.engine_ready.connect(lambda: ready.append(True))
        bridge.best_move_ready.connect(lambda rid, move: moves.append((rid, move)))

        bridge.setup()
        try:
            _wait_for(qapp, lambda: bool(ready))
            engine = factory.engines[0]
            first = bridge.request_move(START, 2500)
            second = bridge.request_move(START, 2500)
            _wait_for(qapp, lambda: engine.go_count >= 1)

            def unblock() -> None:
                engine.hold.clear()
                engine.release()

            bridge._loop.call_soon_threadsafe(unblock)
            _wait_for(qapp, lambda: bool(moves))
        finally:
            bridge.shutdown()

        assert first is not None and second == first + 1
        assert moves == [(second, chess.Move.from_uci("e2e4"))]

    def test_start_failure_is_reported(self, qapp) -> None:  # noqa: ANN001
        bridge = EngineBridge(transport_factory=lambda _settings: _FailingEngine())
        failures: list[str] = []
        bridge.engine_failed.connect(failures.append)

        bridge.setup()
        try:
            _wait_for(qapp, lambda: bool(failures))
        finally:
            bridge.shutdown()

        assert failures == ["stockfish not found"]

    def test_calls_before_setup_are_ignored(self) -> None:
        bridge = EngineBridge(transport_factory=EngineFactory())
        assert bridge.request_move(START) is None
        bridge.load_suggestions(START)
        bridge.reset_analysis()
        bridge.shutdown()
        assert not bridge.is_started
