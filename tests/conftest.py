"""Shared pytest fixtures used across the test suite."""

from __future__ import annotations

import asyncio
import os
import sys
from collections.abc import Callable, Iterator

import pytest

# Linux CI runners are often headless. Force an offscreen backend only there.
if (
    sys.platform.startswith("linux")
    and "QT_QPA_PLATFORM" not in os.environ
    and "DISPLAY" not in os.environ
    and "WAYLAND_DISPLAY" not in os.environ
):
    os.environ["QT_QPA_PLATFORM"] = "offscreen"


class ScriptedEngine:
    """In-process stand-in for a UCI engine.

    Replies are delivered with ``loop.call_soon`` so they arrive after the
    sending coroutine yields, like lines from a real process. A search for a
    FEN listed in ``hold`` does not finish until ``stop`` (or ``release``).
    """

    def __init__(self, *, auto_ready: bool = True) -> None:
        self.sent: list[str] = []
        self.infos: dict[str, list[str]] = {}
        self.bestmoves: dict[str, str] = {}
        self.hold: set[str] = set()
        self.go_count = 0
        self.started = False
        self.terminated = False
        self._auto_ready = auto_ready
        self._alive = True
        self._handler: Callable[[str], None] | None = None
        self._position: str | None = None
        self._held: str | None = None

    def script(self, fen: str, infos: list[str], bestmove: str) -> None:
        self.infos[fen] = list(infos)
        self.bestmoves[fen] = bestmove

    @property
    def is_alive(self) -> bool:
        return self._alive

    def set_line_handler(self, handler: Callable[[str], None] | None) -> None:
        self._handler = handler

    async def start(self) -> None:
        self.started = True

    async def terminate(self) -> None:
        self._alive = False
        self.terminated = True

    def send(self, command: str) -> None:
        if not self._alive:
            return
        self.sent.append(command)
        if command == "uci":
            self.reply("uciok")
        elif command == "isready":
            if self._auto_ready:
                self.reply("readyok")
        elif command.startswith("position fen "):
            self._position = command.removeprefix("position fen ")
        elif command.startswith("go"):
            self.go_count += 1
            if self._position in self.hold:
                self._held = self._position
                return
            self._finish(self._position)
        elif command == "stop":
            self.release()

    def release(self) -> None:
        held, self._held = self._held, None
        if held is not None:
            self._finish(held)

    def reply(self, line: str) -> None:
        asyncio.get_running_loop().call_soon(self._deliver, line)

    def commands(self, prefix: str) -> list[str]:
        return [c for c in self.sent if c.startswith(prefix)]

    def _finish(self, fen: str | None) -> None:
        for line in self.infos.get(fen or "", []):
            self.reply(line)
        self.reply(f"bestmove {self.bestmoves.get(fen or '', '(none)')}")

    def _deliver(self, line: str) -> None:
        if self._alive and self._handler is not None:
            self._handler(line)


class EngineFactory:
    """Transport factory for ``EngineService`` that keeps every engine it made."""

    def __init__(self, configure: Callable[[ScriptedEngine], None] | None = None) -> None:
        self.engines: list[ScriptedEngine] = []
        self._configure = configure

    def __call__(self, _settings: object) -> ScriptedEngine:
        engine = ScriptedEngine()
        if self._configure is not None:
            self._configure(engine)
        self.engines.append(engine)
        return engine


async def run_until(predicate: Callable[[], bool], *, max_steps: int = 200) -> None:
    """Yield to the event loop until *predicate* holds."""
    for _ in range(max_steps):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


@pytest.fixture
def engine() -> ScriptedEngine:
    return ScriptedEngine()


@pytest.fixture(scope="session")
def qapp() -> Iterator[object]:
    """Provide a singleton QCoreApplication for signal tests."""
    from PyQt6.QtCore import QCoreApplication

    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app
