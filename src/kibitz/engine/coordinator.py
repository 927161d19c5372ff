"""Serializes engine requests and lets newer analysis requests supersede older ones.

The engine accepts one ``go`` at a time. Requests coming from the UI arrive
in bursts (scrubbing through a game, changing strength, starting over), so
every analysis request is stamped with a generation number. A newer request
bumps the generation, asks the engine to ``stop``, waits for the search to
end and then for exclusive access; whatever an older request produces
afterwards can still be returned to its caller but is never published.

All state here is touched from a single asyncio event loop. The
check-then-act pairs on ``_generation`` and ``_busy`` are only safe because
nothing else can run between them.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import TYPE_CHECKING, Any

import chess

from kibitz.analysis.models import (
    LoadOutcome,
    ResultStatus,
    Suggestion,
    SuggestionResult,
    SuggestionState,
    rank_suggestions,
)
from kibitz.analysis.notation import uci_to_san
from kibitz.engine import uci
from kibitz.engine.cache import SuggestionCache
from kibitz.engine.readiness import ReadinessGate
from kibitz.errors import EngineUnavailableError

if TYPE_CHECKING:
    from kibitz.engine.transport import LineTransport

_LOGGER = logging.getLogger(__name__)

StateCallback = Callable[[SuggestionState], None]
InfoHandler = Callable[[str], None]

LOAD_ERROR_MESSAGE = "Unable to fetch suggestions."


class RequestCoordinator:
    """Single owner of the engine's busy flag and the request generation."""

    __slots__ = (
        "_transport",
        "_gate",
        "_cache",
        "_think_time_ms",
        "_line_count",
        "_on_change",
        "_generation",
        "_busy",
        "_lock",
        "_idle",
        "_info_handler",
        "_bestmove_waiter",
        "_focus",
        "_state",
        "_uci_ok",
        "_retired",
    )

    def __init__(
        self,
        transport: LineTransport,
        *,
        cache: SuggestionCache | None = None,
        think_time_ms: int = 1200,
        line_count: int = 3,
        on_change: StateCallback | None = None,
    ) -> None:
        self._transport = transport
        self._gate = ReadinessGate(transport)
        self._cache = cache if cache is not None else SuggestionCache()
        self._think_time_ms = think_time_ms
        self._line_count = line_count
        self._on_change = on_change

        self._generation = 0
        self._busy = False
        self._lock = asyncio.Lock()
        self._idle = asyncio.Event()
        self._idle.set()
        self._info_handler: InfoHandler | None = None
        self._bestmove_waiter: asyncio.Future[str] | None = None

        self._focus: str | None = None
        self._state = SuggestionState()
        self._uci_ok = False
        self._retired = False

        transport.set_line_handler(self.handle_line)

    # ── Read-only views ──────────────────────────────────────────────────

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def uci_ok(self) -> bool:
        return self._uci_ok

    @property
    def cache(self) -> SuggestionCache:
        return self._cache

    @property
    def state(self) -> SuggestionState:
        return self._state

    @property
    def is_available(self) -> bool:
        return not self._retired and self._transport.is_alive

    # ── Generation / exclusivity API ─────────────────────────────────────

    def begin_generation(self) -> int:
        """Start a new generation; every older in-flight request becomes stale."""
        self._generation += 1
        _LOGGER.debug("Analysis generation -> %d", self._generation)
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[None]:
        """Hold the engine for one readiness -> position -> go -> bestmove cycle.

        Raises:
            EngineUnavailableError: the coordinator was retired while waiting.
        """
        async with self._lock:
            if self._retired:
                raise EngineUnavailableError("Engine was replaced or shut down")
            yield

    async def wait_idle(self) -> None:
        await self._idle.wait()

    async def wait_ready(self) -> None:
        await self._gate.wait_ready()

    def send(self, command: str) -> None:
        """Send a fire-and-forget command (options, ``ucinewgame``)."""
        if self._retired:
            return
        self._transport.send(command)

    def stop_search(self) -> None:
        if self._busy:
            self.send(uci.STOP)

    # ── Inbound lines ────────────────────────────────────────────────────

    def handle_line(self, line: str) -> None:
        if self._retired:
            return
        if line == uci.READYOK:
            self._gate.notify_ready()
            return
        if line == uci.UCIOK:
            self._uci_ok = True
            return
        if line.startswith("info"):
            handler = self._info_handler
            if handler is not None:
                handler(line)
            return
        if line.startswith("bestmove"):
            waiter = self._bestmove_waiter
            self._bestmove_waiter = None
            self._info_handler = None
            if waiter is not None and not waiter.done():
                waiter.set_result(line)
            return
        _LOGGER.debug("Ignoring engine line: %s", line)

    # ── Requests ─────────────────────────────────────────────────────────

    async def request_best_move(self, fen: str) -> chess.Move | None:
        """Ask for the single best move in *fen*."""
        if not self.is_available:
            return None
        async with self.exclusive():
            await self._gate.wait_ready()
            self.send(uci.position_fen(fen))
            line = await self._search()
        return uci.parse_bestmove(line)

    async def request_ranked_suggestions(
        self,
        fen: str,
        line_count: int,
        generation: int | None = None,
    ) -> SuggestionResult:
        """Ask for *line_count* ranked lines in *fen*.

        With a *generation*, a request that is already stale returns an empty
        superseded result without touching the engine.
        """
        if generation is not None and not self.is_current(generation):
            return SuggestionResult(fen, (), ResultStatus.SUPERSEDED)
        if not self.is_available:
            return SuggestionResult(fen, (), ResultStatus.FRESH)
        async with self.exclusive():
            return await self._ranked_search(fen, line_count, generation)

    async def load_suggestions(self, fen: str) -> LoadOutcome:
        """Publish ranked suggestions for *fen*, from cache or from the engine."""
        if not self.is_available:
            self._publish(loading=False)
            return LoadOutcome.UNAVAILABLE

        cached = self._cache.get(fen)
        if cached is not None:
            _LOGGER.debug("Suggestion cache hit: %s", fen)
            self._focus = fen
            self._publish(position=fen, suggestions=cached, loading=False, error=None)
            return LoadOutcome.CACHED

        generation = self.begin_generation()
        self._focus = fen
        self._publish(position=fen, suggestions=(), loading=True, error=None)

        self.stop_search()
        # Set by the bestmove that ends a stopped search.
        await self.wait_idle()
        try:
            async with self.exclusive():
                # A newer request arrived while we waited for the engine.
                if not self.is_current(generation):
                    return LoadOutcome.ABANDONED
                result = await self._ranked_search(fen, self._line_count, generation)
        except EngineUnavailableError:
            return LoadOutcome.UNAVAILABLE
        except Exception:
            _LOGGER.exception("Suggestion request failed for %s", fen)
            if self._owns_output(generation, fen):
                self._publish(loading=False, error=LOAD_ERROR_MESSAGE)
            return LoadOutcome.FAILED

        if not result.is_fresh:
            return LoadOutcome.SUPERSEDED

        self._cache.set(fen, result.suggestions)
        if self._owns_output(generation, fen):
            self._publish(suggestions=result.suggestions, loading=False)
        return LoadOutcome.FRESH

    def reset_analysis(self) -> None:
        """Invalidate in-flight analysis and forget all cached suggestions."""
        self.begin_generation()
        self.stop_search()
        self._cache.clear()
        self._focus = None
        self._publish(position=None, suggestions=(), loading=False, error=None)

    def retire(self) -> None:
        """Detach from the engine for good.

        Pending waits are cancelled rather than left to resolve late, and
        lines still arriving from the old process are ignored.
        """
        if self._retired:
            return
        self._retired = True
        self._transport.set_line_handler(None)
        self._gate.abandon()
        waiter, self._bestmove_waiter = self._bestmove_waiter, None
        self._info_handler = None
        if waiter is not None and not waiter.done():
            waiter.cancel()

    # ── Internals ────────────────────────────────────────────────────────

    async def _ranked_search(
        self,
        fen: str,
        line_count: int,
        generation: int | None,
    ) -> SuggestionResult:
        await self._gate.wait_ready()
        if generation is not None and not self.is_current(generation):
            return SuggestionResult(fen, (), ResultStatus.SUPERSEDED)

        self.send(uci.set_option("MultiPV", line_count))
        self.send(uci.position_fen(fen))

        lines: dict[int, Suggestion] = {}

        def on_info(line: str) -> None:
            parsed = uci.parse_ranked_line(line)
            if parsed is None:
                return
            try:
                move = chess.Move.from_uci(parsed.uci)
            except ValueError:
                _LOGGER.debug("Dropping info line with bad move: %s", line)
                return
            lines[parsed.rank] = Suggestion(
                move=move,
                san=uci_to_san(fen, parsed.uci),
                score=parsed.score,
                rank=parsed.rank,
            )

        await self._search(on_info)
        suggestions = rank_suggestions(lines.values())

        if generation is not None and not self.is_current(generation):
            return SuggestionResult(fen, suggestions, ResultStatus.SUPERSEDED)

        await self._gate.wait_ready()
        self.send(uci.set_option("MultiPV", 1))
        return SuggestionResult(fen, suggestions, ResultStatus.FRESH)

    async def _search(self, on_info: InfoHandler | None = None) -> str:
        """Issue ``go`` and wait for its terminating ``bestmove`` line."""
        assert not self._busy, "a go command is already outstanding"
        waiter: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        self._bestmove_waiter = waiter
        self._info_handler = on_info
        self._busy = True
        self._idle.clear()
        self.send(uci.go_movetime(self._think_time_ms))
        try:
            return await waiter
        finally:
            self._busy = False
            self._idle.set()
            if self._bestmove_waiter is waiter:
                self._bestmove_waiter = None
                self._info_handler = None

    def _owns_output(self, generation: int, fen: str) -> bool:
        return self.is_current(generation) and self._focus == fen

    def _publish(self, **changes: Any) -> None:
        state = replace(self._state, **changes)
        if state == self._state:
            return
        self._state = state
        if self._on_change is not None:
            self._on_change(state)
