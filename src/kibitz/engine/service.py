"""Engine process lifecycle: start, strength changes, restart, shutdown."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from typing import TYPE_CHECKING

from kibitz.analysis.models import LoadOutcome
from kibitz.config import EngineSettings
from kibitz.engine import uci
from kibitz.engine.cache import SuggestionCache
from kibitz.engine.coordinator import RequestCoordinator, StateCallback
from kibitz.engine.opponent import request_weak_or_best_move
from kibitz.engine.strength import strength_profile
from kibitz.engine.transport import LineTransport, SubprocessTransport
from kibitz.errors import EngineUnavailableError

if TYPE_CHECKING:
    import chess

_LOGGER = logging.getLogger(__name__)

TransportFactory = Callable[[EngineSettings], LineTransport]


def _subprocess_transport(settings: EngineSettings) -> LineTransport:
    return SubprocessTransport(settings.engine_command)


class EngineService:
    """Owns one engine process and the coordinator talking to it.

    Replacing the engine retires the old coordinator and terminates the old
    transport before anything new is built; nothing bound to the old process
    is ever resolved afterwards.
    """

    __slots__ = (
        "_settings",
        "_transport_factory",
        "_on_change",
        "_rng",
        "_cache",
        "_transport",
        "_coordinator",
        "_rating",
    )

    def __init__(
        self,
        settings: EngineSettings | None = None,
        *,
        transport_factory: TransportFactory | None = None,
        on_change: StateCallback | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._settings = settings or EngineSettings()
        self._transport_factory = transport_factory or _subprocess_transport
        self._on_change = on_change
        self._rng = rng
        self._cache = SuggestionCache()
        self._transport: LineTransport | None = None
        self._coordinator: RequestCoordinator | None = None
        self._rating = self._settings.default_rating

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    @property
    def rating(self) -> int:
        return self._rating

    @property
    def is_running(self) -> bool:
        return self._coordinator is not None and self._coordinator.is_available

    @property
    def cache(self) -> SuggestionCache:
        return self._cache

    @property
    def coordinator(self) -> RequestCoordinator:
        if self._coordinator is None:
            raise EngineUnavailableError("Engine has not been started")
        return self._coordinator

    async def start(self, rating: int | None = None) -> None:
        """Spawn the engine, configure it and wait until it is ready.

        Raises:
            EngineUnavailableError: the process died or never sent ``uciok``.
        """
        if self._coordinator is not None:
            return
        if rating is not None:
            self._rating = rating

        transport = self._transport_factory(self._settings)
        await transport.start()
        coordinator = RequestCoordinator(
            transport,
            cache=self._cache,
            think_time_ms=self._settings.think_time_ms,
            line_count=self._settings.analysis_lines,
            on_change=self._on_change,
        )
        self._transport = transport
        self._coordinator = coordinator

        coordinator.send(uci.UCI)
        coordinator.send(uci.set_option("Threads", self._settings.threads))
        for command in strength_profile(self._rating, self._settings).uci_options():
            coordinator.send(command)
        coordinator.send(uci.UCINEWGAME)
        await coordinator.wait_ready()
        # Replies arrive in order, so uciok must have preceded readyok.
        if not coordinator.uci_ok:
            await self._teardown()
            raise EngineUnavailableError("Engine did not complete the UCI handshake")
        _LOGGER.info("Engine ready (rating %d)", self._rating)

    async def apply_rating(self, rating: int) -> None:
        """Reconfigure strength between searches."""
        self._rating = rating
        coordinator = self.coordinator
        async with coordinator.exclusive():
            for command in strength_profile(rating, self._settings).uci_options():
                coordinator.send(command)
            await coordinator.wait_ready()

    async def restart(self, rating: int | None = None) -> None:
        """Replace the engine process with a fresh one."""
        _LOGGER.info("Restarting engine")
        await self._teardown()
        self._cache.clear()
        await self.start(rating)

    async def shutdown(self) -> None:
        await self._teardown()
        _LOGGER.info("Engine shut down")

    async def load_suggestions(self, fen: str) -> LoadOutcome:
        if self._coordinator is None:
            return LoadOutcome.UNAVAILABLE
        return await self._coordinator.load_suggestions(fen)

    async def request_move(self, fen: str, rating: int | None = None) -> chess.Move | None:
        """Pick the opponent's move in *fen* at *rating* (default: current)."""
        return await request_weak_or_best_move(
            self.coordinator,
            fen,
            self._rating if rating is None else rating,
            settings=self._settings,
            rng=self._rng,
        )

    def reset_analysis(self) -> None:
        if self._coordinator is not None:
            self._coordinator.reset_analysis()
        else:
            self._cache.clear()

    async def _teardown(self) -> None:
        coordinator, self._coordinator = self._coordinator, None
        transport, self._transport = self._transport, None
        if coordinator is not None:
            coordinator.retire()
        if transport is not None:
            await transport.terminate()
