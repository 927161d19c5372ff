"""Qt bridge that runs the engine service on a background asyncio loop."""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from collections.abc import Callable, Coroutine
from typing import Any

from PyQt6.QtCore import QObject, pyqtSignal

from kibitz.config import EngineSettings
from kibitz.engine.service import EngineService, TransportFactory

_LOGGER = logging.getLogger(__name__)


class EngineBridge(QObject):
    """Thread-hosted engine service with results delivered as Qt signals.

    All engine work happens on one private event loop, so the coordinator's
    single-threaded assumptions hold no matter which thread calls in.
    Move requests are stamped with increasing ids; only the latest one is
    reported.
    """

    engine_ready = pyqtSignal()
    engine_failed = pyqtSignal(str)
    suggestions_changed = pyqtSignal(object)  # SuggestionState
    best_move_ready = pyqtSignal(int, object)  # request_id, chess.Move | None
    request_failed = pyqtSignal(int, str)  # request_id, message

    _SHUTDOWN_TIMEOUT_S = 3.0

    __slots__ = (
        "_service",
        "_loop",
        "_thread",
        "_move_request_id",
        "_pending_move_request",
        "_is_started",
    )

    def __init__(
        self,
        settings: EngineSettings | None = None,
        *,
        transport_factory: TransportFactory | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._service = EngineService(
            settings,
            transport_factory=transport_factory,
            on_change=self.suggestions_changed.emit,
        )
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._move_request_id = 0
        self._pending_move_request: int | None = None
        self._is_started = False

    @property
    def is_started(self) -> bool:
        return self._is_started

    def setup(self, rating: int | None = None) -> None:
        """Start the loop thread and boot the engine."""
        if self._is_started:
            return
        loop = asyncio.new_event_loop()
        thread = threading.Thread(
            target=self._run_loop,
            args=(loop,),
            name="kibitz-engine",
            daemon=True,
        )
        thread.start()
        self._loop = loop
        self._thread = thread
        self._is_started = True
        self._submit(self._service.start(rating), self._on_started)

    def shutdown(self) -> None:
        """Stop the engine and the loop thread."""
        if not self._is_started:
            return
        self._is_started = False
        self._pending_move_request = None
        loop, thread = self._loop, self._thread
        assert loop is not None and thread is not None

        future = asyncio.run_coroutine_threadsafe(self._shutdown_async(), loop)
        try:
            future.result(self._SHUTDOWN_TIMEOUT_S)
        except concurrent.futures.TimeoutError:
            _LOGGER.warning("Engine shutdown timed out")
        loop.call_soon_threadsafe(loop.stop)
        thread.join(self._SHUTDOWN_TIMEOUT_S)
        if not thread.is_alive():
            loop.close()
        self._loop = None
        self._thread = None

    def load_suggestions(self, fen: str) -> None:
        if self._is_started:
            self._submit(self._service.load_suggestions(fen))

    def reset_analysis(self) -> None:
        if self._is_started and self._loop is not None:
            self._loop.call_soon_threadsafe(self._service.reset_analysis)

    def apply_rating(self, rating: int) -> None:
        if self._is_started:
            self._submit(self._service.apply_rating(rating))

    def restart(self, rating: int | None = None) -> None:
        if self._is_started:
            self.cancel_move_request()
            self._submit(self._service.restart(rating), self._on_started)

    def request_move(self, fen: str, rating: int | None = None) -> int | None:
        """Ask for the opponent's move; the result arrives on ``best_move_ready``."""
        if not self._is_started:
            return None
        self._move_request_id += 1
        request_id = self._move_request_id
        self._pending_move_request = request_id
        self._submit(
            self._service.request_move(fen, rating),
            lambda future: self._on_move_done(request_id, future),
        )
        return request_id

    def cancel_move_request(self) -> None:
        self._pending_move_request = None

    # ── Loop thread ──────────────────────────────────────────────────────

    @staticmethod
    def _run_loop(loop: asyncio.AbstractEventLoop) -> None:
        asyncio.set_event_loop(loop)
        loop.run_forever()

    async def _shutdown_async(self) -> None:
        await self._service.shutdown()
        current = asyncio.current_task()
        leftovers = [task for task in asyncio.all_tasks() if task is not current]
        for task in leftovers:
            task.cancel()
        await asyncio.gather(*leftovers, return_exceptions=True)

    def _submit(
        self,
        coro: Coroutine[Any, Any, Any],
        on_done: Callable[[concurrent.futures.Future[Any]], None] | None = None,
    ) -> None:
        assert self._loop is not None
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        future.add_done_callback(on_done or self._log_failure)

    # ── Completion callbacks (run on the loop thread) ────────────────────

    def _on_started(self, future: concurrent.futures.Future[Any]) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            _LOGGER.error("Engine failed to start: %s", exc)
            self.engine_failed.emit(str(exc))
            return
        self.engine_ready.emit()

    def _on_move_done(
        self,
        request_id: int,
        future: concurrent.futures.Future[Any],
    ) -> None:
        if future.cancelled() or request_id != self._pending_move_request:
            return
        self._pending_move_request = None
        exc = future.exception()
        if exc is not None:
            _LOGGER.error("Move request %d failed: %s", request_id, exc)
            self.request_failed.emit(request_id, str(exc))
            return
        self.best_move_ready.emit(request_id, future.result())

    @staticmethod
    def _log_failure(future: concurrent.futures.Future[Any]) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            _LOGGER.error("Engine task failed: %s", exc)
