"""Awaitable barrier over the ``isready``/``readyok`` handshake."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from kibitz.engine import uci

if TYPE_CHECKING:
    from kibitz.engine.transport import LineTransport


class ReadinessGate:
    """Lets any number of callers wait for the engine's next ``readyok``.

    Every waiter sends its own ``isready``, but a single reply releases all of them:
    the waiter list is swapped out and drained in one step.
    """

    __slots__ = ("_transport", "_waiters")

    def __init__(self, transport: LineTransport | None) -> None:
        self._transport = transport
        self._waiters: list[asyncio.Future[None]] = []

    @property
    def pending(self) -> int:
        return len(self._waiters)

    async def wait_ready(self) -> None:
        transport = self._transport
        if transport is None or not transport.is_alive:
            return
        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        transport.send(uci.ISREADY)
        await waiter

    def notify_ready(self) -> None:
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)

    def abandon(self) -> None:
        """Cancel all waiters; used when the engine behind this gate is retired."""
        waiters, self._waiters = self._waiters, []
        self._transport = None
        for waiter in waiters:
            waiter.cancel()
