"""Line-oriented transport to an external engine process."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Protocol

_LOGGER = logging.getLogger(__name__)

LineHandler = Callable[[str], None]


class LineTransport(Protocol):
    """Bidirectional line channel to exactly one engine process."""

    @property
    def is_alive(self) -> bool: ...

    def send(self, command: str) -> None: ...

    def set_line_handler(self, handler: LineHandler | None) -> None: ...

    async def start(self) -> None: ...

    async def terminate(self) -> None: ...


class SubprocessTransport:
    """Runs an engine binary and exchanges text lines over its stdio.

    One instance maps to one process. Once terminated it stays terminated:
    ``send`` becomes a silent no-op and no further lines are delivered.
    """

    _TERMINATE_TIMEOUT_S = 2.0

    __slots__ = (
        "_command",
        "_handler",
        "_process",
        "_reader_task",
        "_terminated",
    )

    def __init__(self, command: Sequence[str]) -> None:
        if not command:
            raise ValueError("Engine command must not be empty")
        self._command = tuple(command)
        self._handler: LineHandler | None = None
        self._process: asyncio.subprocess.Process | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._terminated = False

    @property
    def is_alive(self) -> bool:
        return (
            not self._terminated
            and self._process is not None
            and self._process.returncode is None
        )

    def set_line_handler(self, handler: LineHandler | None) -> None:
        self._handler = handler

    async def start(self) -> None:
        if self._process is not None or self._terminated:
            return
        _LOGGER.info("Starting engine: %s", " ".join(self._command))
        self._process = await asyncio.create_subprocess_exec(
            *self._command,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
        self._reader_task = asyncio.create_task(self._read_loop())

    def send(self, command: str) -> None:
        if not self.is_alive:
            return
        assert self._process is not None and self._process.stdin is not None
        _LOGGER.debug(">> %s", command)
        try:
            self._process.stdin.write(f"{command}\n".encode())
        except (BrokenPipeError, ConnectionResetError):
            _LOGGER.warning("Engine pipe closed while sending %r", command)
            self._terminated = True

    async def terminate(self) -> None:
        if self._terminated and self._process is None:
            return
        self._terminated = True
        self._handler = None
        process, self._process = self._process, None
        if self._reader_task is not None:
            self._reader_task.cancel()
            self._reader_task = None
        if process is None or process.returncode is not None:
            return

        _LOGGER.info("Terminating engine process %s", process.pid)
        try:
            if process.stdin is not None:
                process.stdin.write(b"quit\n")
                process.stdin.close()
            await asyncio.wait_for(process.wait(), self._TERMINATE_TIMEOUT_S)
        except (BrokenPipeError, ConnectionResetError):
            pass
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()

    async def _read_loop(self) -> None:
        process = self._process
        assert process is not None and process.stdout is not None
        while True:
            raw = await process.stdout.readline()
            if not raw:
                break
            line = raw.decode("utf-8", errors="replace").strip()
            if not line:
                continue
            _LOGGER.debug("<< %s", line)
            handler = self._handler
            if handler is None:
                continue
            try:
                handler(line)
            except Exception:
                _LOGGER.exception("Engine line handler failed on %r", line)

        if not self._terminated:
            _LOGGER.warning("Engine process exited unexpectedly")
            self._terminated = True
