"""Duplex session with the amplifier."""

from __future__ import annotations

import asyncio
import logging
import socket
from dataclasses import dataclass
from enum import Enum

from .errors import (
    ConnectError,
    ConnectionLost,
    FrameDecodeError,
    SessionError,
    TerminationReason,
)
from .protocol.codec import FrameBuffer, decode, encode
from .protocol.messages import Command, Response

_logger = logging.getLogger("ampmate.session")

DEFAULT_PORT = 9590
QUEUE_CAPACITY = 8
READ_CHUNK_SIZE = 1024


class SessionState(str, Enum):
    """Session lifecycle."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    RUNNING = "running"
    TERMINATED = "terminated"


def make_queues(
    capacity: int = QUEUE_CAPACITY,
) -> tuple[asyncio.Queue[Command | None], asyncio.Queue[Response]]:
    """Create the bounded (commands, responses) queue pair for a session."""
    return asyncio.Queue(maxsize=capacity), asyncio.Queue(maxsize=capacity)


async def close_queue(queue: asyncio.Queue[Command | None]) -> None:
    """Tell the writer no more commands will follow."""
    await queue.put(None)


@dataclass
class Session:
    """Owns one connection to the amplifier.

    ``run`` pumps commands from an inbound queue to the amplifier and
    responses from the amplifier to an outbound queue until the command queue
    is closed or the connection is lost. ``one_shot`` sends a single command
    and hangs up.
    """

    host: str
    port: int = DEFAULT_PORT
    state: SessionState = SessionState.DISCONNECTED
    termination: TerminationReason | None = None

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    async def run(
        self,
        inbound: asyncio.Queue[Command | None],
        outbound: asyncio.Queue[Response],
    ) -> TerminationReason:
        """Run reader and writer until one of them stops.

        Returns ``GRACEFUL_CLOSE`` once the command queue is closed.

        Raises:
            ConnectError: the amplifier is unreachable.
            ConnectionLost: the connection dropped while running.
        """
        self.state = SessionState.CONNECTING
        self.termination = None
        try:
            reader, writer = await self._connect()
        except ConnectError:
            self._terminate(TerminationReason.CONNECT_ERROR)
            raise

        self.state = SessionState.RUNNING
        tasks = {
            asyncio.create_task(self._read_loop(reader, outbound), name="amp-reader"),
            asyncio.create_task(self._write_loop(writer, inbound), name="amp-writer"),
        }
        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        finally:
            try:
                await cancel_tasks(tasks)
            finally:
                await _close(writer)
                self.state = SessionState.TERMINATED

        for task in done:
            exc = task.exception()
            if exc is not None:
                if isinstance(exc, SessionError):
                    self._terminate(exc.reason)
                    _logger.error(f"Session with {self.address} ended: {exc}")
                raise exc

        self._terminate(TerminationReason.GRACEFUL_CLOSE)
        _logger.info(f"Session with {self.address} closed")
        return TerminationReason.GRACEFUL_CLOSE

    async def one_shot(self, command: Command) -> None:
        """Send a single command without waiting for any reply."""
        payload = encode(command)
        self.state = SessionState.CONNECTING
        self.termination = None
        try:
            _, writer = await self._connect()
        except ConnectError:
            self._terminate(TerminationReason.CONNECT_ERROR)
            raise

        self.state = SessionState.RUNNING
        try:
            await self._send(writer, payload)
        except ConnectionLost:
            self._terminate(TerminationReason.CONNECTION_LOST)
            raise
        finally:
            await _close(writer)
            self.state = SessionState.TERMINATED
        self._terminate(TerminationReason.GRACEFUL_CLOSE)

    def _terminate(self, reason: TerminationReason) -> None:
        self.state = SessionState.TERMINATED
        self.termination = reason

    async def _connect(self) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        try:
            reader, writer = await asyncio.open_connection(self.host, self.port)
        except OSError as e:
            raise ConnectError(f"Cannot connect to {self.address}: {e}") from e

        # Status feedback is latency sensitive, never coalesce writes
        sock = writer.get_extra_info("socket")
        if sock is not None:
            try:
                sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            except OSError as e:
                await _close(writer)
                raise ConnectError(f"Cannot configure socket: {e}") from e

        _logger.info(f"Connected to {self.address}")
        return reader, writer

    async def _send(self, writer: asyncio.StreamWriter, payload: bytes) -> None:
        try:
            writer.write(payload)
            await writer.drain()
        except OSError as e:
            raise ConnectionLost(f"Write to {self.address} failed: {e}") from e
        _logger.debug(f"Sent {payload!r}")

    async def _read_loop(
        self,
        reader: asyncio.StreamReader,
        outbound: asyncio.Queue[Response],
    ) -> None:
        """Read frames from the amplifier and pass the responses on.

        A read returning no data means the peer closed the connection.
        """
        _logger.debug("Started reader")
        frames = FrameBuffer()
        while True:
            try:
                data = await reader.read(READ_CHUNK_SIZE)
            except OSError as e:
                raise ConnectionLost(f"Read from {self.address} failed: {e}") from e
            if not data:
                raise ConnectionLost(f"Connection closed by {self.address}")

            for frame in frames.feed(data):
                try:
                    response = decode(frame)
                except FrameDecodeError as e:
                    _logger.warning(f"Received unexpected message from amp: {e}")
                    continue
                _logger.debug(f"Received {response}")
                await outbound.put(response)

    async def _write_loop(
        self,
        writer: asyncio.StreamWriter,
        inbound: asyncio.Queue[Command | None],
    ) -> None:
        """Send queued commands until the queue is closed."""
        _logger.debug("Started writer")
        while True:
            command = await inbound.get()
            if command is None:
                _logger.debug("Command queue closed")
                return
            await self._send(writer, encode(command))


async def cancel_tasks(tasks: set[asyncio.Task]) -> None:
    """Cancel unfinished tasks and wait for them to stop.

    A cancellation of the calling task while waiting propagates.
    """
    pending = [task for task in tasks if not task.done()]
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.wait(pending)


async def _close(writer: asyncio.StreamWriter) -> None:
    writer.close()
    try:
        await writer.wait_closed()
    except OSError as e:
        _logger.debug(f"Error while closing connection: {e}")
