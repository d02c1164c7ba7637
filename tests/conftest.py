"""Pytest configuration and fixtures for ampmate tests."""

from __future__ import annotations

import asyncio
import os
import socket
from pathlib import Path
from typing import AsyncGenerator, Generator

import pytest
import pytest_asyncio


class FakeAmp:
    """Loopback TCP server standing in for the amplifier."""

    def __init__(self):
        self.received = bytearray()
        self.connected = asyncio.Event()
        self.disconnected = asyncio.Event()
        self.port = 0
        self._server: asyncio.Server | None = None
        self._writers: list[asyncio.StreamWriter] = []

    async def start(self) -> None:
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self._server.sockets[0].getsockname()[1]

    async def stop(self) -> None:
        for writer in self._writers:
            writer.close()
        if self._server:
            self._server.close()
            await self._server.wait_closed()

    async def _handle(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        self._writers.append(writer)
        self.connected.set()
        try:
            while data := await reader.read(1024):
                self.received.extend(data)
        except ConnectionError:
            pass
        finally:
            self.disconnected.set()

    async def send(self, data: bytes) -> None:
        """Push bytes to the most recent client."""
        writer = self._writers[-1]
        writer.write(data)
        await writer.drain()

    async def hangup(self) -> None:
        """Close the most recent client connection."""
        writer = self._writers[-1]
        writer.close()
        await writer.wait_closed()

    async def wait_for(self, payload: bytes, timeout: float = 2.0) -> None:
        """Wait until ``payload`` has been received."""

        async def poll() -> None:
            while payload not in self.received:
                await asyncio.sleep(0.01)

        await asyncio.wait_for(poll(), timeout)


@pytest_asyncio.fixture
async def fake_amp() -> AsyncGenerator[FakeAmp, None]:
    """Start a fake amplifier on a free loopback port."""
    amp = FakeAmp()
    await amp.start()
    yield amp
    await amp.stop()


@pytest.fixture
def unused_port() -> int:
    """A loopback port nothing listens on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def temp_state_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """Point XDG_STATE_HOME at a temporary directory."""
    state = tmp_path / "state"
    state.mkdir(parents=True)

    old_env = os.environ.get("XDG_STATE_HOME")
    os.environ["XDG_STATE_HOME"] = str(state)

    yield state / "ampmate"

    if old_env:
        os.environ["XDG_STATE_HOME"] = old_env
    else:
        os.environ.pop("XDG_STATE_HOME", None)


@pytest.fixture
def temp_config_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """Point XDG_CONFIG_HOME at a temporary directory."""
    config = tmp_path / "config"
    config.mkdir(parents=True)

    old_env = os.environ.get("XDG_CONFIG_HOME")
    os.environ["XDG_CONFIG_HOME"] = str(config)

    yield config / "ampmate"

    if old_env:
        os.environ["XDG_CONFIG_HOME"] = old_env
    else:
        os.environ.pop("XDG_CONFIG_HOME", None)
