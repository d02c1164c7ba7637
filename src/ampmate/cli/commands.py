"""CLI command implementations."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import signal
import sys
from typing import TextIO

from ..config import Config, get_effective_log_file
from ..errors import TerminationReason
from ..protocol.messages import (
    AbsoluteVolume,
    Change,
    Command,
    Get,
    Mute,
    MuteResponse,
    Power,
    Query,
    Response,
    Set,
    StatusUpdates,
    Toggle,
    Volume,
    VolumeResponse,
    VolumeStep,
    VolumeValue,
)
from ..session import Session, cancel_tasks, make_queues
from .output import AmpStatus, OutputFormatter, format_status

_logger = logging.getLogger("ampmate.follow")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(config: Config) -> None:
    """Set up logging to file and stderr. stdout is kept for status output."""
    log_file = get_effective_log_file(config)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    level = getattr(logging, config.logging.level.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    # File handler
    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger("ampmate")
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(level)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)


def build_change(
    volume: VolumeValue | None = None,
    mute: Toggle | None = None,
    power: Toggle | None = None,
) -> Change:
    """Build the single change requested on the command line."""
    changes: list[Change] = []
    if volume is not None:
        changes.append(Volume(volume))
    if mute is not None:
        changes.append(Mute(mute))
    if power is not None:
        changes.append(Power(power))
    if len(changes) != 1:
        raise ValueError("Exactly one of volume, mute or power is required")
    return changes[0]


class StatusFollower:
    """Keeps the last known volume and mute state and prints every change."""

    def __init__(
        self,
        commands: asyncio.Queue[Command | None],
        responses: asyncio.Queue[Response],
        volume_format: OutputFormatter,
        mute_format: OutputFormatter,
        out: TextIO | None = None,
    ):
        self.commands = commands
        self.responses = responses
        self.volume_format = volume_format
        self.mute_format = mute_format
        self.out = out

    async def query_status(self) -> AmpStatus:
        """Ask for volume and mute and wait until both are known."""
        await self.commands.put(Set(StatusUpdates(Toggle.ON)))
        await self.commands.put(Get(Query.VOLUME))
        await self.commands.put(Get(Query.MUTE))

        volume: AbsoluteVolume | None = None
        mute: Toggle | None = None
        while volume is None or mute is None:
            response = await self.responses.get()
            if isinstance(response, VolumeResponse) and isinstance(
                response.value, AbsoluteVolume
            ):
                volume = response.value
            elif isinstance(response, MuteResponse):
                mute = response.state
        return AmpStatus(volume=volume, mute=mute)

    @staticmethod
    def apply(status: AmpStatus, response: Response) -> AmpStatus:
        """Return the status updated with a response."""
        if isinstance(response, VolumeResponse) and isinstance(
            response.value, AbsoluteVolume
        ):
            return dataclasses.replace(status, volume=response.value)
        if isinstance(response, MuteResponse):
            return dataclasses.replace(status, mute=response.state)
        return status

    def print_status(self, status: AmpStatus) -> None:
        line = format_status(status, self.volume_format, self.mute_format)
        print(line, file=self.out or sys.stdout, flush=True)

    async def run(self) -> None:
        status = await self.query_status()
        self.print_status(status)
        while True:
            response = await self.responses.get()
            updated = self.apply(status, response)
            if updated != status:
                status = updated
                self.print_status(status)


class FollowRunner:
    """Runs a session and a status follower until either stops.

    SIGUSR1 and SIGUSR2 nudge the volume up and down. SIGINT and SIGTERM close
    the command queue so the session ends gracefully.
    """

    NUDGE_SIGNALS = {signal.SIGUSR1: VolumeStep.UP, signal.SIGUSR2: VolumeStep.DOWN}
    SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT)

    def __init__(self, session: Session, follower: StatusFollower):
        self.session = session
        self.follower = follower
        self._session_task: asyncio.Task | None = None

    @property
    def commands(self) -> asyncio.Queue[Command | None]:
        return self.follower.commands

    def _setup_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig, step in self.NUDGE_SIGNALS.items():
            loop.add_signal_handler(sig, self._nudge_volume, step)
        for sig in self.SHUTDOWN_SIGNALS:
            loop.add_signal_handler(sig, self._signal_shutdown)

    def _remove_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (*self.NUDGE_SIGNALS, *self.SHUTDOWN_SIGNALS):
            loop.remove_signal_handler(sig)

    def _nudge_volume(self, step: VolumeStep) -> None:
        _logger.debug(f"Volume nudge: {step}")
        try:
            self.commands.put_nowait(Set(Volume(step)))
        except asyncio.QueueFull:
            _logger.warning(f"Command queue full, dropping volume {step}")

    def _signal_shutdown(self) -> None:
        _logger.info("Received shutdown signal")
        try:
            self.commands.put_nowait(None)
        except asyncio.QueueFull:
            # Writer is stuck; stop the session outright
            if self._session_task:
                self._session_task.cancel()

    async def run(self) -> TerminationReason:
        """Follow the amplifier until shutdown or connection loss.

        Raises:
            ConnectError: the amplifier is unreachable.
            ConnectionLost: the connection dropped.
        """
        self._setup_signal_handlers()
        self._session_task = asyncio.create_task(
            self.session.run(self.commands, self.follower.responses)
        )
        follower_task = asyncio.create_task(self.follower.run())
        tasks = {self._session_task, follower_task}
        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        finally:
            try:
                await cancel_tasks(tasks)
            finally:
                self._remove_signal_handlers()

        if follower_task.done() and not follower_task.cancelled():
            follower_task.result()
        if self._session_task.cancelled():
            return TerminationReason.GRACEFUL_CLOSE
        return self._session_task.result()


async def follow(
    host: str,
    port: int,
    volume_format: OutputFormatter,
    mute_format: OutputFormatter,
    out: TextIO | None = None,
) -> TerminationReason:
    """Print the amplifier status on every change."""
    commands, responses = make_queues()
    follower = StatusFollower(commands, responses, volume_format, mute_format, out)
    runner = FollowRunner(Session(host, port), follower)
    return await runner.run()


async def one_shot(host: str, port: int, change: Change) -> None:
    """Send a single change to the amplifier."""
    await Session(host, port).one_shot(Set(change))
