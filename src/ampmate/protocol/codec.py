"""Wire codec for the Rotel ASCII protocol.

Frame layout::

    outbound query     <token>?           e.g. ``volume?``
    outbound command   <name>_<value>!    e.g. ``vol_07!``
    inbound status     <key>=<value>$     e.g. ``volume=07$``

Inbound frames end with ``$``, which is never part of a decoded payload.
Outbound messages carry their own end marker (``?`` or ``!``).
"""

from __future__ import annotations

import logging
from typing import Callable

from ..errors import InvalidValue, MalformedFrame, NotText, ValidationError
from .messages import (
    Command,
    Get,
    Mute,
    MuteResponse,
    Power,
    PowerResponse,
    Response,
    Set,
    StatusUpdates,
    Toggle,
    UnknownResponse,
    Volume,
    VolumeResponse,
    parse_volume,
)

_logger = logging.getLogger("ampmate.protocol")

TERMINATOR = b"$"
MAX_FRAME_LENGTH = 256


def encode(command: Command) -> bytes:
    """Encode a command into the bytes sent to the amplifier."""
    if isinstance(command, Get):
        return f"{command.query.value}?".encode("ascii")

    if not isinstance(command, Set):
        raise TypeError(f"Not a command: {command!r}")

    change = command.change
    if isinstance(change, Mute):
        body = f"mute_{change.state.value}"
    elif isinstance(change, Power):
        body = f"power_{change.state.value}"
    elif isinstance(change, Volume):
        body = f"vol_{change.value.token}"
    elif isinstance(change, StatusUpdates):
        body = f"rs232_update_{change.state.value}"
    else:
        raise TypeError(f"Not a change: {change!r}")
    return f"{body}!".encode("ascii")


# Ordered (key, constructor) pairs. Keys not listed decode to UnknownResponse.
RESPONSE_TABLE: tuple[tuple[str, Callable[[str], Response]], ...] = (
    ("power", lambda value: PowerResponse(Toggle.parse(value))),
    ("volume", lambda value: VolumeResponse(parse_volume(value))),
    ("mute", lambda value: MuteResponse(Toggle.parse(value))),
)


def decode(frame: bytes) -> Response:
    """Decode one frame (terminator already stripped) into a response.

    Raises:
        NotText: frame is not UTF-8.
        MalformedFrame: frame has no ``=``.
        InvalidValue: known key with an unacceptable value.
    """
    try:
        text = frame.decode("utf-8")
    except UnicodeDecodeError:
        shown = frame.decode("utf-8", "backslashreplace")
        raise NotText(shown, "Message is not UTF-8") from None

    key, sep, value = text.partition("=")
    if not sep:
        raise MalformedFrame(text, "Message doesn't match key=value")

    for name, build in RESPONSE_TABLE:
        if key == name:
            try:
                return build(value)
            except ValidationError as e:
                raise InvalidValue(text, f"Invalid {name} value ({e})") from e

    return UnknownResponse(text)


class FrameBuffer:
    """Splits a byte stream into ``$``-terminated frames.

    Partial frames are kept until the rest of them arrives. A partial frame
    growing past ``max_length`` is dropped up to its terminator::

        buf = FrameBuffer()
        buf.feed(b"volume=1")      # []
        buf.feed(b"2$mute=on$")    # [b"volume=12", b"mute=on"]
    """

    def __init__(self, max_length: int = MAX_FRAME_LENGTH):
        self.max_length = max_length
        self._buffer = bytearray()
        self._discarding = False

    @property
    def pending(self) -> bytes:
        """Bytes of the incomplete frame received so far."""
        return bytes(self._buffer)

    def feed(self, data: bytes) -> list[bytes]:
        self._buffer.extend(data)
        *frames, rest = self._buffer.split(TERMINATOR)
        if self._discarding:
            if not frames:
                self._buffer.clear()
                return []
            # Tail of the oversized frame
            frames.pop(0)
            self._discarding = False
        if len(rest) > self.max_length:
            _logger.warning(
                f"Dropping frame longer than {self.max_length} bytes: {bytes(rest[:32])!r}..."
            )
            rest = b""
            self._discarding = True
        self._buffer = bytearray(rest)
        return [bytes(frame) for frame in frames if frame]
