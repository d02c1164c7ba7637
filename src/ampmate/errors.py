"""Exception hierarchy for ampmate."""

from __future__ import annotations

from enum import Enum


class TerminationReason(str, Enum):
    """Why a session stopped."""

    GRACEFUL_CLOSE = "graceful_close"
    CONNECTION_LOST = "connection_lost"
    CONNECT_ERROR = "connect_error"


class AmpMateError(Exception):
    """Base class for all ampmate errors."""


class ValidationError(AmpMateError, ValueError):
    """A domain value could not be constructed."""


class FrameDecodeError(AmpMateError):
    """A frame received from the amplifier could not be decoded.

    Decode errors are recoverable: the offending frame is dropped and the
    reader keeps going.
    """

    def __init__(self, frame: str, message: str):
        super().__init__(f"{message}: {frame!r}")
        self.frame = frame


class NotText(FrameDecodeError):
    """Frame is not valid UTF-8."""


class MalformedFrame(FrameDecodeError):
    """Frame does not follow the ``key=value`` pattern."""


class InvalidValue(FrameDecodeError):
    """Frame key is known but its value is not acceptable."""


class SessionError(AmpMateError):
    """Fatal error ending a session."""

    reason: TerminationReason


class ConnectError(SessionError):
    """The connection to the amplifier could not be established."""

    reason = TerminationReason.CONNECT_ERROR


class ConnectionLost(SessionError):
    """The connection was closed by the peer or failed after connecting."""

    reason = TerminationReason.CONNECTION_LOST
