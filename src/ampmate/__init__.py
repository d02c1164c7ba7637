"""ampmate - Rotel amplifier client for status bars and scripts."""

from .errors import (
    AmpMateError,
    ConnectError,
    ConnectionLost,
    FrameDecodeError,
    SessionError,
    TerminationReason,
    ValidationError,
)
from .session import QUEUE_CAPACITY, Session, SessionState, close_queue, make_queues

__version__ = "0.1.0"

__all__ = [
    "Session",
    "SessionState",
    "TerminationReason",
    "QUEUE_CAPACITY",
    "make_queues",
    "close_queue",
    "AmpMateError",
    "ValidationError",
    "FrameDecodeError",
    "SessionError",
    "ConnectError",
    "ConnectionLost",
]
