"""Protocol message definitions for the Rotel ASCII protocol.

Values are immutable: enums for the fixed vocabularies and frozen dataclasses
for everything carrying data. ``Command`` and ``Response`` are plain unions of
those classes; turning them into bytes and back is the codec's job.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from ..errors import ValidationError

# RA-1572 upper bound
MAX_VOLUME = 96


class Toggle(str, Enum):
    """Binary device state."""

    ON = "on"
    OFF = "off"

    @classmethod
    def parse(cls, text: str) -> Toggle:
        """Parse ``on``/``off`` in any letter case."""
        try:
            return cls(text.lower())
        except ValueError:
            raise ValidationError(f"expected 'on' or 'off', got {text!r}") from None

    def __str__(self) -> str:
        return self.value


class VolumeStep(str, Enum):
    """Relative volume change."""

    UP = "up"
    DOWN = "dwn"

    @property
    def token(self) -> str:
        return self.value

    def __str__(self) -> str:
        return "up" if self is VolumeStep.UP else "down"


@dataclass(frozen=True)
class AbsoluteVolume:
    """Absolute volume level, ``0 <= level <= MAX_VOLUME``."""

    level: int

    def __post_init__(self):
        if isinstance(self.level, bool) or not isinstance(self.level, int):
            raise ValidationError(f"volume must be an integer, got {self.level!r}")
        if not 0 <= self.level <= MAX_VOLUME:
            raise ValidationError(
                f"volume {self.level} out of range 0-{MAX_VOLUME}"
            )

    @property
    def token(self) -> str:
        return f"{self.level:02d}"

    def __str__(self) -> str:
        return str(self.level)


VolumeValue = Union[AbsoluteVolume, VolumeStep]

_VOLUME_WORDS = {"up": VolumeStep.UP, "down": VolumeStep.DOWN}


def parse_volume(text: str) -> VolumeValue:
    """Parse a volume value as the amplifier reports it.

    Accepts a decimal level or the words ``up``/``down``.
    """
    word = _VOLUME_WORDS.get(text.lower())
    if word is not None:
        return word
    if not (text.isascii() and text.isdigit()):
        raise ValidationError(f"invalid volume {text!r}")
    return AbsoluteVolume(int(text))


class Query(str, Enum):
    """Feedback requests. They never change the amplifier's state."""

    POWER = "power"
    VOLUME = "volume"
    SOURCE = "source"
    MUTE = "mute"
    FREQUENCY = "freq"
    SPEAKER = "speaker"
    DIMMER = "dimmer"
    VERSION = "version"
    MODEL = "model"


# Changes


@dataclass(frozen=True)
class Mute:
    """Mute or unmute the outputs."""

    state: Toggle


@dataclass(frozen=True)
class Power:
    """Switch the amplifier on or to standby."""

    state: Toggle


@dataclass(frozen=True)
class Volume:
    """Set the volume to a level or nudge it one step."""

    value: VolumeValue


@dataclass(frozen=True)
class StatusUpdates:
    """Enable or disable unsolicited status frames from the amplifier."""

    state: Toggle


Change = Union[Mute, Power, Volume, StatusUpdates]


# Commands


@dataclass(frozen=True)
class Get:
    """Query command."""

    query: Query


@dataclass(frozen=True)
class Set:
    """State-changing command."""

    change: Change


Command = Union[Get, Set]


# Responses


@dataclass(frozen=True)
class PowerResponse:
    state: Toggle


@dataclass(frozen=True)
class VolumeResponse:
    value: VolumeValue


@dataclass(frozen=True)
class MuteResponse:
    state: Toggle


@dataclass(frozen=True)
class UnknownResponse:
    """Well-formed frame with a key this client does not interpret."""

    raw: str


Response = Union[PowerResponse, VolumeResponse, MuteResponse, UnknownResponse]
