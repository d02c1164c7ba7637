"""Rotel ASCII protocol - messages and wire codec."""

from .codec import FrameBuffer, decode, encode
from .messages import (
    MAX_VOLUME,
    AbsoluteVolume,
    Change,
    Command,
    Get,
    Mute,
    MuteResponse,
    Power,
    PowerResponse,
    Query,
    Response,
    Set,
    StatusUpdates,
    Toggle,
    UnknownResponse,
    Volume,
    VolumeResponse,
    VolumeStep,
    VolumeValue,
    parse_volume,
)

__all__ = [
    "MAX_VOLUME",
    "Toggle",
    "VolumeStep",
    "AbsoluteVolume",
    "VolumeValue",
    "parse_volume",
    "Query",
    "Mute",
    "Power",
    "Volume",
    "StatusUpdates",
    "Change",
    "Get",
    "Set",
    "Command",
    "PowerResponse",
    "VolumeResponse",
    "MuteResponse",
    "UnknownResponse",
    "Response",
    "encode",
    "decode",
    "FrameBuffer",
]
