"""Status output formatting for the CLI."""

from __future__ import annotations

from dataclasses import dataclass

from ..protocol.messages import AbsoluteVolume, Toggle

VALUE_PLACEHOLDER = "{value}"


@dataclass(frozen=True)
class OutputFormatter:
    """Wraps a value in fixed text, e.g. polybar color tags.

    Built from a format string containing ``{value}``; everything before and
    after the placeholder is kept verbatim, so other braces need no escaping.
    """

    before: str
    after: str

    @classmethod
    def parse(cls, fmt: str) -> OutputFormatter:
        before, sep, after = fmt.partition(VALUE_PLACEHOLDER)
        if not sep:
            raise ValueError(f"Format must contain `{VALUE_PLACEHOLDER}`: {fmt!r}")
        return cls(before=before, after=after)

    def format(self, value: object) -> str:
        return f"{self.before}{value}{self.after}"


@dataclass(frozen=True)
class AmpStatus:
    """Last known amplifier state shown in the status bar."""

    volume: AbsoluteVolume
    mute: Toggle


def format_status(
    status: AmpStatus,
    volume_format: OutputFormatter,
    mute_format: OutputFormatter,
) -> str:
    """Format status for display. Muted amps use the mute format."""
    formatter = mute_format if status.mute is Toggle.ON else volume_format
    return formatter.format(status.volume)
