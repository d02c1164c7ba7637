"""ampmate CLI main entry point."""

from __future__ import annotations

import asyncio
import sys
import tomllib
from pathlib import Path

import click

from ..config import load_config, parse_address
from ..errors import SessionError, ValidationError
from ..protocol.messages import MAX_VOLUME, Toggle, parse_volume
from . import commands
from .output import OutputFormatter

LOG_LEVELS = ["debug", "info", "warning", "error"]


def _volume_option(ctx, param, value: str | None):
    if value is None:
        return None
    try:
        return parse_volume(value)
    except ValidationError as e:
        raise click.BadParameter(str(e)) from e


def _toggle_option(ctx, param, value: str | None):
    if value is None:
        return None
    return Toggle.parse(value)


def _format_option(value: str, name: str) -> OutputFormatter:
    try:
        return OutputFormatter.parse(value)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint=name) from e


def _resolve_address(ctx) -> tuple[str, int]:
    config = ctx.obj["config"]
    if not config.amp.address:
        raise click.UsageError(
            "No amplifier address, use --amp or set amp.address in the config file"
        )
    try:
        return parse_address(config.amp.address, config.amp.port)
    except ValueError as e:
        raise click.UsageError(str(e)) from e


@click.group()
@click.option("--amp", "-a", metavar="HOST[:PORT]", help="Amplifier address")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Config file (default: ~/.config/ampmate/config.toml)",
)
@click.option(
    "--log-level", type=click.Choice(LOG_LEVELS, case_sensitive=False), help="Log level"
)
@click.pass_context
def cli(ctx, amp: str | None, config_path: Path | None, log_level: str | None):
    """ampmate - Rotel amplifier control.

    Follows the amplifier state for status bars and sends one-off commands.
    """
    try:
        config = load_config(config_path)
    except (tomllib.TOMLDecodeError, TypeError) as e:
        raise click.UsageError(f"Invalid config file: {e}") from e

    if amp:
        config.amp.address = amp
    if log_level:
        config.logging.level = log_level

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@cli.command("follow")
@click.option("--format-volume", "-v", metavar="FORMAT", help="Volume format")
@click.option("--format-mute", "-m", metavar="FORMAT", help="Mute format")
@click.pass_context
def follow(ctx, format_volume: str | None, format_mute: str | None):
    """Follow amp output.

    Prints the volume on every change. FORMAT must contain {value}. The mute
    format is used while the amplifier is muted.
    """
    config = ctx.obj["config"]
    host, port = _resolve_address(ctx)
    volume_format = _format_option(
        format_volume or config.follow.format_volume, "--format-volume"
    )
    mute_format = _format_option(
        format_mute or config.follow.format_mute, "--format-mute"
    )

    commands.setup_logging(config)
    try:
        asyncio.run(commands.follow(host, port, volume_format, mute_format))
    except SessionError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


@cli.command("one-shot")
@click.option(
    "--volume", "-v", metavar="VOLUME", callback=_volume_option,
    help=f"Set volume (0-{MAX_VOLUME}, up, down)",
)
@click.option(
    "--mute", "-m", type=click.Choice(["on", "off"], case_sensitive=False),
    callback=_toggle_option, help="Set mute",
)
@click.option(
    "--power", "-p", type=click.Choice(["on", "off"], case_sensitive=False),
    callback=_toggle_option, help="Set power",
)
@click.pass_context
def one_shot(ctx, volume, mute, power):
    """Send a command and quit."""
    try:
        change = commands.build_change(volume=volume, mute=mute, power=power)
    except ValueError as e:
        raise click.UsageError(str(e)) from e
    host, port = _resolve_address(ctx)

    commands.setup_logging(ctx.obj["config"])
    try:
        asyncio.run(commands.one_shot(host, port, change))
    except SessionError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
