"""Configuration management for ampmate."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .session import DEFAULT_PORT


@dataclass
class AmpConfig:
    """Amplifier connection settings."""

    address: str = ""
    port: int = DEFAULT_PORT


@dataclass
class LoggingConfig:
    """Logging settings."""

    level: str = "info"
    file: str = ""


@dataclass
class FollowConfig:
    """Status output formats for ``ampmate follow``."""

    format_volume: str = "{value}"
    format_mute: str = "{value}"


@dataclass
class Config:
    """Full ampmate configuration."""

    amp: AmpConfig = field(default_factory=AmpConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    follow: FollowConfig = field(default_factory=FollowConfig)


def get_config_dir() -> Path:
    """Get the ampmate config directory."""
    if xdg_config := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_config) / "ampmate"
    return Path.home() / ".config" / "ampmate"


def get_state_dir() -> Path:
    """Get the ampmate state directory (for logs)."""
    if xdg_state := os.environ.get("XDG_STATE_HOME"):
        return Path(xdg_state) / "ampmate"
    return Path.home() / ".local" / "state" / "ampmate"


def load_config(path: Path | None = None) -> Config:
    """Load configuration from file.

    Without an explicit path the default location is used and a missing file
    gives the defaults. An explicit path must exist.
    """
    if path is None:
        path = get_config_dir() / "config.toml"
        if not path.exists():
            return Config()

    with open(path, "rb") as f:
        data = tomllib.load(f)

    return Config(
        amp=AmpConfig(**data.get("amp", {})),
        logging=LoggingConfig(**data.get("logging", {})),
        follow=FollowConfig(**data.get("follow", {})),
    )


def get_effective_log_file(config: Config) -> Path:
    """Get log file path, considering config overrides."""
    if config.logging.file:
        return Path(config.logging.file)
    return get_state_dir() / "ampmate.log"


def parse_address(address: str, default_port: int = DEFAULT_PORT) -> tuple[str, int]:
    """Split ``host[:port]`` into host and port.

    IPv6 hosts need brackets when a port is given (``[::1]:9590``); a bare
    IPv6 address always uses the default port.
    """
    if address.startswith("["):
        host, sep, rest = address[1:].partition("]")
        if not sep or not host or (rest and not rest.startswith(":")):
            raise ValueError(f"Invalid amplifier address: {address!r}")
        if not rest:
            return host, default_port
        port = rest[1:]
    elif address.count(":") > 1:
        return address, default_port
    else:
        host, sep, port = address.partition(":")
        if not sep:
            return address, default_port
    if not host or not port.isdigit():
        raise ValueError(f"Invalid amplifier address: {address!r}")
    return host, int(port)
