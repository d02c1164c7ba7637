"""Tests for protocol value types."""

from __future__ import annotations

import dataclasses

import pytest

from ampmate.errors import ValidationError
from ampmate.protocol.messages import (
    MAX_VOLUME,
    AbsoluteVolume,
    Get,
    Mute,
    Query,
    Set,
    Toggle,
    Volume,
    VolumeStep,
    parse_volume,
)


class TestToggle:
    """Tests for Toggle."""

    def test_parse(self):
        assert Toggle.parse("on") is Toggle.ON
        assert Toggle.parse("off") is Toggle.OFF

    def test_parse_ignores_case(self):
        assert Toggle.parse("ON") is Toggle.ON
        assert Toggle.parse("Off") is Toggle.OFF

    def test_parse_invalid(self):
        with pytest.raises(ValidationError):
            Toggle.parse("banana")

    def test_str_is_lowercase_wire_form(self):
        assert str(Toggle.ON) == "on"
        assert str(Toggle.OFF) == "off"


class TestAbsoluteVolume:
    """Tests for AbsoluteVolume validation."""

    def test_bounds(self):
        assert AbsoluteVolume(0).level == 0
        assert AbsoluteVolume(MAX_VOLUME).level == MAX_VOLUME

    @pytest.mark.parametrize("level", [-1, MAX_VOLUME + 1, 255])
    def test_out_of_range(self, level):
        with pytest.raises(ValidationError):
            AbsoluteVolume(level)

    @pytest.mark.parametrize("level", [7.0, "7", True, None])
    def test_not_an_integer(self, level):
        with pytest.raises(ValidationError):
            AbsoluteVolume(level)

    def test_token_is_zero_padded(self):
        assert AbsoluteVolume(7).token == "07"
        assert AbsoluteVolume(45).token == "45"

    def test_str(self):
        assert str(AbsoluteVolume(7)) == "7"

    def test_immutable(self):
        volume = AbsoluteVolume(10)
        with pytest.raises(dataclasses.FrozenInstanceError):
            volume.level = 200

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            AbsoluteVolume(255)


class TestVolumeStep:
    def test_tokens(self):
        assert VolumeStep.UP.token == "up"
        assert VolumeStep.DOWN.token == "dwn"

    def test_str(self):
        assert str(VolumeStep.UP) == "up"
        assert str(VolumeStep.DOWN) == "down"


class TestParseVolume:
    """Tests for parse_volume."""

    def test_number(self):
        assert parse_volume("42") == AbsoluteVolume(42)
        assert parse_volume("07") == AbsoluteVolume(7)

    def test_words(self):
        assert parse_volume("up") is VolumeStep.UP
        assert parse_volume("down") is VolumeStep.DOWN
        assert parse_volume("UP") is VolumeStep.UP

    @pytest.mark.parametrize("text", ["999", "-1", "", " 5", "1.5", "loud", "١"])
    def test_invalid(self, text):
        with pytest.raises(ValidationError):
            parse_volume(text)


class TestCommands:
    def test_commands_are_values(self):
        assert Get(Query.MUTE) == Get(Query.MUTE)
        assert Set(Volume(AbsoluteVolume(3))) == Set(Volume(AbsoluteVolume(3)))
        assert Set(Mute(Toggle.ON)) != Set(Mute(Toggle.OFF))

    def test_commands_are_hashable(self):
        assert len({Get(Query.POWER), Get(Query.POWER), Set(Mute(Toggle.ON))}) == 2
