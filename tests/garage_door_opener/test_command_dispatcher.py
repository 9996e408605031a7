"""Tests for command_dispatcher.py."""

from __future__ import annotations

import pytest
from homeassistant.core import HomeAssistant

from custom_components.garage_door_opener.command_dispatcher import (
    InvalidCommandError,
    RemoteCommandDispatcher,
    hex_to_packet,
    is_valid_command,
    normalize_command,
)

from .conftest import CLOSE_CODE, OPEN_CODE, async_mock_service


class TestHexCodes:
    """Test hex code helpers."""

    def test_normalize_single_code(self):
        """Test a single string becomes a one-element list."""
        assert normalize_command(" 2600 ") == ["2600"]

    def test_normalize_drops_empty_codes(self):
        """Test empty entries are ignored."""
        assert normalize_command(["2600", "", "  ", "2601"]) == ["2600", "2601"]
        assert normalize_command(None) == []
        assert normalize_command("") == []

    def test_hex_to_packet(self):
        """Test conversion to a Broadlink base64 packet."""
        assert hex_to_packet("26000100") == "b64:JgABAA=="

    @pytest.mark.parametrize("code", ["not hex", "abc", ""])
    def test_hex_to_packet_rejects_invalid(self, code):
        """Test invalid hex raises."""
        with pytest.raises(InvalidCommandError):
            hex_to_packet(code)

    def test_is_valid_command(self):
        """Test validation of single and multiple codes."""
        assert is_valid_command(OPEN_CODE) is True
        assert is_valid_command([OPEN_CODE, CLOSE_CODE]) is True
        assert is_valid_command(None) is True
        assert is_valid_command([OPEN_CODE, "zz"]) is False


class TestRemoteCommandDispatcher:
    """Test sending codes through a remote entity."""

    async def test_send_single_code(self, hass: HomeAssistant):
        """Test one code is sent as one packet."""
        calls = async_mock_service(hass, "remote", "send_command")
        dispatcher = RemoteCommandDispatcher(hass, "remote.broadlink")

        await dispatcher.async_send("26000100")

        assert len(calls) == 1
        assert calls[0].data["entity_id"] == "remote.broadlink"
        assert calls[0].data["command"] == ["b64:JgABAA=="]
        assert dispatcher.get_info()["sent_count"] == 1

    async def test_send_multiple_codes(self, hass: HomeAssistant):
        """Test several codes go out in a single call."""
        calls = async_mock_service(hass, "remote", "send_command")
        dispatcher = RemoteCommandDispatcher(hass, "remote.broadlink")

        await dispatcher.async_send([OPEN_CODE, CLOSE_CODE])

        assert len(calls) == 1
        assert len(calls[0].data["command"]) == 2
        assert dispatcher.get_info()["sent_count"] == 2

    async def test_empty_command_sends_nothing(self, hass: HomeAssistant):
        """Test an unconfigured code is skipped."""
        calls = async_mock_service(hass, "remote", "send_command")
        dispatcher = RemoteCommandDispatcher(hass, "remote.broadlink")

        await dispatcher.async_send(None)

        assert calls == []

    async def test_invalid_code_raises(self, hass: HomeAssistant):
        """Test invalid hex is rejected before anything is sent."""
        calls = async_mock_service(hass, "remote", "send_command")
        dispatcher = RemoteCommandDispatcher(hass, "remote.broadlink")

        with pytest.raises(InvalidCommandError):
            await dispatcher.async_send("xyz")

        assert calls == []

    async def test_service_failure_propagates(self, hass: HomeAssistant):
        """Test a failing transport surfaces as an error."""

        async def failing_handler(call):
            raise RuntimeError("transmitter offline")

        hass.services.async_register("remote", "send_command", failing_handler)
        dispatcher = RemoteCommandDispatcher(hass, "remote.broadlink")

        with pytest.raises(RuntimeError):
            await dispatcher.async_send(OPEN_CODE)

        assert dispatcher.get_info()["sent_count"] == 0
