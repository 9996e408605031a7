"""Command dispatch for the garage door opener.

The door and lock are driven by learned IR/RF codes stored as hex strings.
Dispatchers turn those codes into whatever the transport needs and send them.
The default transport is a Broadlink ``remote`` entity, which accepts raw
packets as ``b64:``-prefixed base64 strings.
"""

from __future__ import annotations

import base64
import logging
from abc import ABC, abstractmethod
from typing import Any

from homeassistant.components.remote import (
    ATTR_COMMAND,
    DOMAIN as REMOTE_DOMAIN,
    SERVICE_SEND_COMMAND,
)
from homeassistant.const import ATTR_ENTITY_ID
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError

_LOGGER = logging.getLogger(__name__)

HexCommand = str | list[str] | None


class InvalidCommandError(HomeAssistantError):
    """Error to indicate a code is not valid hex data."""


def normalize_command(command: HexCommand) -> list[str]:
    """Return a command as a list of non-empty hex strings."""
    if command is None:
        return []
    if isinstance(command, str):
        command = [command]
    return [code.strip() for code in command if code and code.strip()]


def hex_to_packet(code: str) -> str:
    """Convert a hex code to a Broadlink ``b64:`` packet.

    Raises:
        InvalidCommandError: if ``code`` is not valid hex data
    """
    try:
        raw = bytes.fromhex(code)
    except ValueError as err:
        raise InvalidCommandError(f"Invalid hex code: {code[:16]}...") from err
    if not raw:
        raise InvalidCommandError("Empty hex code")
    return "b64:" + base64.b64encode(raw).decode("ascii")


def is_valid_command(command: HexCommand) -> bool:
    """Check that every code in a command is valid hex data."""
    try:
        for code in normalize_command(command):
            hex_to_packet(code)
    except InvalidCommandError:
        return False
    return True


class CommandDispatcher(ABC):
    """Abstract base class for command transports.

    Implement this interface to drive the door through something other than
    a Broadlink remote (a script, an MQTT publish, a relay switch, ...).
    """

    @abstractmethod
    async def async_send(self, command: HexCommand) -> None:
        """Send a command and return once the transport acknowledged it.

        Transport failures must raise.
        """


class RemoteCommandDispatcher(CommandDispatcher):
    """Send hex codes through a Home Assistant ``remote`` entity."""

    def __init__(self, hass: HomeAssistant, remote_entity_id: str):
        """Initialize with the remote entity that transmits the codes."""
        self.hass = hass
        self.remote_entity_id = remote_entity_id
        self._sent_count = 0

    async def async_send(self, command: HexCommand) -> None:
        """Send one or more hex codes in a single blocking service call."""
        codes = normalize_command(command)
        if not codes:
            _LOGGER.warning(
                "No code configured for %s, nothing sent", self.remote_entity_id
            )
            return

        packets = [hex_to_packet(code) for code in codes]
        _LOGGER.debug(
            "Sending %d packet(s) through %s", len(packets), self.remote_entity_id
        )
        await self.hass.services.async_call(
            REMOTE_DOMAIN,
            SERVICE_SEND_COMMAND,
            {ATTR_ENTITY_ID: self.remote_entity_id, ATTR_COMMAND: packets},
            blocking=True,
        )
        self._sent_count += len(packets)

    def get_info(self) -> dict[str, Any]:
        """Get diagnostic information."""
        return {
            "type": "remote",
            "entity_id": self.remote_entity_id,
            "sent_count": self._sent_count,
        }

