"""Sensor feed handlers for the garage door opener.

This module provides a pluggable trigger system that delivers door sensor
messages as ``(identifier, payload)`` pairs, whatever their source.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable
import logging

from homeassistant.components import mqtt
from homeassistant.core import Event, HomeAssistant, callback
from homeassistant.helpers.event import async_track_state_change_event

from .const import DOOR_OPEN_SENSOR_IDENTIFIER

_LOGGER = logging.getLogger(__name__)

MessageCallback = Callable[[str, bytes], None]


class TriggerHandler(ABC):
    """Abstract base class for sensor feed handlers.

    Each handler monitors one source and calls the registered callbacks with
    the identifier it was configured for and the raw payload.

    Examples of trigger handlers:
    - MqttTopicTrigger (message on an MQTT topic)
    - EntityStateTrigger (state of an existing Home Assistant entity)
    """

    def __init__(self, hass: HomeAssistant, config: dict[str, Any]):
        """Initialize the trigger handler.

        Args:
            hass: HomeAssistant instance
            config: Configuration for this trigger
        """
        self.hass = hass
        self.config = config
        self.identifier: str = config.get("identifier", DOOR_OPEN_SENSOR_IDENTIFIER)
        self._callbacks: list[MessageCallback] = []
        self._unsubscribers: list[Callable] = []
        self._message_count = 0

    @abstractmethod
    async def async_setup(self) -> bool:
        """Set up the trigger handler.

        Returns:
            True if setup successful, False otherwise
        """

    def on_message(self, callback: MessageCallback) -> None:
        """Register a callback for incoming messages."""
        self._callbacks.append(callback)

    def _fire_message(self, payload: bytes) -> None:
        """Fire all message callbacks."""
        self._message_count += 1
        for callback in self._callbacks:
            try:
                callback(self.identifier, payload)
            except Exception as err:
                _LOGGER.error("Error in trigger message callback: %s", err)

    def cleanup(self) -> None:
        """Clean up subscriptions."""
        for unsub in self._unsubscribers:
            unsub()
        self._unsubscribers.clear()

    @abstractmethod
    def get_info(self) -> dict[str, Any]:
        """Get diagnostic information about this trigger."""


class MqttTopicTrigger(TriggerHandler):
    """Trigger handler for an MQTT topic.

    Payloads are delivered as raw bytes.
    """

    def __init__(self, hass: HomeAssistant, config: dict[str, Any]):
        """Initialize MQTT trigger.

        Config should contain:
            - topic: MQTT topic to subscribe to
            - identifier: Identifier reported with each message
        """
        super().__init__(hass, config)
        self.topic: str | None = config.get("topic")

    async def async_setup(self) -> bool:
        """Subscribe to the topic."""
        if not self.topic:
            _LOGGER.warning("No MQTT topic configured for '%s'", self.identifier)
            return False

        if not await mqtt.async_wait_for_mqtt_client(self.hass):
            _LOGGER.warning(
                "MQTT is not available, not subscribing to %s", self.topic
            )
            return False

        self._unsubscribers.append(
            await mqtt.async_subscribe(
                self.hass, self.topic, self._async_message_received, encoding=None
            )
        )

        _LOGGER.info("MQTT trigger '%s' set up for %s", self.identifier, self.topic)
        return True

    @callback
    def _async_message_received(self, msg: mqtt.ReceiveMessage) -> None:
        """Handle an MQTT message."""
        payload = msg.payload
        if isinstance(payload, str):
            payload = payload.encode()
        self._fire_message(payload)

    def get_info(self) -> dict[str, Any]:
        """Get diagnostic information."""
        return {
            "type": "mqtt",
            "identifier": self.identifier,
            "topic": self.topic,
            "message_count": self._message_count,
        }


class EntityStateTrigger(TriggerHandler):
    """Trigger handler for an existing binary sensor.

    Forwards the current "on"/"off" state at setup and every change after
    that as door sensor messages.
    """

    def __init__(self, hass: HomeAssistant, config: dict[str, Any]):
        """Initialize entity trigger.

        Config should contain:
            - entity_id: Door contact sensor entity ID
        """
        super().__init__(hass, config)
        self.entity_id: str | None = config.get("entity_id")

    async def async_setup(self) -> bool:
        """Set up door sensor monitoring."""
        if not self.entity_id:
            _LOGGER.warning("No door sensor entity configured")
            return False

        state = self.hass.states.get(self.entity_id)
        if not state:
            _LOGGER.warning(
                "Door sensor not yet available: %s (will monitor once it appears)",
                self.entity_id,
            )

        self._unsubscribers.append(
            async_track_state_change_event(
                self.hass,
                [self.entity_id],
                self._async_state_changed,
            )
        )

        # Report the reading the sensor already holds
        if state and state.state in ("on", "off"):
            self._fire_message(state.state.encode())

        _LOGGER.info("Entity trigger set up for %s", self.entity_id)
        return True

    @callback
    def _async_state_changed(self, event: Event) -> None:
        """Handle door sensor state change."""
        new_state = event.data.get("new_state")
        if not new_state or new_state.state not in ("on", "off"):
            return

        old_state = event.data.get("old_state")
        if old_state and old_state.state == new_state.state:
            return

        self._fire_message(new_state.state.encode())

    def get_info(self) -> dict[str, Any]:
        """Get diagnostic information."""
        state = self.hass.states.get(self.entity_id) if self.entity_id else None
        return {
            "type": "entity",
            "identifier": self.identifier,
            "entity_id": self.entity_id,
            "state": state.state if state else "unknown",
            "message_count": self._message_count,
        }


class TriggerManager:
    """Manages multiple trigger handlers."""

    def __init__(self, hass: HomeAssistant):
        """Initialize the trigger manager."""
        self.hass = hass
        self._triggers: dict[str, TriggerHandler] = {}

    def add_trigger(self, name: str, trigger: TriggerHandler) -> None:
        """Add a trigger handler.

        Args:
            name: Unique name for this trigger
            trigger: TriggerHandler instance
        """
        if name in self._triggers:
            _LOGGER.warning("Replacing existing trigger '%s'", name)
            self._triggers[name].cleanup()

        self._triggers[name] = trigger
        _LOGGER.debug("Added trigger '%s' (%s)", name, type(trigger).__name__)

    async def async_setup_all(self) -> bool:
        """Set up all triggers.

        Returns:
            True if all triggers set up successfully
        """
        success = True
        for name, trigger in self._triggers.items():
            try:
                result = await trigger.async_setup()
                if not result:
                    _LOGGER.warning("Trigger '%s' setup returned False", name)
                    success = False
            except Exception as err:
                _LOGGER.error("Error setting up trigger '%s': %s", name, err)
                success = False

        return success

    def get_trigger(self, name: str) -> TriggerHandler | None:
        """Get a trigger by name."""
        return self._triggers.get(name)

    def cleanup_all(self) -> None:
        """Clean up all triggers."""
        for trigger in self._triggers.values():
            trigger.cleanup()
        self._triggers.clear()

    def get_info(self) -> dict[str, Any]:
        """Get diagnostic information for all triggers."""
        return {
            "total_triggers": len(self._triggers),
            "triggers": {
                name: trigger.get_info() for name, trigger in self._triggers.items()
            },
        }
