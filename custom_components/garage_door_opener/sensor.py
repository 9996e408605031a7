"""Sensor platform for the Garage door opener integration.

This module exposes a single diagnostic sensor describing what the
integration believes about the door:

Core Status:
- Current door state (open, closed, opening, closing)
- Target door state and lock state
- Pending delays and when they elapse

Debugging Info:
- Configured durations and auto-close delay
- Sensor feed subscriptions and message counts
- Recent events (commands, sensor messages, state changes)
"""

from __future__ import annotations

from typing import Any, Callable

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorEntityDescription,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import EntityCategory
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .coordinator import GarageDoorCoordinator
from .cover import device_info_for
from .door_state import DoorCurrentState

SENSOR_DESCRIPTION = SensorEntityDescription(
    key="door_state",
    name="Door state",
    icon="mdi:garage-variant",
    device_class=SensorDeviceClass.ENUM,
    entity_category=EntityCategory.DIAGNOSTIC,
    options=[state.value for state in DoorCurrentState],
)


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up sensor entities."""
    coordinator = config_entry.runtime_data

    async_add_entities(
        [
            GarageDoorDiagnosticSensor(
                coordinator=coordinator,
                config_entry=config_entry,
                entity_description=SENSOR_DESCRIPTION,
            ),
        ]
    )


class GarageDoorDiagnosticSensor(SensorEntity):
    """Diagnostic sensor with the state record, delays and recent events."""

    _attr_has_entity_name = True

    def __init__(
        self,
        coordinator: GarageDoorCoordinator,
        config_entry: ConfigEntry,
        entity_description: SensorEntityDescription,
    ) -> None:
        """Initialize the diagnostic sensor."""
        self.entity_description = entity_description
        self._coordinator = coordinator
        self._attr_unique_id = f"{config_entry.entry_id}_{entity_description.key}"
        self._attr_device_info = device_info_for(config_entry, coordinator.door_name)

        self._remove_listener: Callable[[], None] | None = None

    async def async_added_to_hass(self) -> None:
        """Register listener when entity is added to Home Assistant."""
        await super().async_added_to_hass()
        self._remove_listener = self._coordinator.async_add_listener(
            self._handle_coordinator_update
        )

    async def async_will_remove_from_hass(self) -> None:
        """Unregister listener when entity is removed."""
        if self._remove_listener:
            self._remove_listener()
            self._remove_listener = None
        await super().async_will_remove_from_hass()

    @callback
    def _handle_coordinator_update(self) -> None:
        """Write state when coordinator updates."""
        self.async_write_ha_state()

    @property
    def native_value(self) -> str:
        """Return the believed door state."""
        return self._coordinator.state.door_current_state.value

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return diagnostic data with event history and internal state."""
        diagnostic_data = self._coordinator.get_diagnostic_data()

        # Format delay information for display
        delay_info = {
            phase: {
                "remaining_seconds": delay.get("remaining_seconds"),
                "end_time": delay.get("end_time"),
            }
            for phase, delay in diagnostic_data.get("delays", {}).items()
            if delay.get("is_active")
        }

        return {
            # State record
            "door_target_state": diagnostic_data.get("door_target_state"),
            "lock_current_state": diagnostic_data.get("lock_current_state"),
            "lock_target_state": diagnostic_data.get("lock_target_state"),
            "is_transitioning": diagnostic_data.get("is_transitioning"),
            # Delay state
            "delays": delay_info,
            # Configuration
            "open_duration": diagnostic_data.get("open_duration"),
            "close_duration": diagnostic_data.get("close_duration"),
            "auto_close_delay": diagnostic_data.get("auto_close_delay"),
            # Sensor feed
            "triggers": diagnostic_data.get("triggers", {}),
            # Event log (most recent events)
            "last_event_message": diagnostic_data.get("last_event_message"),
            "recent_events": diagnostic_data.get("recent_events", [])[-10:],
        }
