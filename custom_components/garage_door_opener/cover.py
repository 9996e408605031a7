"""Cover platform for the Garage door opener integration.

The door is exposed as a garage-door cover. Its state is inferred from
elapsed time and sensor messages, so the entity reports an assumed state.
The entity also persists the whole door/lock state record across restarts.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from homeassistant.components.cover import (
    CoverDeviceClass,
    CoverEntity,
    CoverEntityFeature,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.restore_state import ExtraStoredData, RestoreEntity

from .const import DOMAIN
from .coordinator import GarageDoorCoordinator
from .door_state import DoorAccessoryState, DoorCurrentState, DoorTargetState

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the garage door cover."""
    coordinator = config_entry.runtime_data
    async_add_entities([GarageDoorCover(coordinator, config_entry)])


class DoorAccessoryStoredData(ExtraStoredData):
    """Door/lock state record kept by the restore-state store."""

    def __init__(self, state: DoorAccessoryState) -> None:
        self.state = state

    def as_dict(self) -> dict[str, Any]:
        return self.state.as_dict()


def device_info_for(config_entry: ConfigEntry, name: str) -> dict[str, Any]:
    """Return the device shared by all entities of an entry."""
    return {
        "identifiers": {(DOMAIN, config_entry.entry_id)},
        "name": name,
        "manufacturer": "Garage Door Opener",
        "model": "Timed garage door",
    }


class GarageDoorCover(CoverEntity, RestoreEntity):
    """Garage door whose motion is inferred over time."""

    _attr_has_entity_name = True
    _attr_name = None
    _attr_assumed_state = True
    _attr_device_class = CoverDeviceClass.GARAGE
    _attr_supported_features = CoverEntityFeature.OPEN | CoverEntityFeature.CLOSE

    def __init__(
        self, coordinator: GarageDoorCoordinator, config_entry: ConfigEntry
    ) -> None:
        """Initialize the cover."""
        self._coordinator = coordinator
        self._attr_unique_id = f"{config_entry.entry_id}_door"
        self._attr_device_info = device_info_for(config_entry, coordinator.door_name)
        self._remove_listener: Callable[[], None] | None = None

    async def async_added_to_hass(self) -> None:
        """Restore the state record and start listening to the coordinator."""
        await super().async_added_to_hass()

        if (last := await self.async_get_last_extra_data()) is not None:
            self._coordinator.restore_state(
                DoorAccessoryState.from_dict(last.as_dict())
            )

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
    def extra_restore_state_data(self) -> DoorAccessoryStoredData:
        """Return the state record to persist."""
        return DoorAccessoryStoredData(self._coordinator.state)

    @property
    def is_closed(self) -> bool:
        return self._coordinator.state.door_current_state == DoorCurrentState.CLOSED

    @property
    def is_opening(self) -> bool:
        return self._coordinator.state.door_current_state == DoorCurrentState.OPENING

    @property
    def is_closing(self) -> bool:
        return self._coordinator.state.door_current_state == DoorCurrentState.CLOSING

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        return {
            "target_state": self._coordinator.state.door_target_state.value,
            "time_until_action": self._coordinator.time_until_action,
        }

    async def async_open_cover(self, **kwargs: Any) -> None:
        """Open the door."""
        await self._coordinator.async_set_door_target_state(DoorTargetState.OPEN)

    async def async_close_cover(self, **kwargs: Any) -> None:
        """Close the door."""
        await self._coordinator.async_set_door_target_state(DoorTargetState.CLOSED)
