"""Lock platform for the Garage door opener integration."""

from __future__ import annotations

from typing import Any, Callable

from homeassistant.components.lock import LockEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .coordinator import GarageDoorCoordinator
from .cover import device_info_for
from .door_state import LockCurrentState, LockTargetState


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the garage door lock."""
    coordinator = config_entry.runtime_data
    async_add_entities([GarageDoorLock(coordinator, config_entry)])


class GarageDoorLock(LockEntity):
    """Lock that follows its target as soon as the code was sent."""

    _attr_has_entity_name = True
    _attr_name = "Lock"

    def __init__(
        self, coordinator: GarageDoorCoordinator, config_entry: ConfigEntry
    ) -> None:
        """Initialize the lock."""
        self._coordinator = coordinator
        self._attr_unique_id = f"{config_entry.entry_id}_lock"
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
    def is_locked(self) -> bool:
        return self._coordinator.state.lock_current_state == LockCurrentState.SECURED

    async def async_lock(self, **kwargs: Any) -> None:
        """Lock the door."""
        await self._coordinator.async_set_lock_target_state(LockTargetState.SECURED)

    async def async_unlock(self, **kwargs: Any) -> None:
        """Unlock the door."""
        await self._coordinator.async_set_lock_target_state(LockTargetState.UNSECURED)
