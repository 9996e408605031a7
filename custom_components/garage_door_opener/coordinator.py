"""Garage door coordinator using modular architecture."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_NAME
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from .command_dispatcher import CommandDispatcher, RemoteCommandDispatcher
from .const import (
    CONF_AUTO_CLOSE_DELAY,
    CONF_CLOSE_CODE,
    CONF_CLOSE_DURATION,
    CONF_DOOR_SENSOR_ENTITY,
    CONF_DOOR_SENSOR_TOPIC,
    CONF_IDENTIFIER,
    CONF_LOCK_CODE,
    CONF_MQTT_TOPICS,
    CONF_OPEN_CLOSE_DURATION,
    CONF_OPEN_CODE,
    CONF_OPEN_DURATION,
    CONF_REMOTE_ENTITY,
    CONF_TOPIC,
    CONF_UNLOCK_CODE,
    DEFAULT_AUTO_CLOSE_DELAY,
    DEFAULT_NAME,
    DEFAULT_OPEN_CLOSE_DURATION,
    DOMAIN,
    DOOR_OPEN_SENSOR_IDENTIFIER,
)
from .delay_manager import DelayManager
from .door_state import (
    DoorAccessoryState,
    DoorTargetState,
    LockTargetState,
    StateField,
    StateSurface,
    correct_reloaded_state,
)
from .lock_controller import LockController
from .sensor_reconciler import SensorReconciler
from .transition_scheduler import TransitionConfig, TransitionScheduler
from .triggers import EntityStateTrigger, MqttTopicTrigger, TriggerManager

_LOGGER = logging.getLogger(__name__)


class GarageDoorCoordinator(DataUpdateCoordinator[dict[str, Any]], StateSurface):
    """Garage door coordinator.

    Owns the state record and delegates timing, lock handling and sensor
    reconciliation to specialized modules. Entities observe it through the
    usual coordinator listeners.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        dispatcher: CommandDispatcher | None = None,
    ) -> None:
        """Initialize the coordinator."""
        super().__init__(
            hass,
            _LOGGER,
            name=f"{DOMAIN}_{config_entry.entry_id}",
            update_interval=None,
            config_entry=config_entry,
        )

        self.config_entry = config_entry
        self._load_config()

        self.state = DoorAccessoryState()
        self.delay_manager = DelayManager(hass)
        self.trigger_manager = TriggerManager(hass)
        self.dispatcher = dispatcher or RemoteCommandDispatcher(
            hass, self.remote_entity
        )

        self.scheduler = TransitionScheduler(
            hass,
            self.state,
            self.transition_config,
            self.delay_manager,
            self.dispatcher,
            self,
            name=self.door_name,
        )
        self.lock_controller = LockController(
            self.state, self.dispatcher, self, name=self.door_name
        )
        self.sensor_reconciler = SensorReconciler(
            self.state,
            self.transition_config,
            self.delay_manager,
            self,
            self.scheduler,
            name=self.door_name,
        )

        self.data = {}

        # Event tracking for diagnostics
        self._events: list[dict[str, Any]] = []
        self._max_events = 100
        self._last_event_message: str | None = None

        # Set once the door sensor reported, so stored state cannot override it
        self._sensor_reported = False

    def _load_config(self) -> None:
        """Load configuration."""
        data = self.config_entry.data

        self.door_name: str = data.get(CONF_NAME) or self.config_entry.title or DEFAULT_NAME
        self.remote_entity: str = data.get(CONF_REMOTE_ENTITY, "")
        self.codes: dict[str, Any] = {
            key: data.get(key)
            for key in (CONF_OPEN_CODE, CONF_CLOSE_CODE, CONF_LOCK_CODE, CONF_UNLOCK_CODE)
        }

        self.transition_config = TransitionConfig(
            open_duration=data.get(CONF_OPEN_DURATION),
            close_duration=data.get(CONF_CLOSE_DURATION),
            open_close_duration=data.get(
                CONF_OPEN_CLOSE_DURATION, DEFAULT_OPEN_CLOSE_DURATION
            ),
            auto_close_delay=data.get(CONF_AUTO_CLOSE_DELAY, DEFAULT_AUTO_CLOSE_DELAY),
        )

        # Sensor feed: identifier -> topic, plus an optional binary sensor
        self.mqtt_topics: dict[str, str] = {}
        if topic := data.get(CONF_DOOR_SENSOR_TOPIC):
            self.mqtt_topics[DOOR_OPEN_SENSOR_IDENTIFIER] = topic
        for item in data.get(CONF_MQTT_TOPICS) or []:
            self.mqtt_topics[item[CONF_IDENTIFIER]] = item[CONF_TOPIC]
        self.door_sensor_entity: str | None = data.get(CONF_DOOR_SENSOR_ENTITY) or None

    async def async_setup_listeners(self) -> None:
        """Set up the sensor feed."""
        for identifier, topic in self.mqtt_topics.items():
            trigger = MqttTopicTrigger(
                self.hass, {"identifier": identifier, "topic": topic}
            )
            trigger.on_message(self._handle_sensor_message)
            self.trigger_manager.add_trigger(f"mqtt_{identifier}", trigger)

        if self.door_sensor_entity:
            trigger = EntityStateTrigger(
                self.hass, {"entity_id": self.door_sensor_entity}
            )
            trigger.on_message(self._handle_sensor_message)
            self.trigger_manager.add_trigger("entity", trigger)

        await self.trigger_manager.async_setup_all()
        self._update_data()

        _LOGGER.info(
            "Garage door '%s' initialized | Remote: %s | Open: %ss | Close: %ss | "
            "Auto-close: %s | Sensor topics: %d | Sensor entity: %s",
            self.door_name,
            self.remote_entity,
            self.transition_config.effective_open_duration,
            self.transition_config.effective_close_duration,
            self.transition_config.auto_close_delay or "off",
            len(self.mqtt_topics),
            self.door_sensor_entity,
        )

    # ========================================================================
    # Entry points
    # ========================================================================

    async def async_set_door_target_state(self, target: DoorTargetState) -> None:
        """Handle a door command from the cover entity or a service."""
        previous_target = self.state.door_target_state
        self._log_event(
            "door_command",
            {"target": target.value, "previous_target": previous_target.value},
        )

        self.state.door_target_state = target
        self.refresh(StateField.DOOR_TARGET)
        self.sensor_reconciler.cancel_pending()

        code_key = CONF_OPEN_CODE if target == DoorTargetState.OPEN else CONF_CLOSE_CODE
        await self.scheduler.async_set_door_target_state(
            self.codes[code_key], previous_target
        )

    async def async_set_lock_target_state(self, target: LockTargetState) -> None:
        """Handle a lock command from the lock entity."""
        self._log_event("lock_command", {"target": target.value})

        self.state.lock_target_state = target
        self.refresh(StateField.LOCK_TARGET)

        code_key = CONF_LOCK_CODE if target == LockTargetState.SECURED else CONF_UNLOCK_CODE
        await self.lock_controller.async_set_lock_target_state(self.codes[code_key])

    @callback
    def _handle_sensor_message(self, identifier: str, payload: bytes) -> None:
        """Hand a sensor message to the reconciler."""
        if identifier == DOOR_OPEN_SENSOR_IDENTIFIER:
            self._sensor_reported = True
        self._log_event(
            "sensor_message",
            {"identifier": identifier, "payload": payload.decode(errors="replace")},
        )
        self.hass.async_create_background_task(
            self.sensor_reconciler.async_on_sensor_event(identifier, payload),
            f"{self.door_name} sensor {identifier}",
        )

    def restore_state(self, restored: DoorAccessoryState) -> None:
        """Adopt state loaded from storage and correct its targets."""
        restored.settle()
        correct_reloaded_state(restored)

        if self._sensor_reported:
            _LOGGER.info(
                "Door sensor already reported for %s, keeping its door state",
                self.door_name,
            )
        else:
            self.state.door_current_state = restored.door_current_state
            self.state.door_target_state = restored.door_target_state
        self.state.lock_current_state = restored.lock_current_state
        self.state.lock_target_state = restored.lock_target_state

        _LOGGER.info("Restored %s state: %s", self.door_name, self.state.as_dict())
        self._log_event("state_restored", self.state.as_dict())
        self._update_data()

    async def async_reset(self) -> None:
        """Cancel every pending sequence (called by service)."""
        _LOGGER.info("Resetting %s", self.door_name)
        self.scheduler.reset()
        self.sensor_reconciler.cancel_pending()
        self._log_event("reset", {})
        self._update_data()

    # ========================================================================
    # State surface
    # ========================================================================

    def refresh(self, field: StateField) -> None:
        """Publish a changed field to the entities."""
        value = self.state.get(field).value
        self._last_event_message = f"{field.value}: {value}"
        self._log_event("state_changed", {"field": field.value, "value": value})
        self._update_data()

    # ========================================================================
    # Event Tracking (for diagnostics)
    # ========================================================================

    def _log_event(self, event_type: str, details: dict[str, Any]) -> None:
        """Log an event for diagnostics."""
        event = {
            "timestamp": datetime.now().isoformat(),
            "type": event_type,
            **details,
        }
        self._events.append(event)

        # Keep only last N events
        if len(self._events) > self._max_events:
            self._events.pop(0)

        _LOGGER.debug("Event logged: %s - %s", event_type, details)

    def get_diagnostic_data(self) -> dict[str, Any]:
        """Get diagnostic data for sensor."""
        delay_info = self.delay_manager.get_info()

        return {
            **self.state.as_dict(),
            "is_transitioning": self.scheduler.is_transitioning,
            "delays": delay_info.get("delays", {}),
            "triggers": self.trigger_manager.get_info().get("triggers", {}),
            "open_duration": self.transition_config.effective_open_duration,
            "close_duration": self.transition_config.effective_close_duration,
            "auto_close_delay": self.transition_config.auto_close_delay,
            "recent_events": list(self._events),
            "last_event_message": self._last_event_message,
        }

    # ========================================================================
    # Data Update
    # ========================================================================

    def _update_data(self) -> None:
        """Update coordinator data."""
        active_delays = self.delay_manager.get_active_delays()

        self.data = {
            **self.state.as_dict(),
            "delay_active": bool(active_delays),
            "delay_phase": active_delays[0].phase.value if active_delays else None,
        }

        self.async_update_listeners()

    # ========================================================================
    # Cleanup
    # ========================================================================

    def async_cleanup_listeners(self) -> None:
        """Clean up listeners and pending delays."""
        self.delay_manager.cancel_all_delays()
        self.trigger_manager.cleanup_all()

    # ========================================================================
    # Properties for entities
    # ========================================================================

    @property
    def time_until_action(self) -> int | None:
        active_delays = self.delay_manager.get_active_delays()
        if active_delays:
            return active_delays[0].remaining_seconds
        return None
