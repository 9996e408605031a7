"""Reconciles the door state with an external open/closed sensor.

The sensor is ground truth arriving independently of any command, so its
opening path is modeled on its own rather than through the scheduler's
sequence. An "off" reading settles the door as closed immediately; an "on"
reading starts an opening that completes after the open duration.
"""

from __future__ import annotations

import logging

from .const import DOOR_OPEN_SENSOR_IDENTIFIER, SENSOR_PAYLOAD_OFF, SENSOR_PAYLOAD_ON
from .delay_manager import DelayCancelledError, DelayManager, DelayPhase
from .door_state import (
    DoorAccessoryState,
    DoorCurrentState,
    DoorTargetState,
    StateField,
    StateSurface,
)
from .transition_scheduler import TransitionConfig, TransitionScheduler

_LOGGER = logging.getLogger(__name__)


def decode_payload(payload: bytes | str) -> str:
    """Return a sensor payload as normalized text."""
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8", errors="replace")
    return payload.strip().lower()


class SensorReconciler:
    """Applies door sensor events to the state record."""

    def __init__(
        self,
        state: DoorAccessoryState,
        config: TransitionConfig,
        delay_manager: DelayManager,
        surface: StateSurface,
        scheduler: TransitionScheduler,
        name: str = "Garage door",
    ) -> None:
        self.state = state
        self.config = config
        self.delay_manager = delay_manager
        self.surface = surface
        self.scheduler = scheduler
        self.name = name

    def cancel_pending(self) -> bool:
        """Cancel a sensor-driven opening that has not completed yet."""
        return self.delay_manager.cancel_delay(DelayPhase.SENSOR_OPENING)

    async def async_on_sensor_event(self, identifier: str, payload: bytes | str) -> None:
        """Handle one message from the sensor feed."""
        if identifier != DOOR_OPEN_SENSOR_IDENTIFIER:
            _LOGGER.error(
                "%s received sensor message with unexpected identifier: %s, %s",
                self.name,
                identifier,
                payload,
            )
            return

        message = decode_payload(payload)
        _LOGGER.debug("%s sensor message received: %s, %s", self.name, identifier, message)

        try:
            if message == SENSOR_PAYLOAD_ON:
                await self._async_handle_opened()
            elif message == SENSOR_PAYLOAD_OFF:
                self._handle_closed()
            else:
                _LOGGER.warning(
                    "%s ignoring sensor payload %r for %s", self.name, message, identifier
                )
        except DelayCancelledError:
            _LOGGER.debug("%s sensor opening cancelled", self.name)
        finally:
            self.surface.refresh(StateField.DOOR_CURRENT)
            self.surface.refresh(StateField.DOOR_TARGET)

    async def _async_handle_opened(self) -> None:
        if (
            self.state.door_current_state
            in (DoorCurrentState.OPEN, DoorCurrentState.OPENING)
            or self.state.door_target_state == DoorTargetState.OPEN
        ):
            _LOGGER.debug("%s already open or opening, ignoring sensor", self.name)
            return

        # The sensor wins over whatever the scheduler still had in flight
        self.scheduler.reset()

        _LOGGER.info("%s setDoorCurrentState: opening", self.name)
        self.state.door_target_state = DoorTargetState.OPEN
        self.surface.refresh(StateField.DOOR_TARGET)
        self.state.door_current_state = DoorCurrentState.OPENING
        self.surface.refresh(StateField.DOOR_CURRENT)

        delay = self.delay_manager.start_delay(
            DelayPhase.SENSOR_OPENING, self.config.effective_open_duration
        )
        await delay.wait()

        _LOGGER.info("%s setDoorCurrentState: opened", self.name)
        self.state.door_current_state = DoorCurrentState.OPEN
        self.state.door_target_state = DoorTargetState.OPEN

    def _handle_closed(self) -> None:
        self.scheduler.reset()
        self.cancel_pending()

        _LOGGER.info("%s setDoorCurrentState: closed", self.name)
        self.state.door_current_state = DoorCurrentState.CLOSED
        self.state.door_target_state = DoorTargetState.CLOSED
