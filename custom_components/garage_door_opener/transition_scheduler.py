"""Timed open/close sequencing for the garage door.

The door's position cannot be observed, so it is inferred from elapsed time.
A target-state command sends the code, then walks the door through
OPENING -> OPEN (and optionally an auto-close back to CLOSED) or
CLOSING -> CLOSED, each step separated by a cancellable delay. A newer
command always cancels the pending delays of the sequence it supersedes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from homeassistant.core import HomeAssistant

from .command_dispatcher import CommandDispatcher, HexCommand
from .const import DEFAULT_OPEN_CLOSE_DURATION
from .delay_manager import DelayCancelledError, DelayManager, DelayPhase
from .door_state import (
    DoorAccessoryState,
    DoorCurrentState,
    DoorTargetState,
    StateField,
    StateSurface,
)

_LOGGER = logging.getLogger(__name__)

SCHEDULER_PHASES = (DelayPhase.OPENING, DelayPhase.CLOSING, DelayPhase.AUTO_CLOSE)

# Door state shown while moving toward each target
_MOVING_STATE = {
    DoorTargetState.OPEN: DoorCurrentState.OPENING,
    DoorTargetState.CLOSED: DoorCurrentState.CLOSING,
}


@dataclass
class TransitionConfig:
    """Durations driving the door sequences, in seconds."""

    open_duration: float | None = None
    close_duration: float | None = None
    open_close_duration: float | None = None
    auto_close_delay: float | None = None

    @property
    def effective_open_duration(self) -> float:
        return (
            self.open_duration
            or self.open_close_duration
            or DEFAULT_OPEN_CLOSE_DURATION
        )

    @property
    def effective_close_duration(self) -> float:
        return (
            self.close_duration
            or self.open_close_duration
            or DEFAULT_OPEN_CLOSE_DURATION
        )


class TransitionScheduler:
    """Runs at most one open/close sequence at a time."""

    def __init__(
        self,
        hass: HomeAssistant,
        state: DoorAccessoryState,
        config: TransitionConfig,
        delay_manager: DelayManager,
        dispatcher: CommandDispatcher,
        surface: StateSurface,
        name: str = "Garage door",
    ) -> None:
        self.hass = hass
        self.state = state
        self.config = config
        self.delay_manager = delay_manager
        self.dispatcher = dispatcher
        self.surface = surface
        self.name = name
        self._command_generation = 0

    def reset(self) -> None:
        """Cancel any pending opening, closing or auto-close delay."""
        self.delay_manager.cancel_delays(*SCHEDULER_PHASES)

    @property
    def is_transitioning(self) -> bool:
        return any(self.delay_manager.has_active_delay(p) for p in SCHEDULER_PHASES)

    async def async_set_door_target_state(
        self, command: HexCommand, previous_target: DoorTargetState
    ) -> None:
        """Send ``command`` and start the sequence toward the stored target.

        The new target must already be stored in the state record. Dispatch
        errors propagate and no sequence is started; the door is put back at
        rest at ``previous_target`` unless a newer command took over.
        """
        self.reset()
        self._command_generation += 1
        generation = self._command_generation
        target = self.state.door_target_state

        # Door at rest at the old target: surface motion before sending
        if (
            target != previous_target
            and self.state.door_current_state.value == previous_target.value
        ):
            self._set_current(_MOVING_STATE[target])

        try:
            await self.dispatcher.async_send(command)
        except Exception:
            if generation == self._command_generation:
                _LOGGER.warning(
                    "%s: sending %s code failed, door stays %s",
                    self.name,
                    target.value,
                    previous_target.value,
                )
                self.state.door_target_state = previous_target
                self.surface.refresh(StateField.DOOR_TARGET)
                self._set_current(DoorCurrentState(previous_target.value))
            raise

        if generation != self._command_generation:
            _LOGGER.debug(
                "%s: command for %s superseded while sending", self.name, target.value
            )
            return

        self.hass.async_create_background_task(
            self._async_run_sequence(target),
            f"{self.name} {target.value} sequence",
        )

    async def _async_run_sequence(self, target: DoorTargetState) -> None:
        try:
            if target == DoorTargetState.OPEN:
                await self.async_open()
            else:
                await self.async_close()
        except DelayCancelledError:
            _LOGGER.debug("%s: %s sequence cancelled", self.name, target.value)

    async def async_open(self) -> None:
        """Walk the door to OPEN, then auto-close if configured."""
        _LOGGER.info("%s setDoorCurrentState: opening", self.name)
        self._set_current(DoorCurrentState.OPENING)
        delay = self.delay_manager.start_delay(
            DelayPhase.OPENING, self.config.effective_open_duration
        )
        await delay.wait()

        _LOGGER.info("%s setDoorCurrentState: opened", self.name)
        self._set_current(DoorCurrentState.OPEN)

        auto_close_delay = self.config.auto_close_delay
        if not auto_close_delay:
            return

        _LOGGER.info("%s automatically closing in %ss", self.name, auto_close_delay)
        delay = self.delay_manager.start_delay(DelayPhase.AUTO_CLOSE, auto_close_delay)
        await delay.wait()

        self.state.door_target_state = DoorTargetState.CLOSED
        self.surface.refresh(StateField.DOOR_TARGET)
        await self.async_close()

    async def async_close(self) -> None:
        """Walk the door to CLOSED."""
        _LOGGER.info("%s setDoorCurrentState: closing", self.name)
        self._set_current(DoorCurrentState.CLOSING)
        delay = self.delay_manager.start_delay(
            DelayPhase.CLOSING, self.config.effective_close_duration
        )
        await delay.wait()

        _LOGGER.info("%s setDoorCurrentState: closed", self.name)
        self._set_current(DoorCurrentState.CLOSED)

    def _set_current(self, value: DoorCurrentState) -> None:
        self.state.door_current_state = value
        self.surface.refresh(StateField.DOOR_CURRENT)
