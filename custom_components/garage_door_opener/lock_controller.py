"""Lock state synchronization for the garage door opener."""

from __future__ import annotations

import logging

from .command_dispatcher import CommandDispatcher, HexCommand
from .door_state import (
    DoorAccessoryState,
    LockCurrentState,
    LockTargetState,
    StateField,
    StateSurface,
)

_LOGGER = logging.getLogger(__name__)


class LockController:
    """Mirrors the lock target into the current lock state once a code is sent.

    The lock has no intermediate states, so there is nothing to time or cancel.
    """

    def __init__(
        self,
        state: DoorAccessoryState,
        dispatcher: CommandDispatcher,
        surface: StateSurface,
        name: str = "Garage door",
    ) -> None:
        self.state = state
        self.dispatcher = dispatcher
        self.surface = surface
        self.name = name

    async def async_set_lock_target_state(self, command: HexCommand) -> None:
        """Send ``command`` then report the stored lock target as current."""
        await self.dispatcher.async_send(command)

        if self.state.lock_target_state == LockTargetState.UNSECURED:
            _LOGGER.info("%s setCurrentLockState: unlocked", self.name)
            self.state.lock_current_state = LockCurrentState.UNSECURED
        else:
            _LOGGER.info("%s setCurrentLockState: locked", self.name)
            self.state.lock_current_state = LockCurrentState.SECURED
        self.surface.refresh(StateField.LOCK_CURRENT)
