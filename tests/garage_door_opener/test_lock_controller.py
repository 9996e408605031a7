"""Tests for lock_controller.py."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from custom_components.garage_door_opener.door_state import (
    DoorAccessoryState,
    LockCurrentState,
    LockTargetState,
    StateField,
)
from custom_components.garage_door_opener.lock_controller import LockController

from .conftest import LOCK_CODE, UNLOCK_CODE


@pytest.fixture
def lock_controller(
    door_state: DoorAccessoryState,
    mock_dispatcher: MagicMock,
    mock_surface: MagicMock,
) -> LockController:
    """Return a lock controller wired to mocks."""
    return LockController(door_state, mock_dispatcher, mock_surface, name="Test Garage")


class TestLockController:
    """Test lock state synchronization."""

    async def test_lock(self, lock_controller, door_state, mock_dispatcher, mock_surface):
        """Test the current lock state follows a SECURED target."""
        door_state.lock_target_state = LockTargetState.SECURED

        await lock_controller.async_set_lock_target_state(LOCK_CODE)

        mock_dispatcher.async_send.assert_awaited_once_with(LOCK_CODE)
        assert door_state.lock_current_state == LockCurrentState.SECURED
        mock_surface.refresh.assert_called_once_with(StateField.LOCK_CURRENT)

    async def test_unlock(self, lock_controller, door_state, mock_dispatcher):
        """Test the current lock state follows an UNSECURED target."""
        door_state.lock_current_state = LockCurrentState.SECURED
        door_state.lock_target_state = LockTargetState.UNSECURED

        await lock_controller.async_set_lock_target_state(UNLOCK_CODE)

        mock_dispatcher.async_send.assert_awaited_once_with(UNLOCK_CODE)
        assert door_state.lock_current_state == LockCurrentState.UNSECURED

    async def test_state_set_only_after_send(
        self, lock_controller, door_state, mock_dispatcher
    ):
        """Test the current state is still unchanged while the code is sent."""
        seen = []

        async def record_state(command):
            seen.append(door_state.lock_current_state)

        mock_dispatcher.async_send.side_effect = record_state
        door_state.lock_target_state = LockTargetState.SECURED

        await lock_controller.async_set_lock_target_state(LOCK_CODE)

        assert seen == [LockCurrentState.UNSECURED]
        assert door_state.lock_current_state == LockCurrentState.SECURED

    async def test_failed_send_leaves_state(
        self, lock_controller, door_state, mock_dispatcher, mock_surface
    ):
        """Test a failed send does not change the current lock state."""
        mock_dispatcher.async_send.side_effect = RuntimeError("offline")
        door_state.lock_target_state = LockTargetState.SECURED

        with pytest.raises(RuntimeError):
            await lock_controller.async_set_lock_target_state(LOCK_CODE)

        assert door_state.lock_current_state == LockCurrentState.UNSECURED
        mock_surface.refresh.assert_not_called()

    async def test_door_fields_untouched(self, lock_controller, door_state):
        """Test lock commands never affect the door."""
        before = (door_state.door_current_state, door_state.door_target_state)
        door_state.lock_target_state = LockTargetState.SECURED

        await lock_controller.async_set_lock_target_state(LOCK_CODE)

        assert (door_state.door_current_state, door_state.door_target_state) == before
