"""Door and lock state record for the garage door opener.

This module holds the single mutable record that describes what the
integration believes about the door and its lock. It has no Home Assistant
dependencies so the transition logic can be exercised on plain data.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

_LOGGER = logging.getLogger(__name__)


class DoorCurrentState(Enum):
    """Believed physical state of the door."""

    OPEN = "open"
    CLOSED = "closed"
    OPENING = "opening"
    CLOSING = "closing"


class DoorTargetState(Enum):
    """Desired end state of the door."""

    OPEN = "open"
    CLOSED = "closed"


class LockCurrentState(Enum):
    """Believed state of the lock."""

    SECURED = "secured"
    UNSECURED = "unsecured"


class LockTargetState(Enum):
    """Desired state of the lock."""

    SECURED = "secured"
    UNSECURED = "unsecured"


class StateField(Enum):
    """Fields of the state record that can be surfaced to observers."""

    DOOR_CURRENT = "door_current_state"
    DOOR_TARGET = "door_target_state"
    LOCK_CURRENT = "lock_current_state"
    LOCK_TARGET = "lock_target_state"


class StateSurface(ABC):
    """Receives a refresh whenever a field of the state record changes."""

    @abstractmethod
    def refresh(self, field: StateField) -> None:
        """Publish the current value of ``field`` to observers."""


# End state a door in motion is heading for
_SETTLED_STATE = {
    DoorCurrentState.OPEN: DoorCurrentState.OPEN,
    DoorCurrentState.OPENING: DoorCurrentState.OPEN,
    DoorCurrentState.CLOSED: DoorCurrentState.CLOSED,
    DoorCurrentState.CLOSING: DoorCurrentState.CLOSED,
}


def _parse(enum_cls: type[Enum], value: Any, default: Enum) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        _LOGGER.debug(
            "Ignoring unknown %s value %r, using %s",
            enum_cls.__name__,
            value,
            default.value,
        )
        return default


@dataclass
class DoorAccessoryState:
    """The four-field door and lock state record."""

    door_current_state: DoorCurrentState = DoorCurrentState.CLOSED
    door_target_state: DoorTargetState = DoorTargetState.CLOSED
    lock_current_state: LockCurrentState = LockCurrentState.UNSECURED
    lock_target_state: LockTargetState = LockTargetState.UNSECURED

    @property
    def is_door_moving(self) -> bool:
        """Return True while the door is believed to be in motion."""
        return self.door_current_state in (
            DoorCurrentState.OPENING,
            DoorCurrentState.CLOSING,
        )

    def get(self, field: StateField) -> Enum:
        """Return the value of a field."""
        return getattr(self, field.value)

    def settle(self) -> None:
        """Move a door persisted mid-motion to the end state it was heading for."""
        self.door_current_state = _SETTLED_STATE[self.door_current_state]

    def as_dict(self) -> dict[str, str]:
        """Return the record as plain strings for storage."""
        return {field.value: self.get(field).value for field in StateField}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DoorAccessoryState:
        """Rebuild a record from ``as_dict`` output, tolerating missing keys."""
        default = cls()
        return cls(
            door_current_state=_parse(
                DoorCurrentState,
                data.get(StateField.DOOR_CURRENT.value),
                default.door_current_state,
            ),
            door_target_state=_parse(
                DoorTargetState,
                data.get(StateField.DOOR_TARGET.value),
                default.door_target_state,
            ),
            lock_current_state=_parse(
                LockCurrentState,
                data.get(StateField.LOCK_CURRENT.value),
                default.lock_current_state,
            ),
            lock_target_state=_parse(
                LockTargetState,
                data.get(StateField.LOCK_TARGET.value),
                default.lock_target_state,
            ),
        )


def correct_reloaded_state(state: DoorAccessoryState) -> DoorAccessoryState:
    """Align target fields with current fields after a reload.

    The door target becomes the settled door state and the lock target the
    current lock state.
    """
    settled = _SETTLED_STATE[state.door_current_state]
    state.door_target_state = DoorTargetState(settled.value)
    state.lock_target_state = LockTargetState(state.lock_current_state.value)
    return state
