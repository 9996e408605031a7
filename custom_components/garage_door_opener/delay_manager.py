"""Cancellable delays for the garage door opener.

A delay is an awaitable sleep scheduled on the Home Assistant event loop.
Cancelling it wakes the waiter with ``DelayCancelledError`` so the sequence
that was waiting can stop without treating the cancellation as a failure.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from homeassistant.core import HomeAssistant, callback
from homeassistant.util import dt as dt_util

_LOGGER = logging.getLogger(__name__)


class DelayPhase(Enum):
    """Slots a delay can occupy."""

    OPENING = "opening"
    CLOSING = "closing"
    AUTO_CLOSE = "auto_close"
    SENSOR_OPENING = "sensor_opening"


class DelayCancelledError(Exception):
    """Raised by a delay's waiter when the delay was cancelled."""


class Delay:
    """A single sleep that can be cancelled before it elapses."""

    def __init__(
        self,
        hass: HomeAssistant,
        phase: DelayPhase,
        duration: float,
        name: str | None = None,
    ):
        """Initialize a delay.

        Args:
            hass: HomeAssistant instance
            phase: Slot this delay belongs to
            duration: Duration in seconds
            name: Optional name for debugging
        """
        self.hass = hass
        self.phase = phase
        self.duration = duration
        self.name = name or f"delay_{phase.value}"

        self._handle: asyncio.TimerHandle | None = None
        self._future: asyncio.Future[None] | None = None
        self._start_time: datetime | None = None
        self._end_time: datetime | None = None
        self._is_active = False
        self._cancelled = False

    def start(self) -> None:
        """Schedule the delay on the event loop."""
        if self._is_active:
            self.cancel()

        self._cancelled = False
        self._future = self.hass.loop.create_future()
        self._start_time = dt_util.now()
        self._end_time = self._start_time + timedelta(seconds=self.duration)
        self._is_active = True
        self._handle = self.hass.loop.call_later(self.duration, self._expire)

        _LOGGER.debug(
            "Starting delay '%s' for %ss, will expire at %s",
            self.name,
            self.duration,
            self._end_time.strftime("%H:%M:%S"),
        )

    @callback
    def _expire(self) -> None:
        self._handle = None
        self._is_active = False
        if self._future is not None and not self._future.done():
            self._future.set_result(None)

    async def wait(self) -> None:
        """Suspend until the delay elapses.

        Raises:
            DelayCancelledError: the delay was cancelled, even if the timer
                fired before the waiter got to run again.
        """
        if self._future is None:
            raise RuntimeError(f"Delay '{self.name}' was never started")
        await self._future
        if self._cancelled:
            raise DelayCancelledError(self.name)

    def cancel(self) -> None:
        """Cancel the delay. Safe to call repeatedly.

        Wakes the waiter, which then raises DelayCancelledError.
        """
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._future is None or self._cancelled:
            return

        _LOGGER.debug("Cancelling delay '%s'", self.name)
        self._cancelled = True
        self._is_active = False
        self._start_time = None
        self._end_time = None
        if not self._future.done():
            self._future.set_result(None)

    @property
    def is_active(self) -> bool:
        """Check if the delay is still pending."""
        return self._is_active

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def remaining_seconds(self) -> int:
        """Get remaining seconds (0 if not active)."""
        if not self._is_active or not self._end_time:
            return 0
        remaining = (self._end_time - dt_util.now()).total_seconds()
        return max(0, int(remaining))

    @property
    def end_time(self) -> datetime | None:
        """Get the time when the delay will elapse."""
        return self._end_time

    def get_info(self) -> dict[str, Any]:
        """Get delay diagnostic info."""
        return {
            "name": self.name,
            "phase": self.phase.value,
            "duration": self.duration,
            "is_active": self._is_active,
            "remaining_seconds": self.remaining_seconds,
            "end_time": self._end_time.isoformat() if self._end_time else None,
        }


class DelayManager:
    """Owns at most one pending delay per phase."""

    def __init__(self, hass: HomeAssistant):
        """Initialize the delay manager."""
        self.hass = hass
        self._delays: dict[DelayPhase, Delay] = {}

    def start_delay(self, phase: DelayPhase, duration: float) -> Delay:
        """Create and start a delay, replacing any delay in the same slot."""
        self.cancel_delay(phase)
        delay = Delay(self.hass, phase, duration)
        self._delays[phase] = delay
        delay.start()
        return delay

    def cancel_delay(self, phase: DelayPhase) -> bool:
        """Cancel the delay in a slot.

        Returns:
            True if a pending delay was cancelled
        """
        delay = self._delays.pop(phase, None)
        if delay is None:
            return False
        was_active = delay.is_active
        delay.cancel()
        return was_active

    def cancel_delays(self, *phases: DelayPhase) -> int:
        """Cancel the delays in the given slots.

        Returns:
            Number of pending delays cancelled
        """
        count = sum(1 for phase in phases if self.cancel_delay(phase))
        if count:
            _LOGGER.debug("Cancelled %d delay(s)", count)
        return count

    def cancel_all_delays(self) -> int:
        """Cancel every delay."""
        return self.cancel_delays(*list(self._delays))

    def get_delay(self, phase: DelayPhase) -> Delay | None:
        """Get the delay in a slot."""
        return self._delays.get(phase)

    def has_active_delay(self, phase: DelayPhase | None = None) -> bool:
        """Check if a delay is pending, in one slot or in any."""
        if phase:
            delay = self._delays.get(phase)
            return delay.is_active if delay else False

        return any(delay.is_active for delay in self._delays.values())

    def get_active_delays(self) -> list[Delay]:
        """Get all pending delays."""
        return [delay for delay in self._delays.values() if delay.is_active]

    def get_info(self) -> dict[str, Any]:
        """Get delay manager diagnostic info."""
        return {
            "active_delays": len(self.get_active_delays()),
            "delays": {
                phase.value: delay.get_info() for phase, delay in self._delays.items()
            },
        }
