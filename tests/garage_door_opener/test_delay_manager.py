"""Tests for delay_manager.py."""

from __future__ import annotations

import asyncio

import pytest
from homeassistant.core import HomeAssistant

from custom_components.garage_door_opener.delay_manager import (
    Delay,
    DelayCancelledError,
    DelayManager,
    DelayPhase,
)


class TestDelay:
    """Test Delay class."""

    async def test_delay_creation(self, hass: HomeAssistant):
        """Test delay creation."""
        delay = Delay(hass, DelayPhase.OPENING, 10, "test_delay")

        assert delay.phase == DelayPhase.OPENING
        assert delay.duration == 10
        assert delay.name == "test_delay"
        assert delay.is_active is False
        assert delay.cancelled is False
        assert delay.remaining_seconds == 0

    async def test_default_name(self, hass: HomeAssistant):
        """Test the name defaults to the phase."""
        delay = Delay(hass, DelayPhase.AUTO_CLOSE, 10)
        assert delay.name == "delay_auto_close"

    async def test_wait_elapses(self, hass: HomeAssistant):
        """Test waiting returns once the delay elapses."""
        delay = Delay(hass, DelayPhase.OPENING, 0.05)

        delay.start()
        assert delay.is_active is True

        await asyncio.wait_for(delay.wait(), timeout=1)

        assert delay.is_active is False
        assert delay.cancelled is False

    async def test_wait_without_start(self, hass: HomeAssistant):
        """Test waiting on a delay that never started is an error."""
        delay = Delay(hass, DelayPhase.OPENING, 1)

        with pytest.raises(RuntimeError):
            await delay.wait()

    async def test_cancel_wakes_waiter(self, hass: HomeAssistant):
        """Test cancelling raises DelayCancelledError in the waiter."""
        delay = Delay(hass, DelayPhase.CLOSING, 10)
        delay.start()

        waiter = asyncio.ensure_future(delay.wait())
        await asyncio.sleep(0)

        delay.cancel()

        with pytest.raises(DelayCancelledError):
            await waiter
        assert delay.is_active is False
        assert delay.cancelled is True
        assert delay.end_time is None

    async def test_cancel_after_timer_fired(self, hass: HomeAssistant):
        """Test a cancel that lands before the waiter resumes still wins."""
        delay = Delay(hass, DelayPhase.OPENING, 0.01)
        delay.start()

        await asyncio.sleep(0.05)
        assert delay.is_active is False

        delay.cancel()

        with pytest.raises(DelayCancelledError):
            await delay.wait()

    async def test_cancel_is_idempotent(self, hass: HomeAssistant):
        """Test cancelling twice or before start is harmless."""
        delay = Delay(hass, DelayPhase.OPENING, 10)
        delay.cancel()
        assert delay.cancelled is False

        delay.start()
        delay.cancel()
        delay.cancel()

        assert delay.cancelled is True
        with pytest.raises(DelayCancelledError):
            await delay.wait()

    async def test_cancel_without_waiter(self, hass: HomeAssistant):
        """Test a delay cancelled before anyone awaits it leaves no stored error."""
        delay = Delay(hass, DelayPhase.OPENING, 10)
        delay.start()
        future = delay._future

        delay.cancel()

        assert future.done()
        assert future.exception() is None
        assert delay.cancelled is True

    async def test_remaining_and_info(self, hass: HomeAssistant):
        """Test diagnostic info while pending."""
        delay = Delay(hass, DelayPhase.AUTO_CLOSE, 30)
        delay.start()

        try:
            assert 28 <= delay.remaining_seconds <= 30
            info = delay.get_info()
            assert info["phase"] == "auto_close"
            assert info["duration"] == 30
            assert info["is_active"] is True
            assert info["end_time"] is not None
        finally:
            delay.cancel()
            with pytest.raises(DelayCancelledError):
                await delay.wait()


class TestDelayManager:
    """Test DelayManager class."""

    async def test_start_delay(self, delay_manager: DelayManager):
        """Test starting a delay fills its slot."""
        delay = delay_manager.start_delay(DelayPhase.OPENING, 10)

        assert delay_manager.get_delay(DelayPhase.OPENING) is delay
        assert delay_manager.has_active_delay(DelayPhase.OPENING) is True
        assert delay_manager.has_active_delay(DelayPhase.CLOSING) is False
        assert delay_manager.has_active_delay() is True

    async def test_start_replaces_same_phase(self, delay_manager: DelayManager):
        """Test a new delay in an occupied slot cancels the old one."""
        first = delay_manager.start_delay(DelayPhase.OPENING, 10)
        second = delay_manager.start_delay(DelayPhase.OPENING, 10)

        assert first.cancelled is True
        assert second.is_active is True
        assert delay_manager.get_active_delays() == [second]

        with pytest.raises(DelayCancelledError):
            await first.wait()

    async def test_cancel_delay(self, delay_manager: DelayManager):
        """Test cancelling a slot reports whether anything was pending."""
        delay = delay_manager.start_delay(DelayPhase.CLOSING, 10)

        assert delay_manager.cancel_delay(DelayPhase.CLOSING) is True
        assert delay_manager.cancel_delay(DelayPhase.CLOSING) is False
        assert delay_manager.get_delay(DelayPhase.CLOSING) is None

        with pytest.raises(DelayCancelledError):
            await delay.wait()

    async def test_cancel_delays_only_named_phases(self, delay_manager: DelayManager):
        """Test cancelling a set of slots leaves the others running."""
        opening = delay_manager.start_delay(DelayPhase.OPENING, 10)
        auto_close = delay_manager.start_delay(DelayPhase.AUTO_CLOSE, 10)
        sensor = delay_manager.start_delay(DelayPhase.SENSOR_OPENING, 10)

        count = delay_manager.cancel_delays(
            DelayPhase.OPENING, DelayPhase.CLOSING, DelayPhase.AUTO_CLOSE
        )

        assert count == 2
        assert opening.cancelled is True
        assert auto_close.cancelled is True
        assert sensor.is_active is True

        for delay in (opening, auto_close):
            with pytest.raises(DelayCancelledError):
                await delay.wait()

    async def test_cancel_all_delays(self, delay_manager: DelayManager):
        """Test cancelling every slot."""
        delays = [
            delay_manager.start_delay(DelayPhase.OPENING, 10),
            delay_manager.start_delay(DelayPhase.SENSOR_OPENING, 10),
        ]

        assert delay_manager.cancel_all_delays() == 2
        assert delay_manager.has_active_delay() is False

        for delay in delays:
            with pytest.raises(DelayCancelledError):
                await delay.wait()

    async def test_elapsed_delay_is_not_active(self, delay_manager: DelayManager):
        """Test an elapsed delay no longer counts as pending."""
        delay = delay_manager.start_delay(DelayPhase.OPENING, 0.01)
        await delay.wait()

        assert delay_manager.has_active_delay() is False
        assert delay_manager.cancel_delay(DelayPhase.OPENING) is False

    async def test_get_info(self, delay_manager: DelayManager):
        """Test diagnostic info."""
        delay_manager.start_delay(DelayPhase.AUTO_CLOSE, 60)

        info = delay_manager.get_info()

        assert info["active_delays"] == 1
        assert info["delays"]["auto_close"]["is_active"] is True
