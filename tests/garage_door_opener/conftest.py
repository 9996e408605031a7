"""Fixtures for Garage Door Opener integration tests."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from homeassistant.const import CONF_NAME
from homeassistant.core import HomeAssistant, ServiceCall
from homeassistant.util import dt as dt_util
from pytest_homeassistant_custom_component.common import (
    MockConfigEntry,
    async_fire_time_changed_exact,
)

from custom_components.garage_door_opener.command_dispatcher import CommandDispatcher
from custom_components.garage_door_opener.const import (
    CONF_AUTO_CLOSE_DELAY,
    CONF_CLOSE_CODE,
    CONF_CLOSE_DURATION,
    CONF_LOCK_CODE,
    CONF_OPEN_CLOSE_DURATION,
    CONF_OPEN_CODE,
    CONF_OPEN_DURATION,
    CONF_REMOTE_ENTITY,
    CONF_UNLOCK_CODE,
    DOMAIN,
)
from custom_components.garage_door_opener.delay_manager import DelayManager
from custom_components.garage_door_opener.door_state import (
    DoorAccessoryState,
    StateSurface,
)

OPEN_CODE = "2600500000012a9213"
CLOSE_CODE = "2600500000012a9314"
LOCK_CODE = "2600500000012a9415"
UNLOCK_CODE = "2600500000012a9516"


def async_mock_service(
    hass: HomeAssistant, domain: str, service: str
) -> list[ServiceCall]:
    """Mock a service and return a list to track calls."""
    calls = []

    async def mock_service_handler(call: ServiceCall) -> None:
        """Handle service calls."""
        calls.append(call)

    hass.services.async_register(domain, service, mock_service_handler)
    return calls


@pytest.fixture
def advance_time(hass: HomeAssistant) -> Callable[[float], Awaitable[None]]:
    """Return a helper firing every timer due within ``seconds`` from now.

    Delays are scheduled on the event loop clock, so the offset is measured
    from the moment the helper is called, not from the start of the test.
    """

    async def _advance(seconds: float) -> None:
        async_fire_time_changed_exact(hass, dt_util.utcnow() + timedelta(seconds=seconds))
        await hass.async_block_till_done()

    return _advance


@pytest.fixture
def door_state() -> DoorAccessoryState:
    """Return a fresh state record (door closed, lock unsecured)."""
    return DoorAccessoryState()


@pytest.fixture
async def delay_manager(hass: HomeAssistant):
    """Return a delay manager that cancels its delays after the test."""
    manager = DelayManager(hass)
    yield manager
    manager.cancel_all_delays()
    await hass.async_block_till_done()


@pytest.fixture
def mock_dispatcher() -> MagicMock:
    """Return a dispatcher whose sends succeed immediately."""
    dispatcher = MagicMock(spec=CommandDispatcher)
    dispatcher.async_send = AsyncMock()
    return dispatcher


@pytest.fixture
def mock_surface() -> MagicMock:
    """Return a state surface recording refreshes."""
    return MagicMock(spec=StateSurface)


@pytest.fixture
def mock_config_data() -> dict[str, Any]:
    """Return mock configuration data."""
    return {
        CONF_NAME: "Test Garage",
        CONF_REMOTE_ENTITY: "remote.broadlink",
        CONF_OPEN_CODE: OPEN_CODE,
        CONF_CLOSE_CODE: CLOSE_CODE,
        CONF_LOCK_CODE: LOCK_CODE,
        CONF_UNLOCK_CODE: UNLOCK_CODE,
        CONF_OPEN_CLOSE_DURATION: 8,
        CONF_OPEN_DURATION: 5,
        CONF_CLOSE_DURATION: 3,
        CONF_AUTO_CLOSE_DELAY: 0,
    }


@pytest.fixture
def mock_config_entry(mock_config_data: dict[str, Any]) -> MockConfigEntry:
    """Return a mocked config entry."""
    return MockConfigEntry(
        domain=DOMAIN,
        title=mock_config_data[CONF_NAME],
        data=mock_config_data,
        entry_id="test_entry_id",
    )
