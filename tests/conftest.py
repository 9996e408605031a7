"""Shared pytest fixtures for the Garage door opener tests."""

import pytest


@pytest.fixture(autouse=True)
async def auto_enable_custom_integrations(enable_custom_integrations):
    """Load integrations from custom_components in every test."""
    return
