"""The Garage door opener integration."""

from __future__ import annotations

import logging

import voluptuous as vol
from homeassistant.components import mqtt
from homeassistant.config_entries import ConfigEntry, SOURCE_IMPORT
from homeassistant.const import CONF_NAME, Platform
from homeassistant.core import HomeAssistant, ServiceCall
from homeassistant.helpers import config_validation as cv

from .const import (
    ATTR_CONFIG_ENTRY_ID,
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
    SERVICE_RESET,
)
from .coordinator import GarageDoorCoordinator

_LOGGER = logging.getLogger(__name__)

_PLATFORMS: list[Platform] = [Platform.COVER, Platform.LOCK, Platform.SENSOR]

_HEX_CODE = vol.Any(cv.string, vol.All(cv.ensure_list, [cv.string]))
_DURATION = vol.All(vol.Coerce(float), vol.Range(min=0))

MQTT_TOPIC_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_IDENTIFIER): cv.string,
        vol.Required(CONF_TOPIC): mqtt.valid_subscribe_topic,
    }
)

# YAML configuration schema
DOOR_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_NAME, default=DEFAULT_NAME): cv.string,
        vol.Required(CONF_REMOTE_ENTITY): cv.entity_id,
        vol.Required(CONF_OPEN_CODE): _HEX_CODE,
        vol.Required(CONF_CLOSE_CODE): _HEX_CODE,
        vol.Optional(CONF_LOCK_CODE): _HEX_CODE,
        vol.Optional(CONF_UNLOCK_CODE): _HEX_CODE,
        vol.Optional(
            CONF_OPEN_CLOSE_DURATION, default=DEFAULT_OPEN_CLOSE_DURATION
        ): _DURATION,
        vol.Optional(CONF_OPEN_DURATION): _DURATION,
        vol.Optional(CONF_CLOSE_DURATION): _DURATION,
        vol.Optional(CONF_AUTO_CLOSE_DELAY, default=DEFAULT_AUTO_CLOSE_DELAY): _DURATION,
        vol.Optional(CONF_DOOR_SENSOR_TOPIC): mqtt.valid_subscribe_topic,
        vol.Optional(CONF_DOOR_SENSOR_ENTITY): cv.entity_id,
        vol.Optional(CONF_MQTT_TOPICS, default=[]): vol.All(
            cv.ensure_list, [MQTT_TOPIC_SCHEMA]
        ),
    }
)

CONFIG_SCHEMA = vol.Schema(
    {DOMAIN: vol.All(cv.ensure_list, [DOOR_SCHEMA])},
    extra=vol.ALLOW_EXTRA,
)

SERVICE_RESET_SCHEMA = vol.Schema(
    {
        vol.Required(ATTR_CONFIG_ENTRY_ID): cv.string,
    }
)


async def async_setup(hass: HomeAssistant, config: dict) -> bool:
    """Set up the Garage door opener component from YAML."""
    if DOMAIN in config:
        for door_config in config[DOMAIN]:
            _LOGGER.info("Importing garage door '%s' from YAML", door_config[CONF_NAME])
            hass.async_create_task(
                hass.config_entries.flow.async_init(
                    DOMAIN,
                    context={"source": SOURCE_IMPORT},
                    data=dict(door_config),
                )
            )

    async def handle_reset(call: ServiceCall) -> None:
        """Cancel pending sequences of one door."""
        entry = hass.config_entries.async_get_entry(call.data[ATTR_CONFIG_ENTRY_ID])
        if entry is None or entry.domain != DOMAIN or not getattr(
            entry, "runtime_data", None
        ):
            _LOGGER.warning(
                "No loaded garage door for entry %s", call.data[ATTR_CONFIG_ENTRY_ID]
            )
            return
        await entry.runtime_data.async_reset()

    hass.services.async_register(
        DOMAIN,
        SERVICE_RESET,
        handle_reset,
        schema=SERVICE_RESET_SCHEMA,
    )

    return True


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up a garage door from a config entry."""
    coordinator = GarageDoorCoordinator(hass, entry)

    # Store coordinator in runtime_data
    entry.runtime_data = coordinator

    # Forward setup to platforms; the cover restores the stored state here
    await hass.config_entries.async_forward_entry_setups(entry, _PLATFORMS)

    # Set up the sensor feed on top of the restored state
    await coordinator.async_setup_listeners()

    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    unloaded = await hass.config_entries.async_unload_platforms(entry, _PLATFORMS)

    if unloaded and getattr(entry, "runtime_data", None):
        entry.runtime_data.async_cleanup_listeners()

    return unloaded
