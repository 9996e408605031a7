"""Config flow for the Garage door opener integration."""

from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol

from homeassistant.components import mqtt
from homeassistant.config_entries import ConfigFlow, ConfigFlowResult
from homeassistant.const import CONF_NAME
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers import selector

from .command_dispatcher import is_valid_command
from .const import (
    CONF_AUTO_CLOSE_DELAY,
    CONF_CLOSE_CODE,
    CONF_CLOSE_DURATION,
    CONF_DOOR_SENSOR_ENTITY,
    CONF_DOOR_SENSOR_TOPIC,
    CONF_LOCK_CODE,
    CONF_OPEN_CLOSE_DURATION,
    CONF_OPEN_CODE,
    CONF_OPEN_DURATION,
    CONF_REMOTE_ENTITY,
    CONF_UNLOCK_CODE,
    DEFAULT_AUTO_CLOSE_DELAY,
    DEFAULT_NAME,
    DEFAULT_OPEN_CLOSE_DURATION,
    DOMAIN,
)

_LOGGER = logging.getLogger(__name__)

CODE_KEYS = (CONF_OPEN_CODE, CONF_CLOSE_CODE, CONF_LOCK_CODE, CONF_UNLOCK_CODE)

_TEXT = selector.TextSelector(selector.TextSelectorConfig(multiline=True))


def get_user_schema(data: dict[str, Any] | None = None) -> vol.Schema:
    """Get the basic user schema with optional default values.

    Codes are hex strings; the lock codes and both sensor sources are optional.
    """
    data = data or {}

    schema_dict = {
        vol.Optional(CONF_NAME, default=data.get(CONF_NAME, DEFAULT_NAME)): str,
        vol.Required(
            CONF_REMOTE_ENTITY, default=data.get(CONF_REMOTE_ENTITY, vol.UNDEFINED)
        ): selector.EntitySelector(selector.EntitySelectorConfig(domain="remote")),
        vol.Required(
            CONF_OPEN_CODE, default=data.get(CONF_OPEN_CODE, vol.UNDEFINED)
        ): _TEXT,
        vol.Required(
            CONF_CLOSE_CODE, default=data.get(CONF_CLOSE_CODE, vol.UNDEFINED)
        ): _TEXT,
    }

    # Only add defaults for optional fields if they have values
    for key in (CONF_LOCK_CODE, CONF_UNLOCK_CODE, CONF_DOOR_SENSOR_TOPIC):
        if data.get(key):
            schema_dict[vol.Optional(key, default=data[key])] = _TEXT
        else:
            schema_dict[vol.Optional(key)] = _TEXT

    sensor_selector = selector.EntitySelector(
        selector.EntitySelectorConfig(domain=["binary_sensor", "input_boolean"])
    )
    if data.get(CONF_DOOR_SENSOR_ENTITY):
        schema_dict[
            vol.Optional(CONF_DOOR_SENSOR_ENTITY, default=data[CONF_DOOR_SENSOR_ENTITY])
        ] = sensor_selector
    else:
        schema_dict[vol.Optional(CONF_DOOR_SENSOR_ENTITY)] = sensor_selector

    return vol.Schema(schema_dict)


def get_advanced_schema(data: dict[str, Any] | None = None) -> vol.Schema:
    """Get the timing options schema."""
    data = data or {}
    duration = vol.All(vol.Coerce(float), vol.Range(min=0, max=600))

    return vol.Schema(
        {
            vol.Optional(
                CONF_OPEN_CLOSE_DURATION,
                default=data.get(CONF_OPEN_CLOSE_DURATION, DEFAULT_OPEN_CLOSE_DURATION),
            ): vol.All(vol.Coerce(float), vol.Range(min=1, max=600)),
            vol.Optional(
                CONF_OPEN_DURATION, default=data.get(CONF_OPEN_DURATION, 0)
            ): duration,
            vol.Optional(
                CONF_CLOSE_DURATION, default=data.get(CONF_CLOSE_DURATION, 0)
            ): duration,
            vol.Optional(
                CONF_AUTO_CLOSE_DELAY,
                default=data.get(CONF_AUTO_CLOSE_DELAY, DEFAULT_AUTO_CLOSE_DELAY),
            ): vol.All(vol.Coerce(float), vol.Range(min=0, max=86400)),
        }
    )


STEP_USER_DATA_SCHEMA = get_user_schema()
STEP_ADVANCED_DATA_SCHEMA = get_advanced_schema()

# Keys owned by the forms; other entry keys survive a reconfigure
FLOW_KEYS = {
    marker.schema
    for marker in (*STEP_USER_DATA_SCHEMA.schema, *STEP_ADVANCED_DATA_SCHEMA.schema)
}


async def validate_input(hass: HomeAssistant, data: dict[str, Any]) -> dict[str, Any]:
    """Validate the user input.

    Data has the keys from STEP_USER_DATA_SCHEMA with values provided by the user.
    """
    remote = data.get(CONF_REMOTE_ENTITY)
    if not remote or not hass.states.get(remote):
        raise CannotConnect(f"Remote entity {remote} not found")

    sensor_entity = data.get(CONF_DOOR_SENSOR_ENTITY)
    if sensor_entity and not hass.states.get(sensor_entity):
        raise CannotConnect(f"Door sensor {sensor_entity} not found")

    topic = data.get(CONF_DOOR_SENSOR_TOPIC)
    if topic:
        try:
            mqtt.valid_subscribe_topic(topic)
        except vol.Invalid as err:
            raise InvalidTopic(f"Invalid MQTT topic {topic}") from err

    for key in CODE_KEYS:
        if not is_valid_command(data.get(key)):
            raise InvalidCommand(f"Code '{key}' is not valid hex data")

    return {"title": data.get(CONF_NAME) or DEFAULT_NAME}


class GarageDoorConfigFlow(ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Garage door opener."""

    VERSION = 1

    def __init__(self) -> None:
        """Initialize the config flow."""
        self._basic_config: dict[str, Any] = {}

    async def _async_validate(
        self, user_input: dict[str, Any], errors: dict[str, str]
    ) -> bool:
        try:
            await validate_input(self.hass, user_input)
        except CannotConnect:
            errors["base"] = "cannot_connect"
        except InvalidCommand:
            errors["base"] = "invalid_code"
        except InvalidTopic:
            errors[CONF_DOOR_SENSOR_TOPIC] = "invalid_topic"
        except Exception:
            _LOGGER.exception("Unexpected exception")
            errors["base"] = "unknown"
        return not errors

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Handle the initial step."""
        errors: dict[str, str] = {}
        if user_input is not None and await self._async_validate(user_input, errors):
            self._basic_config = user_input
            return await self.async_step_advanced()

        return self.async_show_form(
            step_id="user",
            data_schema=STEP_USER_DATA_SCHEMA,
            errors=errors,
        )

    async def async_step_advanced(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Handle the timing step."""
        if user_input is not None:
            config_data = {**self._basic_config, **user_input}

            name = config_data.get(CONF_NAME) or DEFAULT_NAME
            await self.async_set_unique_id(
                f"{name}:{config_data[CONF_REMOTE_ENTITY]}"
            )
            self._abort_if_unique_id_configured()

            return self.async_create_entry(title=name, data=config_data)

        return self.async_show_form(
            step_id="advanced",
            data_schema=STEP_ADVANCED_DATA_SCHEMA,
        )

    async def async_step_import(self, import_data: dict[str, Any]) -> ConfigFlowResult:
        """Create an entry from YAML configuration."""
        name = import_data.get(CONF_NAME) or DEFAULT_NAME
        await self.async_set_unique_id(f"{name}:{import_data[CONF_REMOTE_ENTITY]}")
        self._abort_if_unique_id_configured()
        return self.async_create_entry(title=name, data=import_data)

    async def async_step_reconfigure(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Handle reconfiguration - basic settings."""
        config_entry = self._get_reconfigure_entry()

        errors: dict[str, str] = {}
        if user_input is not None and await self._async_validate(user_input, errors):
            self._basic_config = user_input
            return await self.async_step_reconfigure_advanced()

        return self.async_show_form(
            step_id="reconfigure",
            data_schema=get_user_schema(config_entry.data),
            errors=errors,
            description_placeholders={"name": config_entry.title},
        )

    async def async_step_reconfigure_advanced(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Handle reconfiguration - timing settings."""
        config_entry = self._get_reconfigure_entry()

        if user_input is not None:
            return self.async_update_reload_and_abort(
                config_entry,
                data={
                    **{
                        key: value
                        for key, value in config_entry.data.items()
                        if key not in FLOW_KEYS
                    },
                    **self._basic_config,
                    **user_input,
                },
                reason="reconfigure_successful",
            )

        return self.async_show_form(
            step_id="reconfigure_advanced",
            data_schema=get_advanced_schema(config_entry.data),
            description_placeholders={"name": config_entry.title},
        )


class CannotConnect(HomeAssistantError):
    """Error to indicate a referenced entity does not exist."""


class InvalidCommand(HomeAssistantError):
    """Error to indicate a code is not valid hex data."""


class InvalidTopic(HomeAssistantError):
    """Error to indicate the sensor topic is not a valid MQTT topic."""
