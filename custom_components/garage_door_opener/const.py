"""Constants for the Garage door opener integration."""

DOMAIN = "garage_door_opener"

# Configuration keys
CONF_REMOTE_ENTITY = "remote_entity"  # Broadlink remote that transmits the codes
CONF_OPEN_CODE = "open"
CONF_CLOSE_CODE = "close"
CONF_LOCK_CODE = "lock"
CONF_UNLOCK_CODE = "unlock"
CONF_OPEN_DURATION = "open_duration"
CONF_CLOSE_DURATION = "close_duration"
CONF_OPEN_CLOSE_DURATION = "open_close_duration"  # Fallback for both directions
CONF_AUTO_CLOSE_DELAY = "auto_close_delay"  # 0 disables auto-close
CONF_DOOR_SENSOR_TOPIC = "door_sensor_topic"  # MQTT topic publishing on/off
CONF_DOOR_SENSOR_ENTITY = "door_sensor_entity"  # Existing binary sensor
CONF_MQTT_TOPICS = "mqtt_topics"  # YAML only: list of identifier/topic pairs
CONF_IDENTIFIER = "identifier"
CONF_TOPIC = "topic"

# Default values
DEFAULT_NAME = "Garage door"
DEFAULT_OPEN_CLOSE_DURATION = 8
DEFAULT_AUTO_CLOSE_DELAY = 0

# Sensor feed
DOOR_OPEN_SENSOR_IDENTIFIER = "door_open_sensor_state"
SENSOR_PAYLOAD_ON = "on"
SENSOR_PAYLOAD_OFF = "off"

# Services
SERVICE_RESET = "reset"
ATTR_CONFIG_ENTRY_ID = "config_entry_id"
