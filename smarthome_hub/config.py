"""
Configuration for the smart home hub
====================================
Runtime settings for the UDP controller, MQTT broker and InfluxDB adapters,
loaded from environment variables. Sets up the logging configuration as well.
"""

import logging
import os
import sys
from contextlib import suppress
from dataclasses import dataclass, field
from logging.handlers import RotatingFileHandler

from smarthome_hub.enums.events import MalformedDatagramPolicy
from smarthome_hub.schemas.device import ControllerOptions, InfluxDbOptions, MqttBrokerOptions

CONSOLE_HANDLER_NAME = "smarthome_hub_console"
FILE_HANDLER_NAME = "smarthome_hub_file"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer.") from None


@dataclass
class HubConfig:
    """Runtime configuration loaded from environment variables."""

    # Logging
    debug: bool = field(default_factory=lambda: _env_bool("SMARTHOME_DEBUG", False))
    log_level: str = field(default_factory=lambda: os.getenv("SMARTHOME_LOG_LEVEL", "INFO"))
    log_dir: str = field(default_factory=lambda: os.getenv("SMARTHOME_LOG_DIR", "logs"))
    log_to_file: bool = field(default_factory=lambda: _env_bool("SMARTHOME_LOG_TO_FILE", True))

    # UDP controller
    enable_controller: bool = field(default_factory=lambda: _env_bool("SMARTHOME_ENABLE_CONTROLLER", True))
    controller_host: str = field(default_factory=lambda: os.getenv("SMARTHOME_CONTROLLER_HOST", "localhost"))
    controller_input_port: int = field(default_factory=lambda: _env_int("SMARTHOME_CONTROLLER_INPUT_PORT", 7000))
    controller_output_port: int = field(default_factory=lambda: _env_int("SMARTHOME_CONTROLLER_OUTPUT_PORT", 7001))
    controller_malformed_policy: MalformedDatagramPolicy = field(
        default_factory=lambda: MalformedDatagramPolicy.parse(os.getenv("SMARTHOME_CONTROLLER_MALFORMED", "drop"))
    )

    # MQTT broker
    enable_mqtt: bool = field(default_factory=lambda: _env_bool("SMARTHOME_ENABLE_MQTT", True))
    mqtt_host: str = field(default_factory=lambda: os.getenv("SMARTHOME_MQTT_HOST", "localhost"))
    mqtt_port: int = field(default_factory=lambda: _env_int("SMARTHOME_MQTT_PORT", 1883))
    mqtt_topic: str = field(default_factory=lambda: os.getenv("SMARTHOME_MQTT_TOPIC", "smarthome"))
    mqtt_username: str = field(default_factory=lambda: os.getenv("SMARTHOME_MQTT_USERNAME", ""))
    mqtt_password: str = field(default_factory=lambda: os.getenv("SMARTHOME_MQTT_PASSWORD", ""))
    mqtt_client_id: str = field(default_factory=lambda: os.getenv("SMARTHOME_MQTT_CLIENT_ID", ""))
    mqtt_keepalive: int = field(default_factory=lambda: _env_int("SMARTHOME_MQTT_KEEPALIVE", 60))

    # InfluxDB
    enable_influxdb: bool = field(default_factory=lambda: _env_bool("SMARTHOME_ENABLE_INFLUXDB", True))
    influxdb_host: str = field(default_factory=lambda: os.getenv("SMARTHOME_INFLUXDB_HOST", "localhost"))
    influxdb_port: int = field(default_factory=lambda: _env_int("SMARTHOME_INFLUXDB_PORT", 8086))
    influxdb_database: str = field(default_factory=lambda: os.getenv("SMARTHOME_INFLUXDB_DATABASE", "smarthome"))
    influxdb_username: str = field(default_factory=lambda: os.getenv("SMARTHOME_INFLUXDB_USERNAME", ""))
    influxdb_password: str = field(default_factory=lambda: os.getenv("SMARTHOME_INFLUXDB_PASSWORD", ""))
    influxdb_timeout_ms: int = field(default_factory=lambda: _env_int("SMARTHOME_INFLUXDB_TIMEOUT_MS", 5000))

    def controller_options(self) -> ControllerOptions:
        return ControllerOptions(
            host=self.controller_host,
            virtual_input_port=self.controller_input_port,
            virtual_output_port=self.controller_output_port,
        )

    def mqtt_options(self) -> MqttBrokerOptions:
        return MqttBrokerOptions(
            host=self.mqtt_host,
            port=self.mqtt_port,
            topic=self.mqtt_topic,
            username=self.mqtt_username or None,
            password=self.mqtt_password or None,
            client_id=self.mqtt_client_id,
            keepalive=self.mqtt_keepalive,
        )

    def influxdb_options(self) -> InfluxDbOptions:
        return InfluxDbOptions(
            host=self.influxdb_host,
            port=self.influxdb_port,
            database=self.influxdb_database,
            username=self.influxdb_username,
            password=self.influxdb_password,
            timeout_ms=self.influxdb_timeout_ms,
        )


def validate_config(config: HubConfig) -> list[str]:
    """
    Validate the hub configuration and return a list of warnings.

    Args:
        config: HubConfig instance

    Returns:
        List of warning messages (empty if all valid)
    """
    warnings = []

    for name in ("controller_input_port", "controller_output_port", "mqtt_port", "influxdb_port"):
        port = getattr(config, name)
        if not 0 <= port <= 65535:
            warnings.append(f"{name} ({port}) is outside the valid port range 0-65535")

    if config.enable_controller and config.controller_output_port == 0:
        warnings.append("controller_output_port is 0; the controller cannot address an ephemeral port")

    if config.enable_mqtt and not config.mqtt_topic.strip("/"):
        warnings.append("mqtt_topic is empty; liveness marker would be published at '/connected'")

    if config.mqtt_password and not config.mqtt_username:
        warnings.append("mqtt_password is set without mqtt_username and will be ignored")

    if config.influxdb_timeout_ms < 1000:
        warnings.append(f"influxdb_timeout_ms ({config.influxdb_timeout_ms}) is very short. Recommended: 5000")

    if not (config.enable_controller or config.enable_mqtt or config.enable_influxdb):
        warnings.append("All adapters are disabled")

    if logging.getLevelName(config.log_level.upper()) == f"Level {config.log_level.upper()}":
        warnings.append(f"Unknown log level '{config.log_level}', falling back to INFO")

    return warnings


def setup_logging(config: HubConfig | None = None) -> None:
    """Setup logging configuration (console + rotating file), without duplicating handlers."""
    config = config or load_config()

    if config.debug:
        log_level = logging.DEBUG
    else:
        log_level = logging.getLevelName(config.log_level.upper())
        if not isinstance(log_level, int):
            log_level = logging.INFO

    root = logging.getLogger()
    root.setLevel(log_level)

    has_console = any(getattr(h, "name", "") == CONSOLE_HANDLER_NAME for h in root.handlers)
    has_file = any(getattr(h, "name", "") == FILE_HANDLER_NAME for h in root.handlers)
    added_handler = False

    stream = sys.stdout
    with suppress(AttributeError, ValueError):
        stream.reconfigure(encoding="utf-8", errors="replace")
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not has_console:
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = CONSOLE_HANDLER_NAME
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)
        added_handler = True

    if config.log_to_file and not has_file:
        os.makedirs(config.log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(config.log_dir, "smarthome_hub.log"),
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.name = FILE_HANDLER_NAME
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        added_handler = True

    for handler in root.handlers:
        if getattr(handler, "name", "") in {CONSOLE_HANDLER_NAME, FILE_HANDLER_NAME}:
            handler.setLevel(log_level)

    if added_handler:
        root.info(f"Logging initialized at level: {logging.getLevelName(log_level)}")

    # paho's own debug chatter (PINGREQ/PINGRESP every keepalive) is only useful when debugging
    if not config.debug:
        logging.getLogger("smarthome_hub.hardware.mqtt.mqtt_broker_adapter").setLevel(max(log_level, logging.INFO))


def load_config() -> HubConfig:
    """Helper for callers to load the configuration and log any validation warnings."""
    config = HubConfig()
    logger = logging.getLogger("config_loader")
    for warning in validate_config(config):
        logger.warning(warning)
    return config
