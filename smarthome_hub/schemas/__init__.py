"""
Schemas Module
==============

Pydantic models for adapter options, wire data and device events.
"""

from smarthome_hub.schemas.device import (
    ControllerOptions,
    DeviceMessage,
    InfluxDbOptions,
    InfluxMeasurement,
    MeasurementEnvelope,
    MqttBrokerOptions,
    PublishedMessage,
)
from smarthome_hub.schemas.events import (
    ConnectEvent,
    DeviceEvent,
    DisconnectEvent,
    ErrorEvent,
    InfoEvent,
    ReceiveEvent,
    SendEvent,
    WarningEvent,
)

__all__ = [
    "ControllerOptions",
    "DeviceMessage",
    "InfluxDbOptions",
    "InfluxMeasurement",
    "MeasurementEnvelope",
    "MqttBrokerOptions",
    "PublishedMessage",
    "ConnectEvent",
    "DeviceEvent",
    "DisconnectEvent",
    "ErrorEvent",
    "InfoEvent",
    "ReceiveEvent",
    "SendEvent",
    "WarningEvent",
]
