"""
Smart home integration hub.

Normalizes connect/disconnect/send/receive/error/warning events across a UDP
home-automation controller, an MQTT broker and an InfluxDB time-series store.
"""

from smarthome_hub.enums.events import DeviceEventType, MalformedDatagramPolicy
from smarthome_hub.hardware.controller.udp_controller import UdpControllerAdapter
from smarthome_hub.hardware.devices.observable import DeviceEventEmitter
from smarthome_hub.hardware.devices.things import NamedThing
from smarthome_hub.hardware.mqtt.mqtt_broker_adapter import MqttBrokerAdapter
from smarthome_hub.hardware.timeseries.influxdb_adapter import InfluxDbAdapter

__version__ = "1.0.0"

__all__ = [
    "DeviceEventEmitter",
    "DeviceEventType",
    "InfluxDbAdapter",
    "MalformedDatagramPolicy",
    "MqttBrokerAdapter",
    "NamedThing",
    "UdpControllerAdapter",
]
