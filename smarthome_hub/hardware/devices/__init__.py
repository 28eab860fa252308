from smarthome_hub.hardware.devices.observable import (
    DeviceEventEmitter,
    DeviceLogAdapter,
    ObservableDevice,
    get_device_logger,
)
from smarthome_hub.hardware.devices.things import NamedThing

__all__ = ["DeviceEventEmitter", "DeviceLogAdapter", "NamedThing", "ObservableDevice", "get_device_logger"]
