"""
Hub runner.

Wires the configured adapters together: every line received from the UDP
controller is republished once to MQTT (topic = property) and written once to
InfluxDB (measurement = property, field ``value``).
"""

from __future__ import annotations

import logging
import signal
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from smarthome_hub.config import HubConfig, load_config, setup_logging
from smarthome_hub.enums.events import DeviceEventType
from smarthome_hub.hardware.controller.udp_controller import UdpControllerAdapter
from smarthome_hub.hardware.devices.things import NamedThing
from smarthome_hub.hardware.mqtt.mqtt_broker_adapter import MqttBrokerAdapter
from smarthome_hub.hardware.timeseries.influxdb_adapter import InfluxDbAdapter
from smarthome_hub.schemas.events import ReceiveEvent

logger = logging.getLogger(__name__)

INFLUX_VALUE_FIELD = "value"


@dataclass
class HubAdapters:
    """The adapters enabled by configuration (None when disabled)."""

    controller: Optional[UdpControllerAdapter] = None
    mqtt: Optional[MqttBrokerAdapter] = None
    influxdb: Optional[InfluxDbAdapter] = None

    def enabled(self) -> list:
        return [adapter for adapter in (self.controller, self.mqtt, self.influxdb) if adapter is not None]


def build_adapters(config: HubConfig) -> HubAdapters:
    """Construct (but do not initialize) the adapters enabled in ``config``."""
    adapters = HubAdapters()
    if config.enable_controller:
        adapters.controller = UdpControllerAdapter(
            config.controller_options(), malformed_policy=config.controller_malformed_policy
        )
    if config.enable_mqtt:
        adapters.mqtt = MqttBrokerAdapter(config.mqtt_options())
    if config.enable_influxdb:
        adapters.influxdb = InfluxDbAdapter(config.influxdb_options())
    return adapters


class HubRunner:
    """
    Starts the adapters and bridges controller lines to MQTT and InfluxDB.

    Responsibilities:
    - Initialize every enabled adapter once
    - Forward controller ``receive`` events one-to-one
    - Close adapters on stop
    """

    def __init__(self, adapters: HubAdapters) -> None:
        self.adapters = adapters
        self._things: dict[str, NamedThing] = {}
        self._unsubscribe: list[Callable[[], None]] = []
        self._stopped = threading.Event()

    def thing_for(self, name: str) -> NamedThing:
        """Return the registered NamedThing for a controller-side name, or a bare one for unknown names."""
        thing = self._things.get(name)
        if thing is not None:
            return thing
        address = self.adapters.controller.address if self.adapters.controller else name
        return NamedThing(address=address, name=name)

    def register_thing(self, thing: NamedThing) -> None:
        """Use ``thing`` (with its location/description) for lines naming it."""
        self._things[thing.name] = thing

    def start(self) -> None:
        controller = self.adapters.controller
        if controller is not None:
            self._unsubscribe.append(controller.events.subscribe(DeviceEventType.RECEIVE, self.forward))
        for adapter in self.adapters.enabled():
            adapter.initialize()
        logger.info("Hub started with %d adapter(s)", len(self.adapters.enabled()))

    def forward(self, event: ReceiveEvent) -> None:
        message = event.message
        thing = self.thing_for(message.thing)
        if self.adapters.mqtt is not None:
            self.adapters.mqtt.send(thing, message.property, message.value)
        if self.adapters.influxdb is not None:
            self.adapters.influxdb.send(thing, message.property, INFLUX_VALUE_FIELD, message.value)

    def stop(self) -> None:
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe.clear()
        for adapter in self.adapters.enabled():
            try:
                adapter.close()
            except Exception as exc:
                logger.error("Error closing %s (%s): %s", adapter.device_type, adapter.address, exc)
        self._stopped.set()
        logger.info("Hub stopped")

    def wait(self) -> None:
        self._stopped.wait()


def main() -> None:
    """Console entry point: run the hub until interrupted."""
    config = load_config()
    setup_logging(config)
    runner = HubRunner(build_adapters(config))

    def _handle_signal(signum, _frame) -> None:
        logger.info("Received signal %s, shutting down", signum)
        runner.stop()

    signal.signal(signal.SIGTERM, _handle_signal)
    runner.start()
    try:
        runner.wait()
    except KeyboardInterrupt:
        runner.stop()


if __name__ == "__main__":
    main()
