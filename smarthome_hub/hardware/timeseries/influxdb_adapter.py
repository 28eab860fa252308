"""
InfluxDB adapter.

Writes one single-field point per ``send`` through the v1 compatibility API
(``database`` doubles as the bucket). Probing and writing run on a single
worker thread so ``initialize()``/``send()`` return immediately and writes
keep their call order.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from contextlib import suppress
from typing import Any, Optional

from influxdb_client import InfluxDBClient, Point
from influxdb_client.client.write_api import SYNCHRONOUS

from smarthome_hub.hardware.devices.observable import DeviceEventEmitter
from smarthome_hub.hardware.devices.things import NamedThing
from smarthome_hub.hardware.errors import SetupError, TransportError
from smarthome_hub.schemas.device import InfluxDbOptions, InfluxMeasurement
from smarthome_hub.utils.concurrency import synchronized

logger = logging.getLogger(__name__)

DEVICE_TYPE = "influxdb"
V1_COMPAT_ORG = "-"
NOT_INITIALIZED_MESSAGE = "InfluxDB not initialized, unable to write measurement."


def build_point(measurement: InfluxMeasurement) -> Point:
    """Convert a measurement model into an influxdb-client Point."""
    point = Point(measurement.measurement)
    for key, tag in measurement.tags.items():
        point = point.tag(key, tag)
    for key, value in measurement.fields.items():
        point = point.field(key, value)
    return point


class InfluxDbAdapter:
    """
    Adapter writing thing measurements to InfluxDB.

    Attributes:
        address (str): InfluxDB hostname or IP.
        port (int): HTTP API port.
        database (str): Target database.
        initialized (bool): True once the client exists, whatever the probe reported.
        events (DeviceEventEmitter): Event channel for observers.
    """

    def __init__(self, options: InfluxDbOptions, executor: Optional[Executor] = None) -> None:
        self.device_type = DEVICE_TYPE
        self.address = options.host
        self.port = options.port
        self.database = options.database
        self.initialized = False
        self.events = DeviceEventEmitter(self, self.device_type, self.address)
        self._options = options
        self._lock = threading.Lock()
        self._executor = executor
        self._owns_executor = executor is None
        self._client: Optional[InfluxDBClient] = None
        self._write_api: Any = None

    @property
    def url(self) -> str:
        return f"http://{self.address}:{self.port}"

    @property
    def database_url(self) -> str:
        return f"{self.url}/{self.database}"

    @property
    def write_target(self) -> str:
        return f"{self.address}:{self.port}"

    @synchronized
    def initialize(self) -> None:
        """Create the client and start the health probe. No-op once initialized."""
        if self.initialized:
            return
        client: Optional[InfluxDBClient] = None
        try:
            client = InfluxDBClient(
                url=self.url,
                token=f"{self._options.username}:{self._options.password}",
                org=V1_COMPAT_ORG,
                timeout=self._options.timeout_ms,
            )
            write_api = client.write_api(write_options=SYNCHRONOUS)
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"influxdb-{self.address}")
        except Exception as exc:
            if client is not None:
                with suppress(Exception):
                    client.close()
            self.events.emit_error(SetupError.wrap(f"Unable to set up InfluxDB client for {self.database_url}", exc))
            return
        self._client = client
        self._write_api = write_api
        self.initialized = True
        try:
            probe = self._executor.submit(self._probe)
        except RuntimeError as exc:
            self.events.emit_error(TransportError.wrap(f"Unable to probe {self.database_url}", exc))
            return
        probe.add_done_callback(self._on_probe_done)

    def send(self, thing: NamedThing, measurement: str, field: str, value: Any) -> None:
        """
        Write one measurement for a thing.

        The ``send`` event is emitted as soon as the write is queued; a failing
        write is reported later as a separate ``error`` event.

        Args:
            thing: The thing the value belongs to (name/location/description become tags).
            measurement: The InfluxDB measurement.
            field: The value field name.
            value: The value itself.
        """
        if not self.initialized or self._executor is None:
            self.events.emit_warning(NOT_INITIALIZED_MESSAGE)
            return
        data = InfluxMeasurement(
            measurement=measurement,
            fields={field: value},
            tags={"name": thing.name, "location": thing.location, "description": thing.description},
        )
        try:
            pending = self._executor.submit(self._write, data)
        except RuntimeError as exc:
            self.events.emit_error(TransportError.wrap(f"Unable to queue write to {self.write_target}", exc))
            return
        pending.add_done_callback(self._on_write_done)
        self.events.emit_send(self.write_target, data)

    def close(self) -> None:
        """Finish queued writes, then release the executor and the client."""
        if self._executor is not None and self._owns_executor:
            self._executor.shutdown(wait=True)
        if self._write_api is not None:
            self._write_api.close()
        if self._client is not None:
            self._client.close()

    def _probe(self) -> list[bool]:
        """Return the online state of every host the client reaches (a single host here)."""
        return [bool(self._client.ping())]

    def _write(self, data: InfluxMeasurement) -> None:
        self._write_api.write(bucket=self.database, org=V1_COMPAT_ORG, record=build_point(data))

    def _on_probe_done(self, probe: Future) -> None:
        error = probe.exception()
        if error is not None:
            self.events.emit_error(TransportError.wrap(f"Health probe to {self.database_url} failed", error))
            return
        hosts = probe.result()
        if any(hosts):
            self.events.emit_connect(self.database_url)
        else:
            self.events.emit_disconnect(self.database_url)

    def _on_write_done(self, pending: Future) -> None:
        error = pending.exception()
        if error is not None:
            self.events.emit_error(TransportError.wrap(f"Write to {self.write_target} failed", error))
