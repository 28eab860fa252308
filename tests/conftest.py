"""
Shared test fixtures for the smarthome_hub test suite.

Provides:
- An executor that runs submitted work inline (deterministic InfluxDB tests)
- An event recorder subscribed to every event type of an adapter
- A dummy paho client that records what the MQTT adapter does with it

Usage:
    def test_example(recorder):
        events = recorder(adapter)
        adapter.initialize()
        assert events.kinds() == ["connect"]
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future
from types import SimpleNamespace
from typing import Any

import pytest

from smarthome_hub.enums.events import DeviceEventType

# ---------------------------------------------------------------------------
# Logging: keep test output quiet
# ---------------------------------------------------------------------------
logging.getLogger("smarthome_hub").setLevel(logging.WARNING)


class ImmediateExecutor(Executor):
    """Runs every submitted callable on the calling thread."""

    def __init__(self) -> None:
        self.submitted = 0
        self.shut_down = False

    def submit(self, fn, /, *args, **kwargs):
        if self.shut_down:
            raise RuntimeError("cannot schedule new futures after shutdown")
        self.submitted += 1
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)
        return future

    def shutdown(self, wait=True, *, cancel_futures=False):
        self.shut_down = True


class EventRecorder:
    """Collects every event a device emits, thread-safely."""

    def __init__(self) -> None:
        self.events: list[Any] = []
        self._lock = threading.Lock()
        self._changed = threading.Condition(self._lock)

    def __call__(self, event: Any) -> None:
        with self._changed:
            self.events.append(event)
            self._changed.notify_all()

    def kinds(self) -> list[str]:
        return [event.kind.value for event in self.events]

    def of(self, kind: DeviceEventType | str) -> list[Any]:
        kind = DeviceEventType(kind)
        return [event for event in self.events if event.kind is kind]

    def wait_for(self, kind: DeviceEventType | str, count: int = 1, timeout: float = 2.0) -> list[Any]:
        """Block until ``count`` events of ``kind`` arrived (or the timeout elapsed)."""
        with self._changed:
            self._changed.wait_for(lambda: len(self.of(kind)) >= count, timeout=timeout)
        return self.of(kind)


class DummyMqttClient:
    """Stand-in for ``paho.mqtt.client.Client`` recording calls made by the adapter."""

    def __init__(self, publish_rc: int = 0, connected: bool = True) -> None:
        self.on_connect = None
        self.on_disconnect = None
        self.on_connect_fail = None
        self.publish_rc = publish_rc
        self.publish_error: Exception | None = None
        self.connected = connected
        self.published: list[tuple[str, Any, int, bool]] = []
        self.connect_args: tuple | None = None
        self.loop_started = False
        self.loop_stopped = False
        self.disconnected = False
        self.waited: list[float | None] = []
        self.logger = None

    def enable_logger(self, logger=None):
        self.logger = logger

    def connect_async(self, host, port=1883, keepalive=60, *args, **kwargs):
        self.connect_args = (host, port, keepalive)

    def loop_start(self):
        self.loop_started = True

    def loop_stop(self, *args, **kwargs):
        self.loop_stopped = True

    def disconnect(self, *args, **kwargs):
        self.disconnected = True
        return 0

    def is_connected(self):
        return self.connected

    def publish(self, topic, payload=None, qos=0, retain=False, *args, **kwargs):
        if self.publish_error is not None:
            raise self.publish_error
        self.published.append((topic, payload, qos, retain))
        return SimpleNamespace(rc=self.publish_rc, wait_for_publish=lambda timeout=None: self.waited.append(timeout))


@pytest.fixture()
def immediate_executor() -> ImmediateExecutor:
    return ImmediateExecutor()


@pytest.fixture()
def recorder():
    """Factory fixture: ``recorder(adapter)`` subscribes a fresh EventRecorder to all of its events."""

    def _attach(device) -> EventRecorder:
        events = EventRecorder()
        device.events.subscribe_all(events)
        return events

    return _attach


@pytest.fixture()
def dummy_mqtt_client() -> DummyMqttClient:
    return DummyMqttClient()
