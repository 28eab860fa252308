"""Tests for the device event emitter shared by every adapter."""

import logging

import pytest
from pydantic import TypeAdapter

from smarthome_hub.enums.events import DeviceEventType
from smarthome_hub.hardware.devices.observable import DeviceEventEmitter, ObservableDevice, get_device_logger
from smarthome_hub.hardware.errors import TransportError
from smarthome_hub.schemas.device import DeviceMessage
from smarthome_hub.schemas.events import (
    ConnectEvent,
    DeviceEvent,
    ErrorEvent,
    ReceiveEvent,
    SendEvent,
    WarningEvent,
)


class FakeDevice:
    def __init__(self, address="192.0.2.10"):
        self.address = address
        self.device_type = "fake"
        self.events = DeviceEventEmitter(self, self.device_type, self.address)


@pytest.fixture()
def device():
    return FakeDevice()


def test_fake_device_satisfies_protocol(device):
    assert isinstance(device, ObservableDevice)


def test_subscribers_only_see_their_event_type(device):
    connects, sends = [], []
    device.events.subscribe(DeviceEventType.CONNECT, connects.append)
    device.events.subscribe("send", sends.append)

    device.events.emit_connect("192.0.2.10:1")
    device.events.emit_send("192.0.2.10:1", "payload")

    assert len(connects) == 1 and isinstance(connects[0], ConnectEvent)
    assert len(sends) == 1 and isinstance(sends[0], SendEvent)
    assert sends[0].send_to == "192.0.2.10:1"
    assert sends[0].message == "payload"
    assert sends[0].source is device


def test_unsubscribe_stops_delivery(device):
    seen = []
    unsubscribe = device.events.subscribe(DeviceEventType.INFO, seen.append)

    device.events.emit_info("first")
    unsubscribe()
    device.events.emit_info("second")
    unsubscribe()

    assert [event.message for event in seen] == ["first"]


def test_subscribe_all_receives_every_kind_in_order(device):
    seen = []
    device.events.subscribe_all(seen.append)

    device.events.emit_connect()
    device.events.emit_info("hello")
    device.events.emit_warning("careful")
    device.events.emit_error(TransportError("boom"))
    device.events.emit_send("target", "out")
    device.events.emit_receive("origin", "in")
    device.events.emit_disconnect()

    assert [event.kind.value for event in seen] == [
        "connect",
        "info",
        "warning",
        "error",
        "send",
        "receive",
        "disconnect",
    ]


def test_listener_decorator_registers_callback(device):
    seen = []

    @device.events.listener(DeviceEventType.WARNING)
    def on_warning(event):
        seen.append(event)

    device.events.emit_warning("low battery")

    assert isinstance(seen[0], WarningEvent)
    assert seen[0].message == "low battery"


def test_error_event_carries_exception(device):
    seen = []
    device.events.subscribe(DeviceEventType.ERROR, seen.append)
    error = TransportError("socket closed")

    device.events.emit_error(error)

    assert isinstance(seen[0], ErrorEvent)
    assert seen[0].error is error
    assert seen[0].message == "socket closed"


def test_failing_subscriber_does_not_stop_others(device, caplog):
    seen = []

    def broken(_event):
        raise RuntimeError("observer bug")

    device.events.subscribe(DeviceEventType.RECEIVE, broken)
    device.events.subscribe(DeviceEventType.RECEIVE, seen.append)

    with caplog.at_level(logging.ERROR, logger="smarthome_hub.hardware.devices.observable"):
        device.events.emit_receive("origin", DeviceMessage(thing="a", property="b", value="c"))

    assert len(seen) == 1
    assert isinstance(seen[0], ReceiveEvent)
    assert "observer bug" in caplog.text


def test_emissions_are_logged_with_address_prefix(device, caplog):
    with caplog.at_level(logging.INFO, logger="smarthome_hub.devices"):
        device.events.emit_send("192.0.2.20:4000", DeviceMessage(thing="lamp", property="state", value="on"))

    record = caplog.records[-1]
    assert record.name == "smarthome_hub.devices.fake"
    assert record.getMessage().startswith("(192.0.2.10) Send to 192.0.2.20:4000 => ")
    assert "lamp" in record.getMessage()
    assert record.device_type == "fake"
    assert record.address == "192.0.2.10"


def test_device_logger_merges_extra(caplog):
    log = get_device_logger("fake", "host")

    with caplog.at_level(logging.INFO, logger="smarthome_hub.devices"):
        log.info("hello", extra={"thing": "lamp"})

    record = caplog.records[-1]
    assert record.getMessage() == "(host) hello"
    assert record.thing == "lamp"


def test_device_event_union_discriminates_on_kind(device):
    adapter = TypeAdapter(DeviceEvent)

    event = adapter.validate_python({"kind": DeviceEventType.WARNING, "source": device, "message": "m"})

    assert isinstance(event, WarningEvent)
