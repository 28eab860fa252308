from unittest.mock import MagicMock, patch

import pytest

from smarthome_hub.hardware.devices.things import NamedThing
from smarthome_hub.hardware.errors import SetupError, TransportError
from smarthome_hub.hardware.timeseries.influxdb_adapter import (
    NOT_INITIALIZED_MESSAGE,
    InfluxDbAdapter,
    build_point,
)
from smarthome_hub.schemas.device import InfluxDbOptions, InfluxMeasurement

CLIENT = "smarthome_hub.hardware.timeseries.influxdb_adapter.InfluxDBClient"


@pytest.fixture()
def options():
    return InfluxDbOptions(host="influx.local", port=8086, database="home", username="hub", password="secret")


@pytest.fixture()
def influx_client():
    client = MagicMock(name="InfluxDBClient()")
    client.ping.return_value = True
    return client


def start(options, executor, influx_client, recorder):
    adapter = InfluxDbAdapter(options, executor=executor)
    events = recorder(adapter)
    with patch(CLIENT, return_value=influx_client) as client_cls:
        adapter.initialize()
    return adapter, events, client_cls


def test_initialize_uses_v1_compatibility_credentials(options, immediate_executor, influx_client, recorder):
    adapter, events, client_cls = start(options, immediate_executor, influx_client, recorder)

    client_cls.assert_called_once_with(url="http://influx.local:8086", token="hub:secret", org="-", timeout=5000)
    assert adapter.initialized is True
    assert events.kinds() == ["connect"]


def test_offline_probe_emits_disconnect_but_stays_initialized(options, immediate_executor, influx_client, recorder):
    influx_client.ping.return_value = False

    adapter, events, _ = start(options, immediate_executor, influx_client, recorder)

    assert adapter.initialized is True
    assert events.kinds() == ["disconnect"]


def test_probe_exception_emits_error(options, immediate_executor, influx_client, recorder):
    influx_client.ping.side_effect = ConnectionError("connection refused")

    adapter, events, _ = start(options, immediate_executor, influx_client, recorder)

    assert adapter.initialized is True
    assert events.kinds() == ["error"]
    assert isinstance(events.events[0].error, TransportError)
    assert isinstance(events.events[0].error.__cause__, ConnectionError)


def test_client_construction_failure_reports_setup_error(options, immediate_executor, recorder):
    adapter = InfluxDbAdapter(options, executor=immediate_executor)
    events = recorder(adapter)

    with patch(CLIENT, side_effect=ValueError("invalid url")):
        adapter.initialize()

    assert adapter.initialized is False
    assert events.kinds() == ["error"]
    assert isinstance(events.events[0].error, SetupError)
    assert immediate_executor.submitted == 0


def test_initialize_twice_probes_once(options, immediate_executor, influx_client, recorder):
    adapter, events, _ = start(options, immediate_executor, influx_client, recorder)

    adapter.initialize()

    assert immediate_executor.submitted == 1
    assert events.kinds() == ["connect"]


def test_send_writes_point_with_thing_tags(options, immediate_executor, influx_client, recorder):
    adapter, events, _ = start(options, immediate_executor, influx_client, recorder)
    thing = NamedThing(address="192.0.2.7", name="livingroom-sensor", location="living room", description="wall")

    adapter.send(thing, "temp", "value", "21.5")

    write_api = influx_client.write_api.return_value
    write_api.write.assert_called_once()
    kwargs = write_api.write.call_args.kwargs
    assert kwargs["bucket"] == "home"
    assert kwargs["org"] == "-"
    line = kwargs["record"].to_line_protocol()
    assert line.startswith("temp,")
    assert "name=livingroom-sensor" in line
    assert 'value="21.5"' in line

    sent = events.of("send")
    assert len(sent) == 1
    assert sent[0].send_to == "influx.local:8086"
    assert sent[0].message == InfluxMeasurement(
        measurement="temp",
        fields={"value": "21.5"},
        tags={"name": "livingroom-sensor", "location": "living room", "description": "wall"},
    )


def test_failed_write_emits_separate_error(options, immediate_executor, influx_client, recorder):
    adapter, events, _ = start(options, immediate_executor, influx_client, recorder)
    influx_client.write_api.return_value.write.side_effect = OSError("timed out")

    adapter.send(NamedThing(address="lamp"), "state", "value", "on")

    # inline executor: the write fails before send is emitted
    assert events.kinds() == ["connect", "error", "send"]
    assert isinstance(events.of("error")[0].error, TransportError)


def test_send_before_initialize_warns(options, immediate_executor, recorder):
    adapter = InfluxDbAdapter(options, executor=immediate_executor)
    events = recorder(adapter)

    adapter.send(NamedThing(address="lamp"), "state", "value", "on")

    assert events.kinds() == ["warning"]
    assert events.events[0].message == NOT_INITIALIZED_MESSAGE
    assert immediate_executor.submitted == 0


def test_close_releases_client_but_not_injected_executor(options, immediate_executor, influx_client, recorder):
    adapter, _, _ = start(options, immediate_executor, influx_client, recorder)

    adapter.close()

    influx_client.write_api.return_value.close.assert_called_once()
    influx_client.close.assert_called_once()
    assert immediate_executor.shut_down is False


def test_build_point_keeps_empty_tags_out():
    point = build_point(InfluxMeasurement(measurement="temp", fields={"value": 21.5}, tags={"name": "a", "location": ""}))

    assert point.to_line_protocol() == "temp,name=a value=21.5"


def test_write_api_failure_closes_client(options, immediate_executor, influx_client, recorder):
    influx_client.write_api.side_effect = RuntimeError("write api unavailable")

    adapter, events, _ = start(options, immediate_executor, influx_client, recorder)

    assert adapter.initialized is False
    assert events.kinds() == ["error"]
    assert isinstance(events.events[0].error, SetupError)
    influx_client.close.assert_called_once()
    assert immediate_executor.submitted == 0
