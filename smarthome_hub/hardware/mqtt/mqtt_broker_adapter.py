"""
MQTT broker adapter.

Publishes thing measurements as JSON envelopes under
``<prefix>/<topic>/<thing name>`` and keeps a retained liveness marker at
``<prefix>/connected``: ``"2"`` while the hub is connected, ``"0"`` (the last
will) once the broker notices the hub is gone.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional

import paho.mqtt.client as mqtt

from smarthome_hub.hardware.devices.observable import DeviceEventEmitter
from smarthome_hub.hardware.devices.things import NamedThing
from smarthome_hub.hardware.errors import SetupError, TransportError
from smarthome_hub.hardware.mqtt.client_factory import LastWill, create_mqtt_client, is_success
from smarthome_hub.schemas.device import MeasurementEnvelope, MqttBrokerOptions, PublishedMessage
from smarthome_hub.utils.concurrency import synchronized
from smarthome_hub.utils.time import epoch_ms

logger = logging.getLogger(__name__)

DEVICE_TYPE = "mqtt_broker"
QOS_EXACTLY_ONCE = 2
LIVENESS_SUBTOPIC = "connected"
LIVENESS_ONLINE = "2"
LIVENESS_OFFLINE = "0"
CLOSE_PUBLISH_TIMEOUT_SECONDS = 2.0
NOT_INITIALIZED_MESSAGE = "MQTT broker not initialized, unable to publish message."


class MqttBrokerAdapter:
    """
    Adapter publishing thing data to an MQTT broker.

    Attributes:
        address (str): Broker hostname or IP.
        port (int): Broker port.
        broker_url (str): ``mqtt://address:port``.
        topic_prefix (str): Prefix of every topic the hub publishes.
        initialized (bool): True once the client is built and its network loop started.
        events (DeviceEventEmitter): Event channel for observers.
    """

    def __init__(self, options: MqttBrokerOptions) -> None:
        self.device_type = DEVICE_TYPE
        self.address = options.host
        self.port = options.port
        self.broker_url = f"mqtt://{self.address}:{self.port}"
        self.topic_prefix = options.topic
        self.initialized = False
        self.events = DeviceEventEmitter(self, self.device_type, self.address)
        self._options = options
        self._lock = threading.Lock()
        self._client: Optional[mqtt.Client] = None

    @property
    def liveness_topic(self) -> str:
        return f"{self.topic_prefix}/{LIVENESS_SUBTOPIC}"

    @property
    def last_will(self) -> LastWill:
        return LastWill(topic=self.liveness_topic, payload=LIVENESS_OFFLINE, qos=QOS_EXACTLY_ONCE, retain=True)

    def topic_for(self, thing: NamedThing, topic: str) -> str:
        return f"{self.topic_prefix}/{topic}/{thing.name}"

    @synchronized
    def initialize(self) -> None:
        """Start connecting to the broker in the background. No-op once initialized."""
        if self.initialized:
            return
        client: Optional[mqtt.Client] = None
        try:
            client = create_mqtt_client(
                client_id=self._options.client_id,
                will=self.last_will,
                username=self._options.username,
                password=self._options.password,
            )
            client.enable_logger(logger)
            client.on_connect = self._on_connect
            client.on_disconnect = self._on_disconnect
            client.on_connect_fail = self._on_connect_fail
            client.connect_async(self.address, self.port, self._options.keepalive)
            client.loop_start()
        except Exception as exc:
            self._client = None
            self.events.emit_error(SetupError.wrap(f"Unable to set up MQTT client for {self.broker_url}", exc))
            return
        self._client = client
        self.initialized = True

    def send(self, thing: NamedThing, topic: str, value: Any, retain: bool = False) -> None:
        """
        Publish a measurement for a thing.

        The ``send`` event is emitted once the publish call returns, whether or not
        the broker ends up acknowledging the message. A publish the client
        rejects outright (wildcards in the topic, unserializable value) only
        yields an ``error`` event since nothing reached the client.

        Args:
            thing: The thing the value belongs to.
            topic: Topic segment between the prefix and the thing name.
            value: The value to publish.
            retain: Whether the broker should retain the message.
        """
        client = self._client
        if not self.initialized or client is None:
            self.events.emit_warning(NOT_INITIALIZED_MESSAGE)
            return
        target = self.topic_for(thing, topic)
        try:
            message = PublishedMessage(
                topic=target,
                payload=MeasurementEnvelope(ts=epoch_ms(), val=value, loc=thing.location, desc=thing.description),
                retain=retain,
                qos=QOS_EXACTLY_ONCE,
            )
            info = client.publish(message.topic, message.encode(), qos=message.qos, retain=message.retain)
        except (ValueError, TypeError) as exc:
            self.events.emit_error(TransportError.wrap(f"Unable to publish to {target}", exc))
            return
        self.events.emit_send(self.broker_url, message)
        # non-success rc: the send event stands and an error follows
        rc = getattr(info, "rc", mqtt.MQTT_ERR_SUCCESS)
        if rc != mqtt.MQTT_ERR_SUCCESS:
            self.events.emit_error(
                TransportError(f"Publish to {message.topic} returned {rc}: {mqtt.error_string(rc)}")
            )

    def close(self) -> None:
        """Mark the hub offline, disconnect cleanly and stop the network loop."""
        client = self._client
        if client is None:
            return
        try:
            info = client.publish(self.liveness_topic, LIVENESS_OFFLINE, qos=QOS_EXACTLY_ONCE, retain=True)
            if client.is_connected():
                info.wait_for_publish(timeout=CLOSE_PUBLISH_TIMEOUT_SECONDS)
        except (RuntimeError, ValueError) as exc:
            logger.warning("Could not publish offline marker to %s: %s", self.liveness_topic, exc)
        client.disconnect()
        client.loop_stop()

    # ==================== paho callbacks (network loop thread) ====================

    def _on_connect(self, client: mqtt.Client, userdata: Any, flags: Any, rc: Any, *extra: Any) -> None:
        if not is_success(rc):
            code = getattr(rc, "value", rc)
            self.events.emit_error(
                TransportError(f"Connection to {self.broker_url} refused: {mqtt.connack_string(code)}")
            )
            return
        client.publish(self.liveness_topic, LIVENESS_ONLINE, qos=QOS_EXACTLY_ONCE, retain=True)
        self.events.emit_connect(self.broker_url)

    def _on_disconnect(self, client: mqtt.Client, userdata: Any, *args: Any) -> None:
        self.events.emit_disconnect(self.broker_url)

    def _on_connect_fail(self, client: mqtt.Client, userdata: Any) -> None:
        self.events.emit_error(TransportError(f"Unable to connect to {self.broker_url}"))
