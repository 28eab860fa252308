"""
Helpers for constructing MQTT clients that work across paho-mqtt 1.x and 2.x.

The 2.x releases add a callback API version flag; we keep the legacy v3.1.1
callback signatures (``on_connect(client, userdata, flags, rc)``) so the
adapter callbacks are the same under both major versions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import paho.mqtt.client as mqtt


@dataclass(frozen=True)
class LastWill:
    """Message the broker publishes on our behalf when the connection drops uncleanly."""

    topic: str
    payload: str
    qos: int = 2
    retain: bool = True


def is_success(reason_code: Any) -> bool:
    """Paho result/reason code helper (0 is success for ints and ReasonCode objects)."""
    return getattr(reason_code, "value", reason_code) == 0


def _legacy_callback_api_version() -> Optional[Any]:
    callback_api_version = getattr(mqtt, "CallbackAPIVersion", None)
    if callback_api_version is None:
        return None
    for attr in ("VERSION1", "V1", "V311", "v311"):
        if hasattr(callback_api_version, attr):
            return getattr(callback_api_version, attr)
    try:
        return callback_api_version(1)
    except Exception:
        return None


def create_mqtt_client(
    client_id: str = "",
    *,
    will: Optional[LastWill] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
    **kwargs: Any,
) -> mqtt.Client:
    """
    Build an MQTT client with the legacy callback API, optional last will and credentials.

    Args:
        client_id: Optional client identifier (empty lets the broker assign one).
        will: Last will registered before connecting.
        username: Broker username; the password is only sent along with it.
        password: Broker password.
        kwargs: Extra keyword arguments forwarded to the client constructor.
    """
    client_kwargs: Dict[str, Any] = {"client_id": client_id or ""}
    client_kwargs["protocol"] = kwargs.pop("protocol", getattr(mqtt, "MQTTv311", 4))
    client_kwargs.update(kwargs)

    callback_value = _legacy_callback_api_version()
    if callback_value is not None:
        client_kwargs["callback_api_version"] = callback_value

    try:
        client = mqtt.Client(**client_kwargs)
    except TypeError:
        # paho 1.x does not accept callback_api_version
        client_kwargs.pop("callback_api_version", None)
        client = mqtt.Client(**client_kwargs)

    if username:
        client.username_pw_set(username, password)
    if will is not None:
        client.will_set(will.topic, payload=will.payload, qos=will.qos, retain=will.retain)
    return client
