"""
Observable device capability.

Adapters do not inherit their event plumbing; each one owns a
``DeviceEventEmitter`` that:

  - builds one typed event (see ``smarthome_hub.schemas.events``) per emission,
  - delivers it synchronously, on the calling thread, to the subscribers of
    that event type and to catch-all subscribers,
  - writes one log line through a logger tagged with the device type and address.

Emission never raises: subscriber failures are logged and swallowed so a
misbehaving observer cannot break a transport callback thread.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from enum import Enum
from typing import Any, Callable, Dict, MutableMapping, Optional, Protocol, runtime_checkable

from smarthome_hub.enums.events import DeviceEventType
from smarthome_hub.schemas.events import (
    ConnectEvent,
    DeviceEventBase,
    DisconnectEvent,
    ErrorEvent,
    InfoEvent,
    ReceiveEvent,
    SendEvent,
    WarningEvent,
)

DEVICE_LOGGER_PREFIX = "smarthome_hub.devices"

EventCallback = Callable[[Any], None]

logger = logging.getLogger(__name__)


class DeviceLogAdapter(logging.LoggerAdapter):
    """Prefix messages with ``(address)`` and merge the device context into ``extra``."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]):
        extra = kwargs.pop("extra", None) or {}
        kwargs["extra"] = {**self.extra, **extra}
        return f"({self.extra['address']}) {msg}", kwargs


def get_device_logger(device_type: str, address: str) -> DeviceLogAdapter:
    """Return the structured logger for one device."""
    return DeviceLogAdapter(
        logging.getLogger(f"{DEVICE_LOGGER_PREFIX}.{device_type}"),
        {"device_type": device_type, "address": address},
    )


@runtime_checkable
class ObservableDevice(Protocol):
    """Anything that exposes an address, a device type tag and an event emitter."""

    address: str
    device_type: str
    events: "DeviceEventEmitter"


class DeviceEventEmitter:
    """
    Push-only event channel for one device.

    Observers register per event type with ``subscribe`` (or for all types
    with ``subscribe_all``); both return a callable that removes the
    registration again.
    """

    def __init__(self, source: Any, device_type: str, address: str) -> None:
        self.source = source
        self.device_type = device_type
        self.address = address
        self.log = get_device_logger(device_type, address)
        self._lock = threading.Lock()
        self._subscribers: Dict[DeviceEventType, list[EventCallback]] = defaultdict(list)
        self._catch_all: list[EventCallback] = []

    # ==================== Observation ====================

    def subscribe(self, event_type: DeviceEventType | str, callback: EventCallback) -> Callable[[], None]:
        """
        Subscribe a callback to one event type.

        Args:
            event_type: The enum member (preferred) or its string value.
            callback: Called with the event model.

        Returns:
            A function that unsubscribes the callback.
        """
        kind = DeviceEventType(event_type.value if isinstance(event_type, Enum) else event_type)
        with self._lock:
            self._subscribers[kind].append(callback)

        def unsubscribe() -> None:
            with self._lock:
                try:
                    self._subscribers[kind].remove(callback)
                except ValueError:
                    return

        return unsubscribe

    def subscribe_all(self, callback: EventCallback) -> Callable[[], None]:
        """Subscribe a callback to every event type."""
        with self._lock:
            self._catch_all.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                try:
                    self._catch_all.remove(callback)
                except ValueError:
                    return

        return unsubscribe

    def listener(self, event_type: DeviceEventType | str) -> Callable[[EventCallback], EventCallback]:
        """Decorator form of ``subscribe``."""

        def decorator(func: EventCallback) -> EventCallback:
            self.subscribe(event_type, func)
            return func

        return decorator

    def _dispatch(self, event: DeviceEventBase) -> None:
        kind = event.kind  # type: ignore[attr-defined]
        with self._lock:
            callbacks = list(self._subscribers.get(kind, ())) + list(self._catch_all)
        for callback in callbacks:
            try:
                callback(event)
            except Exception as exc:
                logger.error(
                    "Error in %s subscriber %s for %s (%s): %s",
                    kind.value,
                    getattr(callback, "__name__", repr(callback)),
                    self.device_type,
                    self.address,
                    exc,
                    exc_info=True,
                )

    # ==================== Emission primitives ====================

    def emit_connect(self, connect_to: Optional[str] = None, bind_on: Optional[str] = None) -> None:
        self._dispatch(ConnectEvent(source=self.source))
        if connect_to is not None:
            self.log.debug("Connect to %s", connect_to)
        if bind_on is not None:
            self.log.debug("Bind on %s", bind_on)

    def emit_disconnect(self, disconnect_from: Optional[str] = None, unbind_from: Optional[str] = None) -> None:
        self._dispatch(DisconnectEvent(source=self.source))
        if disconnect_from is not None:
            self.log.debug("Disconnect from %s", disconnect_from)
        if unbind_from is not None:
            self.log.debug("Unbind from %s", unbind_from)

    def emit_info(self, message: str) -> None:
        self._dispatch(InfoEvent(source=self.source, message=message))
        self.log.info(message)

    def emit_warning(self, message: str) -> None:
        self._dispatch(WarningEvent(source=self.source, message=message))
        self.log.warning(message)

    def emit_error(self, error: BaseException) -> None:
        self._dispatch(ErrorEvent(source=self.source, message=str(error), error=error))
        self.log.error("%s", error, exc_info=(type(error), error, error.__traceback__))

    def emit_send(self, send_to: str, message: Any) -> None:
        self._dispatch(SendEvent(source=self.source, send_to=send_to, message=message))
        self.log.info("Send to %s => %s", send_to, _describe(message))

    def emit_receive(self, receive_from: str, message: Any) -> None:
        self._dispatch(ReceiveEvent(source=self.source, receive_from=receive_from, message=message))
        self.log.info("Received from %s => %s", receive_from, _describe(message))


def _describe(message: Any) -> str:
    dump = getattr(message, "model_dump", None)
    if callable(dump):
        return str(dump())
    return str(message)
