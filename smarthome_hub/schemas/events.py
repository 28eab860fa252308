"""
Device event models.

Every emission from a device produces exactly one of the models below. They
share the ``kind`` discriminator so observers can dispatch on a single
``DeviceEvent`` union instead of inspecting payload shapes.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from smarthome_hub.enums.events import DeviceEventType


class DeviceEventBase(BaseModel):
    """Fields common to all device events."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    source: Any = Field(..., description="Device that emitted the event")


class ConnectEvent(DeviceEventBase):
    kind: Literal[DeviceEventType.CONNECT] = DeviceEventType.CONNECT


class DisconnectEvent(DeviceEventBase):
    kind: Literal[DeviceEventType.DISCONNECT] = DeviceEventType.DISCONNECT


class InfoEvent(DeviceEventBase):
    kind: Literal[DeviceEventType.INFO] = DeviceEventType.INFO
    message: str


class WarningEvent(DeviceEventBase):
    kind: Literal[DeviceEventType.WARNING] = DeviceEventType.WARNING
    message: str


class ErrorEvent(DeviceEventBase):
    kind: Literal[DeviceEventType.ERROR] = DeviceEventType.ERROR
    message: str
    error: BaseException


class SendEvent(DeviceEventBase):
    """Outbound data handed to the transport."""

    kind: Literal[DeviceEventType.SEND] = DeviceEventType.SEND
    send_to: str = Field(..., description="Target the data was delivered to (host:port or URL)")
    message: Any


class ReceiveEvent(DeviceEventBase):
    """Inbound data delivered by the transport."""

    kind: Literal[DeviceEventType.RECEIVE] = DeviceEventType.RECEIVE
    receive_from: str = Field(..., description="Origin of the data (sender address)")
    message: Any


DeviceEvent = Annotated[
    Union[ConnectEvent, DisconnectEvent, InfoEvent, WarningEvent, ErrorEvent, SendEvent, ReceiveEvent],
    Field(discriminator="kind"),
]

EVENT_MODELS: dict[DeviceEventType, type[DeviceEventBase]] = {
    DeviceEventType.CONNECT: ConnectEvent,
    DeviceEventType.DISCONNECT: DisconnectEvent,
    DeviceEventType.INFO: InfoEvent,
    DeviceEventType.WARNING: WarningEvent,
    DeviceEventType.ERROR: ErrorEvent,
    DeviceEventType.SEND: SendEvent,
    DeviceEventType.RECEIVE: ReceiveEvent,
}
