"""
UDP controller adapter.

Talks to a home-automation controller through a pair of virtual ports: the
controller's virtual input (the hub sends to it) and a local virtual output
port the hub binds to receive the controller's lines.
"""

from __future__ import annotations

import logging
import socket
import threading
from typing import Optional

from smarthome_hub.enums.events import MalformedDatagramPolicy
from smarthome_hub.hardware.controller.line_protocol import format_line, parse_datagram
from smarthome_hub.hardware.devices.observable import DeviceEventEmitter
from smarthome_hub.hardware.devices.things import NamedThing
from smarthome_hub.hardware.errors import MalformedDatagramError, SetupError, TransportError
from smarthome_hub.schemas.device import ControllerOptions, DeviceMessage
from smarthome_hub.utils.concurrency import synchronized

logger = logging.getLogger(__name__)

DEVICE_TYPE = "udp_controller"
BIND_HOST = "0.0.0.0"
MAX_DATAGRAM_SIZE = 65535
RECEIVE_POLL_SECONDS = 0.25
NOT_INITIALIZED_MESSAGE = "UDP controller not initialized, unable to send message."


class UdpControllerAdapter:
    """
    Adapter for a controller speaking the line protocol over UDP.

    Attributes:
        address (str): Controller hostname or IP.
        input_port (int): Controller port the hub sends to.
        output_port (int): Local port the hub binds and listens on.
        initialized (bool): True once the socket is bound.
        events (DeviceEventEmitter): Event channel for observers.
    """

    def __init__(
        self,
        options: ControllerOptions,
        malformed_policy: MalformedDatagramPolicy | str = MalformedDatagramPolicy.DROP,
    ) -> None:
        self.device_type = DEVICE_TYPE
        self.address = options.host
        self.input_port = options.virtual_input_port
        self.output_port = options.virtual_output_port
        self.malformed_policy = MalformedDatagramPolicy.parse(malformed_policy)
        self.initialized = False
        self.events = DeviceEventEmitter(self, self.device_type, self.address)
        self._lock = threading.Lock()
        self._socket: Optional[socket.socket] = None
        self._receiver: Optional[threading.Thread] = None
        self._closing = False

    @property
    def input_target(self) -> str:
        return f"{self.address}:{self.input_port}"

    @property
    def output_binding(self) -> str:
        return f"udp://{BIND_HOST}:{self.output_port}"

    @property
    def bound_port(self) -> Optional[int]:
        """Port actually bound (differs from ``output_port`` when that is 0)."""
        if self._socket is None:
            return None
        try:
            return self._socket.getsockname()[1]
        except OSError:
            return None

    @synchronized
    def initialize(self) -> None:
        """Bind the virtual output port and start listening. No-op once initialized."""
        if self.initialized:
            return
        sock: Optional[socket.socket] = None
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            sock.bind((BIND_HOST, self.output_port))
            sock.settimeout(RECEIVE_POLL_SECONDS)
            receiver = threading.Thread(
                target=self._receive_loop,
                args=(sock,),
                name=f"udp-controller-{self.output_port}",
                daemon=True,
            )
            self._closing = False
            self._socket = sock
            self._receiver = receiver
            self.initialized = True
            receiver.start()
        except Exception as exc:
            if sock is not None:
                sock.close()
            self._socket = None
            self._receiver = None
            self.initialized = False
            self.events.emit_error(SetupError.wrap(f"Unable to bind {self.output_binding}", exc))
            return
        self.events.emit_connect(self.input_target, self.output_binding)

    def send(self, thing: NamedThing, property: str, value: str) -> None:
        """
        Send one line to the controller's virtual input.

        Args:
            thing: The thing the value belongs to.
            property: The property name.
            value: The value to send.
        """
        if not self.initialized:
            self.events.emit_warning(NOT_INITIALIZED_MESSAGE)
            return
        sock = self._socket
        if sock is None:
            self.events.emit_error(TransportError(f"Socket on {self.output_binding} is closed"))
            return
        line = format_line(thing.name, property, value)
        try:
            sock.sendto(line.encode("utf-8"), (self.address, self.input_port))
        except (OSError, UnicodeEncodeError) as exc:
            self.events.emit_error(TransportError.wrap(f"Unable to send to {self.input_target}", exc))
            return
        self.events.emit_send(self.input_target, DeviceMessage(thing=thing.name, property=property, value=value))

    def close(self) -> None:
        """Stop the receiver; it closes the socket and emits ``disconnect`` on its way out."""
        if self._socket is None:
            return
        self._closing = True
        receiver = self._receiver
        if receiver is not None and receiver is not threading.current_thread():
            receiver.join(timeout=RECEIVE_POLL_SECONDS * 4)

    def handle_datagram(self, data: bytes, origin: str) -> None:
        """Parse one inbound datagram and emit it as a ``receive`` event."""
        message = parse_datagram(data)
        if message is not None:
            self.events.emit_receive(origin, message)
            return
        if self.malformed_policy is MalformedDatagramPolicy.WARN:
            error = MalformedDatagramError(f"Malformed datagram from {origin}: {data[:120]!r}")
            self.events.emit_warning(str(error))
        else:
            logger.debug("Dropped malformed datagram from %s (%d bytes)", origin, len(data))

    def _receive_loop(self, sock: socket.socket) -> None:
        try:
            while not self._closing:
                try:
                    data, (origin, _port) = sock.recvfrom(MAX_DATAGRAM_SIZE)
                except socket.timeout:
                    continue
                except OSError as exc:
                    if not self._closing:
                        self.events.emit_error(TransportError.wrap(f"Receive failed on {self.output_binding}", exc))
                    break
                self.handle_datagram(data, origin)
        finally:
            sock.close()
            self._socket = None
        self.events.emit_disconnect(self.input_target, self.output_binding)
