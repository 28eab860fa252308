from enum import Enum


class DeviceEventType(str, Enum):
    """Event channels exposed by every observable device."""

    CONNECT = "connect"
    DISCONNECT = "disconnect"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SEND = "send"
    RECEIVE = "receive"


class MalformedDatagramPolicy(str, Enum):
    """What the UDP controller does with datagrams that fail the line grammar."""

    DROP = "drop"
    WARN = "warn"

    @staticmethod
    def parse(value: "str | MalformedDatagramPolicy") -> "MalformedDatagramPolicy":
        if isinstance(value, MalformedDatagramPolicy):
            return value
        try:
            return MalformedDatagramPolicy(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown malformed datagram policy: {value!r} (expected 'drop' or 'warn')") from None
