"""Exceptions carried by adapter ``error`` events."""

from __future__ import annotations


class AdapterError(Exception):
    """Base class for failures reported by hub adapters"""

    @classmethod
    def wrap(cls, message: str, cause: BaseException) -> "AdapterError":
        """Build an instance whose ``__cause__`` is the underlying library/socket error."""
        error = cls(f"{message}: {cause}")
        error.__cause__ = cause
        return error


class SetupError(AdapterError):
    """Building a transport handle failed; the adapter stays uninitialized."""


class TransportError(AdapterError):
    """The transport reported a failure after setup."""


class MalformedDatagramError(AdapterError):
    """An inbound datagram did not match the controller line grammar."""
