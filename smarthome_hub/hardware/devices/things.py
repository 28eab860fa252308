"""Named things: the physical sensors/actuators whose data the adapters carry."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class NamedThing:
    """
    An addressable smart home thing.

    Attributes:
        address: IP address or hostname of the thing.
        name: Identifier used in topics, tags and controller lines. Defaults to ``address``.
        location: Room or location within the home. May be empty.
        description: Free-text description. May be empty.
        device_type: Tag used when the thing shows up in logs.
    """

    address: str
    name: str = ""
    location: str = ""
    description: str = ""
    device_type: str = "thing"

    def __post_init__(self) -> None:
        if not self.name:
            object.__setattr__(self, "name", self.address)
        object.__setattr__(self, "location", self.location or "")
        object.__setattr__(self, "description", self.description or "")
