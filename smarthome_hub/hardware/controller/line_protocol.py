"""
Controller line protocol.

One datagram carries one line::

    <thing-key>=<thing> <property-key>=<property> <value-key>=<value>

Inbound lines accept several key aliases (case-sensitive); outbound lines
always use the canonical ``thing=``, ``property=`` and ``value=`` keys.
"""

from __future__ import annotations

import re

from smarthome_hub.schemas.device import DeviceMessage

THING_KEYS = ("thing", "name", "device", "dev", "d")
PROPERTY_KEYS = ("property", "key", "k")
VALUE_KEYS = ("value", "val", "v")

LINE_PATTERN = re.compile(
    r"(?:{things})=(?P<thing>.*?) (?:{properties})=(?P<property>.*?) (?:{values})=(?P<value>.*)".format(
        things="|".join(THING_KEYS),
        properties="|".join(PROPERTY_KEYS),
        values="|".join(VALUE_KEYS),
    )
)


def parse_line(line: str) -> DeviceMessage | None:
    """
    Parse a controller line into a DeviceMessage.

    A single trailing line break is ignored. Returns None when the line does not
    match the grammar.
    """
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    match = LINE_PATTERN.fullmatch(line)
    if match is None:
        return None
    return DeviceMessage(thing=match["thing"], property=match["property"], value=match["value"])


def parse_datagram(data: bytes) -> DeviceMessage | None:
    """Decode a datagram as UTF-8 and parse it; undecodable bytes count as a mismatch."""
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        return None
    return parse_line(text)


def format_line(thing: str, property: str, value: str) -> str:
    """Serialize a triple with the canonical keys."""
    return f"thing={thing} property={property} value={value}"
