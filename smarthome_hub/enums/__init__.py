"""
Enums Module
============

Enumeration types shared by the hub's devices and adapters.
"""

from smarthome_hub.enums.events import DeviceEventType, MalformedDatagramPolicy

__all__ = ["DeviceEventType", "MalformedDatagramPolicy"]
