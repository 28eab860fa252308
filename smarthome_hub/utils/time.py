"""Utility functions for time handling.

All timestamps are UTC. Wire payloads carry epoch milliseconds.
"""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


def epoch_ms(dt: datetime | None = None) -> int:
    """Return ``dt`` (default: now) as integer milliseconds since the Unix epoch."""
    if dt is None:
        dt = utc_now()
    elif dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)
