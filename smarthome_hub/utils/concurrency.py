"""
Concurrency utilities.

Provides a `synchronized` decorator that acquires an instance `_lock` if present.
Adapters use it to serialize ``initialize()`` against concurrent callers so the
``initialized`` flag is only ever observed after the transport handle exists.
"""

from __future__ import annotations

from functools import wraps
from typing import Callable, TypeVar

F = TypeVar("F", bound=Callable)


def synchronized(func: F) -> F:
    """Decorator that acquires `self._lock` if present on the instance.

    If no `_lock` attribute exists on `self`, the function is executed without locking.
    """

    @wraps(func)
    def _wrapped(self, *args, **kwargs):
        lock = getattr(self, "_lock", None)
        if lock is None:
            return func(self, *args, **kwargs)
        with lock:
            return func(self, *args, **kwargs)

    return _wrapped  # type: ignore[return-value]
