"""Centralised in-memory runtime state.

This keeps the singletons that are shared across the whole application so
other modules can simply import them without worrying about circular
imports. Everything here is touched only from the event loop thread, and
only through the methods of the objects below.
"""
from __future__ import annotations

import time

from .registry import ConnectionRegistry
from .room import RoomDirectory

registry = ConnectionRegistry()
directory = RoomDirectory()

STARTED_AT = time.monotonic()


def uptime() -> float:
    """Seconds since the process imported the relay state."""
    return time.monotonic() - STARTED_AT


__all__ = ["registry", "directory", "uptime"]
