"""Periodic dead-peer detection.

Every sweep moves each open connection one step through a two-state
machine: a CONFIRMED connection is probed and becomes UNCONFIRMED; a
connection still UNCONFIRMED a full period later is terminated and goes
through the same teardown as a peer that closed on its own.

A connection returns to CONFIRMED when the transport accepts an outbound
frame or when the peer sends anything. Clients never have to answer the
probe themselves: a probe that cannot be written out (dead socket, peer no
longer draining its receive window) is what gets a connection reaped.
"""
from __future__ import annotations

import asyncio
from typing import Optional

from .constants import LIVENESS_INTERVAL_SECONDS
from .logging_config import get_logger
from .relay_logic import handle_disconnect
from .state import registry

logger = get_logger(__name__)


def sweep() -> int:
    """Run one liveness pass. Returns the number of connections reaped."""
    reaped = 0
    for connection in registry.open_connections():
        if connection.expired:
            logger.info(f"{connection!r} missed its liveness probe, terminating")
            handle_disconnect(connection)
            reaped += 1
        else:
            connection.probe()
    return reaped


class LivenessMonitor:
    def __init__(self, interval: float = LIVENESS_INTERVAL_SECONDS):
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name="liveness-monitor")
            logger.info(f"Liveness monitor started ({self.interval}s period)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Liveness monitor stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                reaped = sweep()
                if reaped:
                    logger.info(f"Liveness sweep reaped {reaped} connection(s)")
            except Exception as e:
                logger.error(f"Liveness sweep failed: {e}", exc_info=True)


__all__ = ["sweep", "LivenessMonitor"]
