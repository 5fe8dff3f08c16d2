"""A single client transport session as seen by the relay.

``Connection`` wraps an accepted FastAPI ``WebSocket``. The router never awaits
a send: outbound messages go into a per-connection queue that a dedicated
writer task drains, so a slow or dead peer cannot stall message handling for
anyone else.
"""
from __future__ import annotations

import asyncio
import uuid
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import WebSocket

from .constants import PROBE_MESSAGE
from .logging_config import get_logger

logger = get_logger(__name__)

# Queued after the last outbound message to make the writer close the socket.
_CLOSE = object()


class LivenessState(str, Enum):
    CONFIRMED = "confirmed"  # peer answered since the last probe
    UNCONFIRMED = "unconfirmed"  # probe sent, no answer yet


class Connection:
    """Outbound buffer, liveness state and close handling for one WebSocket."""

    def __init__(self, ws: Optional[WebSocket] = None):
        self.ws = ws
        self.connection_id = uuid.uuid4().hex[:12]
        self.liveness = LivenessState.CONFIRMED
        self.closed = False
        self._close_code = 1000
        self._outbox: "asyncio.Queue[Any]" = asyncio.Queue()
        self._writer: Optional[asyncio.Task] = None

    def __repr__(self) -> str:
        return f"<Connection {self.connection_id}>"

    # -------------------- Outbound -------------------- #

    def start(self) -> None:
        """Spawn the writer task. Must be called from the event loop after accept."""
        if self._writer is None:
            self._writer = asyncio.create_task(self._drain(), name=f"writer-{self.connection_id}")

    def send(self, message: Dict[str, Any]) -> bool:
        """Queue *message* for delivery. Returns ``False`` if the peer is already gone."""
        if self.closed:
            return False
        self._outbox.put_nowait(message)
        return True

    def terminate(self, code: int = 1001) -> None:
        """Stop accepting messages and close the socket once the queue is flushed."""
        if self.closed:
            return
        self.closed = True
        self._close_code = code
        self._outbox.put_nowait(_CLOSE)

    async def wait_closed(self) -> None:
        if self._writer is not None:
            await self._writer

    async def _drain(self) -> None:
        while True:
            item = await self._outbox.get()
            if item is _CLOSE:
                try:
                    await self.ws.close(code=self._close_code)
                except Exception as e:
                    # Client side already went away
                    logger.debug(f"Close of {self.connection_id} not delivered: {e}")
                return
            try:
                await self.ws.send_json(item)
            except Exception as e:
                logger.debug(f"Send to {self.connection_id} failed, treating peer as departed: {e}")
                self.closed = True
                return
            # The transport took the frame, so the session is still up
            self.mark_alive()

    # -------------------- Liveness -------------------- #

    def mark_alive(self) -> None:
        self.liveness = LivenessState.CONFIRMED

    def probe(self) -> None:
        """Move to UNCONFIRMED and queue a keepalive frame.

        The connection is confirmed again once the writer hands that frame (or
        any other) to the transport, or when the peer sends anything. Peers
        that stop answering at the transport level are closed by the server's
        own WebSocket ping/pong, which ends the session the normal way.
        """
        self.liveness = LivenessState.UNCONFIRMED
        self.send(dict(PROBE_MESSAGE))

    @property
    def expired(self) -> bool:
        return self.liveness is LivenessState.UNCONFIRMED


__all__ = ["Connection", "LivenessState"]
