from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Optional

import pytest

from signaling.connection import Connection
from signaling.relay_logic import handle_ws_message
from signaling.state import directory, registry


class RecordingConnection(Connection):
    """Connection that keeps outbound messages in a list instead of a socket."""

    def __init__(self, name: str = ""):
        super().__init__(ws=None)
        self.name = name
        self.sent: List[Dict[str, Any]] = []
        # A stalled peer keeps its socket open but nothing written to it gets through
        self.stalled = False

    def __repr__(self) -> str:
        return f"<RecordingConnection {self.name}>"

    def send(self, message: Dict[str, Any]) -> bool:
        if self.closed:
            return False
        self.sent.append(message)
        if not self.stalled:
            self.mark_alive()
        return True

    def of_type(self, msg_type: str) -> List[Dict[str, Any]]:
        return [m for m in self.sent if m.get("type") == msg_type]


@pytest.fixture(autouse=True)
def reset_state():
    directory.clear()
    registry.clear()
    yield
    directory.clear()
    registry.clear()


@pytest.fixture
def make_conn() -> Callable[..., RecordingConnection]:
    def _make(name: str = "") -> RecordingConnection:
        conn = RecordingConnection(name)
        registry.register(conn)
        return conn

    return _make


def join(conn: Connection, room_id: str, user_id: str, user_name: Optional[str] = None) -> None:
    msg: Dict[str, Any] = {"type": "Join", "room_id": room_id, "user_id": user_id}
    if user_name is not None:
        msg["user_name"] = user_name
    handle_ws_message(conn, msg)


def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return
        time.sleep(0.01)
    raise AssertionError("condition not met in time")
