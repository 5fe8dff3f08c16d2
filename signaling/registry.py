from __future__ import annotations

from typing import Dict, List, NamedTuple, Optional

from .connection import Connection


class Binding(NamedTuple):
    user_id: str
    room_id: str


class ConnectionRegistry:
    """Open connections plus the identity each one joined with.

    Holds no references into the room directory; callers combine the two.
    """

    def __init__(self) -> None:
        self._open: Dict[Connection, None] = {}
        self._bindings: Dict[Connection, Binding] = {}

    # -------------------- Transport lifecycle -------------------- #

    def register(self, connection: Connection) -> None:
        self._open[connection] = None

    def discard(self, connection: Connection) -> None:
        self._open.pop(connection, None)
        self._bindings.pop(connection, None)

    def open_connections(self) -> List[Connection]:
        return list(self._open)

    # -------------------- Identity binding -------------------- #

    def bind(self, connection: Connection, user_id: str, room_id: str) -> None:
        self._bindings[connection] = Binding(user_id, room_id)

    def lookup(self, connection: Connection) -> Optional[Binding]:
        return self._bindings.get(connection)

    def unbind(self, connection: Connection) -> None:
        self._bindings.pop(connection, None)

    def bound_count(self) -> int:
        return len(self._bindings)

    def clear(self) -> None:
        self._open.clear()
        self._bindings.clear()


__all__ = ["Binding", "ConnectionRegistry"]
