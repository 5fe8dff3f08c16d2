from __future__ import annotations

from typing import Dict, List, NamedTuple, Optional, Tuple

from .connection import Connection
from .logging_config import get_logger

logger = get_logger(__name__)


class Member(NamedTuple):
    connection: Connection
    display_name: Optional[str] = None


class RoomDirectory:
    """Maps room ids to their live membership.

    A room that loses its last member is removed on the spot; rooms only
    exist empty between an explicit creation call and the first join.
    """

    def __init__(self) -> None:
        self._rooms: Dict[str, Dict[str, Member]] = {}

    # -------------------- Mutation -------------------- #

    def ensure_room(self, room_id: str) -> Dict[str, Member]:
        members = self._rooms.get(room_id)
        if members is None:
            members = self._rooms[room_id] = {}
            logger.info(f"Room {room_id} created")
        return members

    def add_member(
        self,
        room_id: str,
        user_id: str,
        connection: Connection,
        display_name: Optional[str] = None,
    ) -> None:
        members = self.ensure_room(room_id)
        if user_id in members and members[user_id].connection is not connection:
            logger.info(f"User {user_id} re-joined room {room_id} from a new connection, replacing the old one")
        members[user_id] = Member(connection, display_name)

    def remove_member(self, room_id: str, user_id: str) -> Optional[Member]:
        """Drop *user_id* from *room_id*, deleting the room once it is empty."""
        members = self._rooms.get(room_id)
        if members is None:
            return None
        removed = members.pop(user_id, None)
        if removed is None:
            return None
        if not members:
            del self._rooms[room_id]
            logger.info(f"Room {room_id} deleted (no members left)")
        return removed

    def clear(self) -> None:
        self._rooms.clear()

    # -------------------- Queries -------------------- #

    def has_room(self, room_id: str) -> bool:
        return room_id in self._rooms

    def members(self, room_id: str) -> List[Tuple[str, Optional[str]]]:
        """Snapshot of ``(user_id, display_name)`` pairs, empty for unknown rooms."""
        members = self._rooms.get(room_id, {})
        return [(uid, m.display_name) for uid, m in members.items()]

    def member_connection(self, room_id: str, user_id: str) -> Optional[Connection]:
        member = self._rooms.get(room_id, {}).get(user_id)
        return member.connection if member else None

    def connections(self, room_id: str, exclude: Optional[Connection] = None) -> List[Connection]:
        """Recipients for a room-wide broadcast, skipping *exclude*."""
        members = self._rooms.get(room_id, {})
        return [m.connection for m in members.values() if m.connection is not exclude]

    def room_count(self) -> int:
        return len(self._rooms)

    def total_connection_count(self) -> int:
        return sum(len(members) for members in self._rooms.values())


__all__ = ["Member", "RoomDirectory"]
