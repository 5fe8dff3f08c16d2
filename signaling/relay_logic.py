"""Core signaling relay mechanics.

This module routes client messages between room members while remaining
framework-agnostic. All functions operate only on the in-memory
``signaling.state`` singletons and on ``Connection`` objects; the WebSocket
router and the liveness monitor import them to drive the relay without
touching transport specifics.

None of these functions await. Each inbound message is applied to the room
directory and connection registry in one uninterrupted step, and every
outbound message is only queued on the recipient's connection.
"""
from __future__ import annotations

import json
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .connection import Connection
from .constants import BROADCAST_TYPES, FORWARD_TYPES, PROBE_ACK_TYPE
from .logging_config import get_logger
from .schemas import JoinMessage, LeaveMessage, RoomMessage, SignalMessage
from .state import directory, registry

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def decode_message(raw: str) -> Optional[Dict[str, Any]]:
    """Parse one text frame. Returns ``None`` (and logs) for anything that is not a JSON object."""
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning(f"Dropping malformed frame: {e}")
        return None
    if not isinstance(data, dict):
        logger.warning(f"Dropping frame that is not a JSON object: {type(data).__name__}")
        return None
    return data


# ---------------------------------------------------------------------------
# Delivery helpers
# ---------------------------------------------------------------------------


def broadcast(room_id: str, payload: Dict[str, Any], exclude: Optional[Connection] = None) -> int:
    """Queue *payload* for every member of *room_id* except *exclude*. Returns the recipient count."""
    delivered = 0
    for conn in directory.connections(room_id, exclude=exclude):
        if conn.send(payload):
            delivered += 1
    return delivered


def _resolve_room(connection: Connection, room_id: Optional[str]) -> Optional[str]:
    if room_id:
        return room_id
    binding = registry.lookup(connection)
    return binding.room_id if binding else None


# ---------------------------------------------------------------------------
# Membership
# ---------------------------------------------------------------------------


def _join_notice(user_id: str, user_name: Optional[str], room_id: str) -> Dict[str, Any]:
    notice: Dict[str, Any] = {"type": "Join", "user_id": user_id}
    if user_name is not None:
        notice["user_name"] = user_name
    notice["room_id"] = room_id
    return notice


def handle_join(connection: Connection, msg: JoinMessage) -> None:
    room_id, user_id = msg.room_id, msg.user_id

    # A connection is a member of one room at a time
    previous = registry.lookup(connection)
    if previous is not None and previous != (user_id, room_id):
        depart(connection, previous.room_id, previous.user_id, only_if_current=True)

    registry.bind(connection, user_id, room_id)
    directory.add_member(room_id, user_id, connection, msg.user_name)
    logger.info(f"User {msg.user_name or user_id} joined room {room_id}")

    # Tell everyone already here about the newcomer
    broadcast(room_id, _join_notice(user_id, msg.user_name, room_id), exclude=connection)

    # ...and the newcomer about everyone already here, so it can start negotiating
    for peer_id, peer_name in directory.members(room_id):
        if peer_id == user_id:
            continue
        connection.send(_join_notice(peer_id, peer_name, room_id))


def depart(connection: Connection, room_id: str, user_id: str, only_if_current: bool = False) -> None:
    """Remove *user_id* from *room_id*, tell the rest of the room, and unbind *connection*.

    With *only_if_current* the member record is left alone when it already
    belongs to a newer connection of the same user.
    """
    if only_if_current and directory.member_connection(room_id, user_id) is not connection:
        removed = None
    else:
        removed = directory.remove_member(room_id, user_id)

    if removed is not None:
        logger.info(f"User {user_id} left room {room_id}")
        broadcast(room_id, {"type": "Leave", "user_id": user_id, "room_id": room_id}, exclude=connection)

    registry.unbind(connection)


def handle_leave(connection: Connection, msg: LeaveMessage) -> None:
    binding = registry.lookup(connection)
    user_id = msg.user_id or (binding.user_id if binding else None)
    room_id = msg.room_id or (binding.room_id if binding else None)
    if not user_id or not room_id:
        logger.debug(f"Leave from {connection!r} with no resolvable identity, ignoring")
        return
    depart(connection, room_id, user_id)


def handle_disconnect(connection: Connection) -> None:
    """Transport is gone (closed by the peer or reaped by the liveness monitor)."""
    binding = registry.lookup(connection)
    if binding is not None:
        depart(connection, binding.room_id, binding.user_id, only_if_current=True)
    registry.discard(connection)
    connection.terminate()


# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------


def forward_message(connection: Connection, msg: SignalMessage, data: Dict[str, Any]) -> None:
    """Point-to-point relay of a negotiation message. No retries, no acknowledgment."""
    room_id = _resolve_room(connection, msg.room_id)
    target = directory.member_connection(room_id, msg.target_id) if room_id else None
    if target is None:
        logger.debug(f"Dropping {msg.type} for unknown target {msg.target_id} in room {room_id}")
        return
    target.send(data)


def broadcast_room_message(connection: Connection, msg: RoomMessage, data: Dict[str, Any]) -> None:
    room_id = _resolve_room(connection, msg.room_id)
    if room_id is None:
        logger.debug(f"Dropping {msg.type} from {connection!r}: no room to deliver to")
        return
    broadcast(room_id, data, exclude=connection)


def handle_ws_message(connection: Connection, data: Dict[str, Any]) -> None:
    msg_type = data.get("type")
    if not isinstance(msg_type, str):
        logger.warning(f"Dropping frame without a string 'type' from {connection!r}")
        return
    try:
        if msg_type == "Join":
            handle_join(connection, JoinMessage.model_validate(data))
        elif msg_type == "Leave":
            handle_leave(connection, LeaveMessage.model_validate(data))
        elif msg_type in FORWARD_TYPES:
            forward_message(connection, SignalMessage.model_validate(data), data)
        elif msg_type in BROADCAST_TYPES:
            broadcast_room_message(connection, RoomMessage.model_validate(data), data)
        elif msg_type == PROBE_ACK_TYPE:
            return
        else:
            logger.warning(f"Unknown message type {msg_type!r} from {connection!r}, ignoring")
    except ValidationError as e:
        logger.warning(f"Dropping malformed {msg_type} from {connection!r}: {e.error_count()} invalid field(s)")


__all__ = [
    "decode_message",
    "broadcast",
    "handle_join",
    "handle_leave",
    "handle_disconnect",
    "depart",
    "forward_message",
    "broadcast_room_message",
    "handle_ws_message",
]
