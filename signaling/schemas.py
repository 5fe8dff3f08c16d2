"""Pydantic data schemas used across the relay.

Inbound WebSocket messages are validated against these models before the
router acts on them. Only the fields the relay routes on are declared;
everything else (``sdp``, ``candidate``, chat text, ...) is allowed through
untouched so it can be relayed verbatim.
"""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict

# -----------------------------
# WebSocket messages
# -----------------------------


class InboundMessage(BaseModel):
    """Any frame from a client. Only the ``type`` discriminator is required."""

    model_config = ConfigDict(extra="allow")

    type: str


class JoinMessage(InboundMessage):
    room_id: str
    user_id: str
    user_name: Optional[str] = None


class LeaveMessage(InboundMessage):
    # Both fall back to the sender's bound identity when omitted.
    user_id: Optional[str] = None
    room_id: Optional[str] = None


class SignalMessage(InboundMessage):
    """Offer / Answer / IceCandidate, forwarded to exactly one peer."""

    target_id: str
    user_id: Optional[str] = None
    room_id: Optional[str] = None


class RoomMessage(InboundMessage):
    """Subtitle / ChatMessage / MuteStatus, broadcast to the sender's room."""

    room_id: Optional[str] = None


# -----------------------------
# Administrative HTTP surface
# -----------------------------


class StatusResponse(BaseModel):
    status: str
    room_count: int
    connection_count: int
    uptime: float


class CreateRoomRequest(BaseModel):
    roomId: Optional[str] = None


class CreateRoomResponse(BaseModel):
    roomId: str


class Participant(BaseModel):
    id: str
    name: str


class RoomInfoResponse(BaseModel):
    roomId: str
    participants: List[Participant] = []
    created: bool


__all__ = [
    "InboundMessage",
    "JoinMessage",
    "LeaveMessage",
    "SignalMessage",
    "RoomMessage",
    "StatusResponse",
    "CreateRoomRequest",
    "CreateRoomResponse",
    "Participant",
    "RoomInfoResponse",
]
