from __future__ import annotations

import uuid

from fastapi import APIRouter, Body

from ..constants import GENERATED_ROOM_ID_LENGTH, GUEST_NAME
from ..logging_config import get_logger
from ..schemas import (
    CreateRoomRequest,
    CreateRoomResponse,
    Participant,
    RoomInfoResponse,
    StatusResponse,
)
from ..state import directory, registry, uptime

logger = get_logger(__name__)

router = APIRouter(prefix="", tags=["rooms"])


def generate_room_id() -> str:
    return str(uuid.uuid4())[:GENERATED_ROOM_ID_LENGTH]


@router.get("/info", response_model=StatusResponse)
async def server_info():
    return StatusResponse(
        status="online",
        room_count=directory.room_count(),
        connection_count=registry.bound_count(),
        uptime=uptime(),
    )


@router.post("/create-room", response_model=CreateRoomResponse)
async def create_room(req: CreateRoomRequest = Body(default=CreateRoomRequest())):
    room_id = req.roomId or generate_room_id()
    logger.debug(f"Create-room request resolved to {room_id}")
    directory.ensure_room(room_id)
    return CreateRoomResponse(roomId=room_id)


@router.get("/room/{room_id}", response_model=RoomInfoResponse)
async def room_info(room_id: str):
    if not directory.has_room(room_id):
        return RoomInfoResponse(roomId=room_id, participants=[], created=False)
    participants = [
        Participant(id=user_id, name=name or GUEST_NAME)
        for user_id, name in directory.members(room_id)
    ]
    return RoomInfoResponse(roomId=room_id, participants=participants, created=True)
