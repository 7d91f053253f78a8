"""
Pitch rooms router — room listing, persisted chat history, and the real-time
WebSocket chat shared by a founder and an investor.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, WebSocket, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import async_session, get_db
from app.models.pitch_room import PitchRoom
from app.models.user import User, UserRole
from app.routers.auth import require_user
from app.services.chat import persist_message, recent_messages, relay_frame
from app.services.projections import pitch_room_detail, pitch_rooms_for
from app.services.room_registry import RoomRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pitch-rooms", tags=["pitch-rooms"])

VALID_ROLES = {role.value for role in UserRole}


def get_registry(request: Request) -> RoomRegistry:
    return request.app.state.rooms


async def _room_for(db: AsyncSession, room_id: str, user: User) -> PitchRoom:
    result = await db.execute(select(PitchRoom).where(PitchRoom.id == room_id))
    room = result.scalar_one_or_none()
    if not room:
        raise HTTPException(status_code=404, detail="Pitch room not found")
    if user.id not in (room.startup_user_id, room.investor_user_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a participant of this pitch room")
    return room


# ==============================================================================
# HTTP Routes
# ==============================================================================

@router.get("")
async def list_pitch_rooms(
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Pitch rooms the current user takes part in, newest first."""
    return await pitch_rooms_for(db, current_user)


@router.get("/{room_id}")
async def get_pitch_room(
    room_id: str,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    registry: RoomRegistry = Depends(get_registry),
):
    room = await _room_for(db, room_id, current_user)
    detail = pitch_room_detail(room, current_user)
    detail["online"] = registry.online_users(room_id)
    return detail


@router.get("/{room_id}/messages")
async def get_pitch_room_messages(
    room_id: str,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Returns the last persisted messages for the room, oldest first."""
    room = await _room_for(db, room_id, current_user)
    return {"messages": await recent_messages(db, room, settings.CHAT_HISTORY_LIMIT)}


# ==============================================================================
# WebSocket Endpoint
# ==============================================================================

async def _persist(room_id: str, sender_id: str, content: str) -> dict:
    async with async_session() as db:
        return await persist_message(db, room_id, sender_id, content)


@router.websocket("/ws/{room_id}")
async def pitch_room_socket(
    websocket: WebSocket,
    room_id: str,
    user_id: Optional[str] = Query(None, alias="userId"),
    user_role: Optional[str] = Query(None, alias="userRole"),
):
    """
    Real-time chat for one pitch room.

    Connect with ``?userId=...&userRole=founder|investor``. The first frame
    received is ``{"type": "history", ...}``; every message sent by anyone in
    the room afterwards arrives as ``{"type": "message", ...}``. Frames whose
    ``senderId`` is not the connecting user are dropped.
    """
    await websocket.accept()
    if not user_id or user_role not in VALID_ROLES:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Missing user information")
        return

    registry: RoomRegistry = websocket.app.state.rooms
    await registry.join(room_id, user_id, user_role, websocket)

    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                break
            raw = frame.get("text")
            if raw is None:
                raw = (frame.get("bytes") or b"").decode("utf-8", errors="replace")
            await relay_frame(registry, room_id, raw, _persist, user_id=user_id)
    finally:
        registry.leave(room_id, user_id, websocket)
        logger.debug("Socket for %s in room %s closed", user_id, room_id)
