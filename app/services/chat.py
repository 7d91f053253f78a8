"""
Pitch-room chat protocol.

Inbound text frames are decoded, persisted, and only then fanned out
through the room registry, so a room's history never holds a message
the database does not.
"""

import logging
from typing import Awaitable, Callable, List, Optional

from pydantic import ValidationError
from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.message import PitchRoomMessage
from app.models.pitch_room import PitchRoom
from app.models.user import User, UserRole
from app.schemas.chat import ChatMessageOut, InboundFrame
from app.services.room_registry import RoomRegistry

logger = logging.getLogger(__name__)

PersistMessage = Callable[[str, str, str], Awaitable[dict]]


class PitchRoomNotFound(LookupError):
    pass


class SenderNotFound(LookupError):
    pass


def sender_role(room: PitchRoom, sender_id: str) -> str:
    """The startup-owning user speaks as the founder; anyone else as an investor."""
    if room.startup_user_id == sender_id:
        return UserRole.FOUNDER.value
    return UserRole.INVESTOR.value


def serialize_message(message: PitchRoomMessage, sender: User, room: PitchRoom) -> dict:
    return ChatMessageOut(
        id=message.id,
        sender_id=sender.id,
        sender_name=sender.name,
        sender_avatar=sender.avatar,
        sender_role=sender_role(room, sender.id),
        content=message.content,
        room_id=room.id,
        timestamp=message.created_at.isoformat() if message.created_at else "",
    ).model_dump(by_alias=True)


async def persist_message(db: AsyncSession, room_id: str, sender_id: str, content: str) -> dict:
    """Store a chat message and return it in its wire shape."""
    sender = (await db.execute(select(User).where(User.id == sender_id))).scalar_one_or_none()
    if not sender:
        raise SenderNotFound(sender_id)

    room = (await db.execute(select(PitchRoom).where(PitchRoom.id == room_id))).scalar_one_or_none()
    if not room:
        raise PitchRoomNotFound(room_id)

    message = PitchRoomMessage(pitch_room_id=room_id, sender_id=sender_id, content=content)
    db.add(message)
    await db.commit()
    await db.refresh(message)

    return serialize_message(message, sender, room)


async def recent_messages(db: AsyncSession, room: PitchRoom, limit: int) -> List[dict]:
    """Last ``limit`` persisted messages of a room, oldest first."""
    result = await db.execute(
        select(PitchRoomMessage, User)
        .join(User, User.id == PitchRoomMessage.sender_id)
        .where(PitchRoomMessage.pitch_room_id == room.id)
        .order_by(desc(PitchRoomMessage.created_at))
        .limit(limit)
    )
    rows = list(result.all())
    rows.reverse()
    return [serialize_message(message, sender, room) for message, sender in rows]


async def relay_frame(
    registry: RoomRegistry,
    room_id: str,
    raw: str,
    persist: PersistMessage,
    user_id: Optional[str] = None,
) -> Optional[dict]:
    """
    Handle one inbound text frame for ``room_id``.

    When ``user_id`` is given, frames naming any other sender are dropped.
    Returns the broadcast message, or ``None`` when the frame was malformed,
    spoofed or could not be persisted. None of these cases raise.
    """
    try:
        frame = InboundFrame.model_validate_json(raw)
    except ValidationError as e:
        logger.warning("Ignoring malformed frame in room %s: %s", room_id, e.errors()[:1])
        return None

    if user_id is not None and frame.data.sender_id != user_id:
        logger.warning(
            "Dropping frame in room %s: socket of %s sent as %s",
            room_id, user_id, frame.data.sender_id,
        )
        return None

    try:
        message = await persist(room_id, frame.data.sender_id, frame.data.content)
    except (SQLAlchemyError, LookupError):
        logger.exception("Failed to persist message from %s in room %s", frame.data.sender_id, room_id)
        return None

    await registry.broadcast(room_id, message)
    return message
