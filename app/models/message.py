"""Pitch-room chat message model."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, new_uuid, utcnow


class PitchRoomMessage(Base):
    __tablename__ = "pitch_room_messages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    pitch_room_id: Mapped[str] = mapped_column(
        ForeignKey("pitch_rooms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sender_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )
