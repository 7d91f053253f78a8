"""Pitch Room model."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, new_uuid


class PitchRoom(Base):
    """
    A PitchRoom pairs one startup with one investor for a pitch session.
    Its id doubles as the real-time chat room identifier.
    """
    __tablename__ = "pitch_rooms"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    startup_id: Mapped[str] = mapped_column(ForeignKey("startups.id"), nullable=False)
    investor_id: Mapped[str] = mapped_column(ForeignKey("investors.id"), nullable=False)
    startup_user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    investor_user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    pitch_deck_url: Mapped[Optional[str]] = mapped_column(String(500))
    avatar_url: Mapped[Optional[str]] = mapped_column(String(500))

    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ended_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
