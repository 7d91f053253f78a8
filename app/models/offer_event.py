"""Offer event model — append-only log of negotiation actions."""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, new_uuid, utcnow
from app.models.offer import OfferStatus


class OfferAction(str, enum.Enum):
    INTEREST = "interest"
    PROPOSE = "propose"
    COUNTER = "counter"
    ACCEPT = "accept"
    REJECT = "reject"


class OfferEvent(Base):
    __tablename__ = "offer_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    offer_id: Mapped[str] = mapped_column(
        ForeignKey("offers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    action: Mapped[OfferAction] = mapped_column(Enum(OfferAction), nullable=False)
    actor_user_id: Mapped[Optional[str]] = mapped_column(ForeignKey("users.id"))
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    equity_percentage: Mapped[float] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=False)
    status_after: Mapped[OfferStatus] = mapped_column(Enum(OfferStatus), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )
