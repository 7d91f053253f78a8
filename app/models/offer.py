"""Investment offer model — the current state of one investor's negotiation on a round."""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, Numeric, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, new_uuid


class OfferStatus(str, enum.Enum):
    REVIEWING = "reviewing"
    OFFERED = "offered"
    COUNTERED = "countered"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Offer(Base):
    __tablename__ = "offers"
    __table_args__ = (
        UniqueConstraint("funding_round_id", "investor_id", name="uq_offer_round_investor"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    funding_round_id: Mapped[str] = mapped_column(
        ForeignKey("funding_rounds.id"), nullable=False, index=True
    )
    investor_id: Mapped[str] = mapped_column(ForeignKey("investors.id"), nullable=False, index=True)
    amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    equity_percentage: Mapped[float] = mapped_column(
        Numeric(5, 2, asdecimal=False), nullable=False, default=0
    )
    status: Mapped[OfferStatus] = mapped_column(
        Enum(OfferStatus), default=OfferStatus.REVIEWING, nullable=False
    )

    meeting_scheduled: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    accepted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    rejected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
