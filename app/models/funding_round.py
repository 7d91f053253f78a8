"""Funding round model."""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, new_uuid


class FundingRoundStatus(str, enum.Enum):
    ACTIVE = "active"
    CLOSED = "closed"


class FundingRound(Base):
    """
    A startup's raise: ask amount for a percentage of equity.

    ``valuation``, ``accepted_offers`` and ``offers_count`` are caches
    recomputed from the offers table after every negotiation action.
    """
    __tablename__ = "funding_rounds"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    startup_id: Mapped[str] = mapped_column(ForeignKey("startups.id"), nullable=False, index=True)
    ask_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    equity_offered: Mapped[float] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=False)
    status: Mapped[FundingRoundStatus] = mapped_column(
        Enum(FundingRoundStatus), default=FundingRoundStatus.ACTIVE
    )
    closing_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # ── Caches ──
    valuation: Mapped[Optional[int]] = mapped_column(Integer)
    accepted_offers: Mapped[Optional[int]] = mapped_column(Integer)
    offers_count: Mapped[Optional[int]] = mapped_column(Integer)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
