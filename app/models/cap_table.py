"""Cap-table entry model — one row per accepted investment."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, new_uuid


class CapTableEntry(Base):
    __tablename__ = "cap_tables"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    startup_id: Mapped[str] = mapped_column(ForeignKey("startups.id"), nullable=False, index=True)
    investor_id: Mapped[str] = mapped_column(ForeignKey("investors.id"), nullable=False)
    offer_id: Mapped[Optional[str]] = mapped_column(ForeignKey("offers.id"))
    equity: Mapped[float] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=False)
    investment: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
