"""Offer Pydantic schemas — negotiation request bodies and responses."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from app.models.offer import OfferStatus
from app.models.offer_event import OfferAction
from app.services.offer_ledger import implied_valuation


class TermsIn(BaseModel):
    """Amount in whole currency units for a percentage of equity."""
    amount: int = Field(gt=0)
    equity: float = Field(gt=0, le=100)


class InterestIn(BaseModel):
    meeting_at: Optional[datetime] = Field(default=None, alias="meetingAt")

    model_config = ConfigDict(populate_by_name=True)


class OfferOut(BaseModel):
    id: str
    funding_round_id: str
    investor_id: str
    amount: int
    equity_percentage: float
    status: OfferStatus
    meeting_scheduled: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    @computed_field(alias="impliedValuation")
    @property
    def implied_valuation(self) -> float:
        return implied_valuation(self.amount, self.equity_percentage)


class OfferActionOut(BaseModel):
    success: bool = True
    offer: OfferOut


class OfferEventOut(BaseModel):
    id: str
    action: OfferAction
    actor_user_id: Optional[str] = None
    amount: int
    equity_percentage: float
    status_after: OfferStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)
