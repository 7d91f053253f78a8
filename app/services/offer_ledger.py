"""
Offer ledger — the offer state machine and the storage calls behind it.

Offers move ``reviewing → offered → {accepted | countered | rejected}``;
``countered`` may be countered again, re-proposed or accepted. ``accepted``
and ``rejected`` are terminal. There is one mutable ``Offer`` row per
(funding round, investor); every action also appends an ``OfferEvent`` so
superseded terms are not lost.
"""

import logging
from typing import Dict, FrozenSet, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import utcnow
from app.models.cap_table import CapTableEntry
from app.models.funding_round import FundingRound
from app.models.investor import Investor
from app.models.offer import Offer, OfferStatus
from app.models.offer_event import OfferAction, OfferEvent

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════
#  Errors
# ═══════════════════════════════════════════════════════════════

class OfferNotFound(LookupError):
    def __init__(self, funding_round_id: str, investor_id: str):
        super().__init__(f"Offer not found for round {funding_round_id} and investor {investor_id}")
        self.funding_round_id = funding_round_id
        self.investor_id = investor_id


class FundingRoundNotFound(LookupError):
    pass


class InvestorNotFound(LookupError):
    pass


class InvalidOfferTransition(ValueError):
    def __init__(self, action: OfferAction, status: OfferStatus):
        super().__init__(f"Cannot {action.value} an offer that is {status.value}")
        self.action = action
        self.status = status


# ═══════════════════════════════════════════════════════════════
#  State machine
# ═══════════════════════════════════════════════════════════════

ALLOWED_FROM: Dict[OfferAction, FrozenSet[OfferStatus]] = {
    OfferAction.PROPOSE: frozenset({OfferStatus.REVIEWING, OfferStatus.OFFERED, OfferStatus.COUNTERED}),
    OfferAction.COUNTER: frozenset({OfferStatus.REVIEWING, OfferStatus.OFFERED, OfferStatus.COUNTERED}),
    OfferAction.ACCEPT: frozenset({OfferStatus.OFFERED, OfferStatus.COUNTERED}),
    OfferAction.REJECT: frozenset({OfferStatus.REVIEWING, OfferStatus.OFFERED, OfferStatus.COUNTERED}),
}

TERMINAL: FrozenSet[OfferStatus] = frozenset({OfferStatus.ACCEPTED, OfferStatus.REJECTED})


def check_transition(offer: Offer, action: OfferAction) -> None:
    if offer.status not in ALLOWED_FROM[action]:
        raise InvalidOfferTransition(action, offer.status)


def implied_valuation(amount: float, equity: float) -> float:
    """Valuation implied by trading ``amount`` for ``equity`` percent."""
    if not equity or equity <= 0:
        return 0
    return round(float(amount) / float(equity) * 100, 2)


def round_progress(ask_amount: int, accepted_amounts: List[int]) -> dict:
    """Raised total against the ask. The percentage is deliberately not capped at 100."""
    raised = sum(accepted_amounts)
    percentage = round(raised / ask_amount * 100, 2) if ask_amount else 0
    return {
        "raised": raised,
        "total": ask_amount,
        "percentage": percentage,
        "oversubscribed": bool(ask_amount) and raised > ask_amount,
    }


# ═══════════════════════════════════════════════════════════════
#  Storage
# ═══════════════════════════════════════════════════════════════

async def get_funding_round(db: AsyncSession, funding_round_id: str) -> FundingRound:
    result = await db.execute(select(FundingRound).where(FundingRound.id == funding_round_id))
    funding_round = result.scalar_one_or_none()
    if not funding_round:
        raise FundingRoundNotFound(funding_round_id)
    return funding_round


async def get_investor(db: AsyncSession, investor_id: str) -> Investor:
    result = await db.execute(select(Investor).where(Investor.id == investor_id))
    investor = result.scalar_one_or_none()
    if not investor:
        raise InvestorNotFound(investor_id)
    return investor


async def get_offer_row(db: AsyncSession, funding_round_id: str, investor_id: str) -> Optional[Offer]:
    result = await db.execute(
        select(Offer).where(
            Offer.funding_round_id == funding_round_id,
            Offer.investor_id == investor_id,
        )
    )
    return result.scalar_one_or_none()


async def require_offer_row(db: AsyncSession, funding_round_id: str, investor_id: str) -> Offer:
    offer = await get_offer_row(db, funding_round_id, investor_id)
    if offer is None:
        raise OfferNotFound(funding_round_id, investor_id)
    return offer


async def list_offers(db: AsyncSession, funding_round_id: str) -> List[Offer]:
    result = await db.execute(
        select(Offer)
        .where(Offer.funding_round_id == funding_round_id)
        .order_by(Offer.created_at)
    )
    return list(result.scalars().all())


def update_offer_row(offer: Offer, status: OfferStatus, amount: Optional[int] = None,
                     equity: Optional[float] = None) -> Offer:
    """Apply new terms and status to an offer in place."""
    if amount is not None:
        offer.amount = amount
    if equity is not None:
        offer.equity_percentage = equity
    offer.status = status
    offer.updated_at = utcnow()
    if status == OfferStatus.ACCEPTED:
        offer.accepted_at = utcnow()
    elif status == OfferStatus.REJECTED:
        offer.rejected_at = utcnow()
    return offer


async def insert_cap_table_entry(db: AsyncSession, funding_round: FundingRound, offer: Offer) -> CapTableEntry:
    entry = CapTableEntry(
        startup_id=funding_round.startup_id,
        investor_id=offer.investor_id,
        offer_id=offer.id,
        equity=offer.equity_percentage,
        investment=offer.amount,
        date=utcnow(),
    )
    db.add(entry)
    await db.flush()
    return entry


async def record_event(db: AsyncSession, offer: Offer, action: OfferAction,
                       actor_user_id: Optional[str]) -> OfferEvent:
    event = OfferEvent(
        offer_id=offer.id,
        action=action,
        actor_user_id=actor_user_id,
        amount=offer.amount,
        equity_percentage=offer.equity_percentage,
        status_after=offer.status,
    )
    db.add(event)
    await db.flush()
    return event


async def list_events(db: AsyncSession, offer: Offer) -> List[OfferEvent]:
    result = await db.execute(
        select(OfferEvent)
        .where(OfferEvent.offer_id == offer.id)
        .order_by(OfferEvent.created_at)
    )
    return list(result.scalars().all())


async def refresh_round_cache(db: AsyncSession, funding_round: FundingRound) -> FundingRound:
    """Recompute the round's cached counters and valuation from its offers."""
    total = await db.execute(
        select(func.count(Offer.id)).where(Offer.funding_round_id == funding_round.id)
    )
    accepted = await db.execute(
        select(func.count(Offer.id)).where(
            Offer.funding_round_id == funding_round.id,
            Offer.status == OfferStatus.ACCEPTED,
        )
    )
    funding_round.offers_count = total.scalar() or 0
    funding_round.accepted_offers = accepted.scalar() or 0
    funding_round.valuation = int(implied_valuation(funding_round.ask_amount, funding_round.equity_offered))
    await db.flush()
    return funding_round
