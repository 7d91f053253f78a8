"""
Offers router — negotiation actions on a funding round.

Endpoints:
    POST /offers/{round_id}/{investor_id}/interest → investor starts reviewing the round
    POST /offers/{round_id}/{investor_id}/propose  → investor proposes terms
    POST /offers/{round_id}/{investor_id}/counter  → either side counters
    POST /offers/{round_id}/{investor_id}/accept   → founder accepts current terms
    POST /offers/{round_id}/{investor_id}/reject   → founder declines
    GET  /offers/{round_id}/{investor_id}/history  → negotiation log
"""

import logging
from typing import Awaitable, List, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.investor import Investor
from app.models.offer import Offer
from app.models.startup import Startup
from app.models.user import User
from app.routers.auth import require_user
from app.schemas.offer import InterestIn, OfferActionOut, OfferEventOut, OfferOut, TermsIn
from app.services.negotiation import NegotiationService
from app.services.offer_ledger import (
    FundingRoundNotFound,
    InvalidOfferTransition,
    InvestorNotFound,
    OfferNotFound,
    get_funding_round,
    get_investor,
    list_events,
    require_offer_row,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/offers", tags=["offers"])


def get_negotiation(request: Request) -> NegotiationService:
    return request.app.state.negotiation


# ═══════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════

async def _load_parties(db: AsyncSession, round_id: str, investor_id: str) -> Tuple[Startup, Investor]:
    try:
        funding_round = await get_funding_round(db, round_id)
        investor = await get_investor(db, investor_id)
    except FundingRoundNotFound:
        raise HTTPException(status_code=404, detail="Funding round not found")
    except InvestorNotFound:
        raise HTTPException(status_code=404, detail="Investor not found")

    result = await db.execute(select(Startup).where(Startup.id == funding_round.startup_id))
    return result.scalar_one(), investor


def _require_side(user: User, *, founder: Optional[Startup] = None, investor: Optional[Investor] = None):
    """403 unless ``user`` owns the given startup or investor profile."""
    allowed = set()
    if founder is not None:
        allowed.add(founder.user_id)
    if investor is not None:
        allowed.add(investor.user_id)
    if user.id not in allowed:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not a party to this negotiation",
        )


async def _apply(action: str, pending: Awaitable[Offer]) -> OfferActionOut:
    """Await a negotiation action and translate its failures into HTTP errors."""
    try:
        offer = await pending
    except OfferNotFound:
        raise HTTPException(status_code=404, detail="Offer not found")
    except (FundingRoundNotFound, InvestorNotFound) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidOfferTransition as e:
        logger.warning("Rejected %s: %s", action, e)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except SQLAlchemyError:
        logger.exception("Error during %s", action)
        raise HTTPException(status_code=500, detail=f"Failed to {action}")
    return OfferActionOut(offer=OfferOut.model_validate(offer))


# ═══════════════════════════════════════════════════════════════
#  Actions
# ═══════════════════════════════════════════════════════════════

@router.post("/{round_id}/{investor_id}/interest", response_model=OfferActionOut)
async def express_interest(
    round_id: str,
    investor_id: str,
    body: Optional[InterestIn] = None,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    negotiation: NegotiationService = Depends(get_negotiation),
):
    """Open a reviewing offer for the investor (idempotent)."""
    _, investor = await _load_parties(db, round_id, investor_id)
    _require_side(current_user, investor=investor)
    meeting_at = body.meeting_at if body else None
    return await _apply(
        "register investor interest",
        negotiation.express_interest(db, round_id, investor_id, meeting_at, actor=current_user),
    )


@router.post("/{round_id}/{investor_id}/propose", response_model=OfferActionOut)
async def propose_offer(
    round_id: str,
    investor_id: str,
    terms: TermsIn,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    negotiation: NegotiationService = Depends(get_negotiation),
):
    _, investor = await _load_parties(db, round_id, investor_id)
    _require_side(current_user, investor=investor)
    return await _apply(
        "submit investment offer",
        negotiation.propose_offer(db, round_id, investor_id, terms.amount, terms.equity, actor=current_user),
    )


@router.post("/{round_id}/{investor_id}/counter", response_model=OfferActionOut)
async def counter_offer(
    round_id: str,
    investor_id: str,
    terms: TermsIn,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    negotiation: NegotiationService = Depends(get_negotiation),
):
    """Overwrite the offer's terms; open to both the founder and the investor."""
    startup, investor = await _load_parties(db, round_id, investor_id)
    _require_side(current_user, founder=startup, investor=investor)
    return await _apply(
        "submit counter offer",
        negotiation.counter_offer(db, round_id, investor_id, terms.amount, terms.equity, actor=current_user),
    )


@router.post("/{round_id}/{investor_id}/accept", response_model=OfferActionOut)
async def accept_offer(
    round_id: str,
    investor_id: str,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    negotiation: NegotiationService = Depends(get_negotiation),
):
    """Accept the current terms and add them to the cap table."""
    startup, _ = await _load_parties(db, round_id, investor_id)
    _require_side(current_user, founder=startup)
    return await _apply(
        "accept investment offer",
        negotiation.accept_offer(db, round_id, investor_id, actor=current_user),
    )


@router.post("/{round_id}/{investor_id}/reject", response_model=OfferActionOut)
async def reject_offer(
    round_id: str,
    investor_id: str,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    negotiation: NegotiationService = Depends(get_negotiation),
):
    startup, _ = await _load_parties(db, round_id, investor_id)
    _require_side(current_user, founder=startup)
    return await _apply(
        "reject investment offer",
        negotiation.reject_offer(db, round_id, investor_id, actor=current_user),
    )


@router.get("/{round_id}/{investor_id}/history", response_model=List[OfferEventOut])
async def offer_history(
    round_id: str,
    investor_id: str,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Every action taken on this offer, oldest first."""
    startup, investor = await _load_parties(db, round_id, investor_id)
    _require_side(current_user, founder=startup, investor=investor)
    try:
        offer = await require_offer_row(db, round_id, investor_id)
    except OfferNotFound:
        raise HTTPException(status_code=404, detail="Offer not found")
    return await list_events(db, offer)
