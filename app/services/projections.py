"""Read-model projections of funding rounds, cap tables and pitch rooms."""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.cap_table import CapTableEntry
from app.models.funding_round import FundingRound, FundingRoundStatus
from app.models.investor import Investor
from app.models.offer import Offer, OfferStatus
from app.models.pitch_room import PitchRoom
from app.models.startup import Startup
from app.models.user import User, UserRole
from app.services.offer_ledger import implied_valuation, round_progress

# Terms are only shown once there is something on the table.
_VISIBLE_TERMS = {OfferStatus.OFFERED, OfferStatus.COUNTERED, OfferStatus.ACCEPTED}


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _meeting_text(meeting: Optional[datetime]) -> Optional[str]:
    if not meeting:
        return None
    return f"Scheduled pitch meeting for {meeting:%b %d, %Y} at {meeting:%H:%M}"


def interested_investor(offer: Offer, investor: Investor) -> dict:
    terms = None
    if offer.status in _VISIBLE_TERMS:
        terms = {
            "amount": offer.amount,
            "equity": offer.equity_percentage,
            "valuation": implied_valuation(offer.amount, offer.equity_percentage),
        }
    return {
        "id": investor.id,
        "name": investor.name,
        "company": investor.company,
        "avatar": investor.avatar,
        "status": offer.status.value,
        "offer": terms,
        "meetingSchedule": _meeting_text(offer.meeting_scheduled),
    }


async def funding_round_detail(db: AsyncSession, funding_round: FundingRound) -> dict:
    """Round terms, implied valuation, progress and every investor's current offer."""
    result = await db.execute(
        select(Offer, Investor)
        .join(Investor, Investor.id == Offer.investor_id)
        .where(Offer.funding_round_id == funding_round.id)
        .order_by(Offer.created_at)
    )
    rows = result.all()

    accepted = [offer.amount for offer, _ in rows if offer.status == OfferStatus.ACCEPTED]
    return {
        "id": funding_round.id,
        "startupId": funding_round.startup_id,
        "status": funding_round.status.value,
        "askAmount": funding_round.ask_amount,
        "equityOffered": funding_round.equity_offered,
        "impliedValuation": implied_valuation(funding_round.ask_amount, funding_round.equity_offered),
        "closingDate": funding_round.closing_date.isoformat(),
        "progress": round_progress(funding_round.ask_amount, accepted),
        "interestedInvestors": [interested_investor(offer, investor) for offer, investor in rows],
    }


async def current_funding_round(db: AsyncSession, startup: Startup) -> FundingRound:
    """The startup's active round, opened with default terms when there is none."""
    result = await db.execute(
        select(FundingRound)
        .where(
            FundingRound.startup_id == startup.id,
            FundingRound.status == FundingRoundStatus.ACTIVE,
        )
        .order_by(FundingRound.created_at.desc())
        .limit(1)
    )
    funding_round = result.scalar_one_or_none()
    if funding_round:
        return funding_round

    funding_round = FundingRound(
        startup_id=startup.id,
        ask_amount=settings.DEFAULT_ROUND_ASK,
        equity_offered=settings.DEFAULT_ROUND_EQUITY,
        status=FundingRoundStatus.ACTIVE,
        closing_date=datetime.now(timezone.utc) + timedelta(days=settings.DEFAULT_ROUND_DAYS),
        valuation=int(implied_valuation(settings.DEFAULT_ROUND_ASK, settings.DEFAULT_ROUND_EQUITY)),
        accepted_offers=0,
        offers_count=0,
    )
    db.add(funding_round)
    await db.commit()
    await db.refresh(funding_round)
    return funding_round


async def cap_table(db: AsyncSession, startup_id: str) -> dict:
    """
    Founders / Investors / Option Pool split after every accepted offer.

    The founders' share never drops below zero; ``overallocated`` is set when
    investors and the pool together hold more than 100%.
    """
    result = await db.execute(select(CapTableEntry).where(CapTableEntry.startup_id == startup_id))
    entries = list(result.scalars().all())

    investor_equity = round(sum(float(e.equity) for e in entries), 2)
    pool = settings.OPTION_POOL_PERCENT
    remaining = round(100 - investor_equity - pool, 2)
    return {
        "overallocated": remaining < 0,
        "shareholders": [
            {"type": "Founders", "percentage": max(remaining, 0)},
            {"type": "Investors", "percentage": investor_equity},
            {"type": "Option Pool", "percentage": pool},
        ],
        "entries": [
            {
                "investorId": e.investor_id,
                "equity": e.equity,
                "investment": e.investment,
                "date": e.date.isoformat(),
            }
            for e in entries
        ],
    }


def pitch_room_status(room: PitchRoom, now: Optional[datetime] = None) -> str:
    """``scheduled`` before start, ``active`` for the following 24h, then ``completed``."""
    now = now or datetime.now(timezone.utc)
    scheduled = _as_utc(room.scheduled_at)
    if room.ended_at or scheduled + timedelta(hours=24) <= now:
        return "completed"
    if scheduled <= now:
        return "active"
    return "scheduled"


async def pitch_rooms_for(db: AsyncSession, user: User) -> List[dict]:
    if user.role == UserRole.FOUNDER:
        condition = PitchRoom.startup_user_id == user.id
    else:
        condition = PitchRoom.investor_user_id == user.id

    result = await db.execute(
        select(PitchRoom).where(condition).order_by(PitchRoom.scheduled_at.desc())
    )
    return [
        {
            "id": room.id,
            "name": room.name,
            "avatarUrl": room.avatar_url,
            "scheduledFor": _as_utc(room.scheduled_at).isoformat(),
            "status": pitch_room_status(room),
        }
        for room in result.scalars().all()
    ]


def pitch_room_detail(room: PitchRoom, user: User) -> dict:
    role = UserRole.FOUNDER.value if room.startup_user_id == user.id else UserRole.INVESTOR.value
    return {
        "id": room.id,
        "name": room.name,
        "description": room.description or f"Pitch session for {room.name}",
        "pitchDeckUrl": room.pitch_deck_url,
        "status": pitch_room_status(room),
        "currentUser": {"id": user.id, "role": role},
    }
