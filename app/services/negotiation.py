"""
Negotiation service — applies offer actions to the ledger.

All actions on the same (funding round, investor) pair run one at a time
under a per-pair ``asyncio.Lock``, so the read-modify-write of the offer row
cannot interleave with a competing action from the other party. Each action
commits its own transaction before the lock is released.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Dict, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.funding_round import FundingRound
from app.models.investor import Investor
from app.models.offer import Offer, OfferStatus
from app.models.offer_event import OfferAction
from app.models.startup import Startup
from app.models.user import User
from app.services import notifications
from app.services.offer_ledger import (
    TERMINAL,
    check_transition,
    get_funding_round,
    get_investor,
    get_offer_row,
    insert_cap_table_entry,
    record_event,
    refresh_round_cache,
    require_offer_row,
    update_offer_row,
)

logger = logging.getLogger(__name__)

Key = Tuple[str, str]


class NegotiationService:
    def __init__(self):
        self._locks: Dict[Key, asyncio.Lock] = {}
        self._holders: Dict[Key, int] = {}

    @asynccontextmanager
    async def _exclusive(self, funding_round_id: str, investor_id: str):
        key = (funding_round_id, investor_id)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if not self._holders[key]:
                del self._holders[key]
                del self._locks[key]

    def active_keys(self):
        return list(self._locks)

    # ── Helpers ──

    @staticmethod
    def _link(funding_round_id: str) -> str:
        return f"/funding-rounds/{funding_round_id}"

    @staticmethod
    async def _startup(db: AsyncSession, funding_round: FundingRound) -> Startup:
        result = await db.execute(select(Startup).where(Startup.id == funding_round.startup_id))
        return result.scalar_one()

    # ── Actions ──

    async def express_interest(self, db: AsyncSession, funding_round_id: str, investor_id: str,
                               meeting_at: Optional[datetime] = None,
                               actor: Optional[User] = None) -> Offer:
        """
        Open a ``reviewing`` offer for the investor, or return the existing one.

        A closed (accepted or rejected) offer is returned untouched.
        """
        async with self._exclusive(funding_round_id, investor_id):
            funding_round = await get_funding_round(db, funding_round_id)
            investor = await get_investor(db, investor_id)

            offer = await get_offer_row(db, funding_round_id, investor_id)
            if offer is not None and offer.status in TERMINAL:
                logger.info("Offer %s is already %s; interest ignored", offer.id, offer.status.value)
                return offer
            created = offer is None
            if created:
                offer = Offer(
                    funding_round_id=funding_round_id,
                    investor_id=investor_id,
                    amount=0,
                    equity_percentage=0,
                    status=OfferStatus.REVIEWING,
                )
                db.add(offer)
                await db.flush()
            if meeting_at is not None:
                offer.meeting_scheduled = meeting_at

            if created:
                await record_event(db, offer, OfferAction.INTEREST, actor.id if actor else None)
                startup = await self._startup(db, funding_round)
                await notifications.notify_interest(
                    db, startup.user_id, investor.name, self._link(funding_round_id)
                )
                await refresh_round_cache(db, funding_round)
                logger.info("Investor %s is reviewing round %s", investor_id, funding_round_id)

            await db.commit()
            await db.refresh(offer)
            return offer

    async def propose_offer(self, db: AsyncSession, funding_round_id: str, investor_id: str,
                            amount: int, equity: float, actor: Optional[User] = None) -> Offer:
        """Investor puts terms on the table."""
        async with self._exclusive(funding_round_id, investor_id):
            funding_round = await get_funding_round(db, funding_round_id)
            offer = await require_offer_row(db, funding_round_id, investor_id)
            check_transition(offer, OfferAction.PROPOSE)

            update_offer_row(offer, OfferStatus.OFFERED, amount, equity)
            await record_event(db, offer, OfferAction.PROPOSE, actor.id if actor else None)

            investor = await get_investor(db, investor_id)
            startup = await self._startup(db, funding_round)
            await notifications.notify_proposal(
                db, startup.user_id, investor.name, amount, equity, self._link(funding_round_id)
            )
            await refresh_round_cache(db, funding_round)
            await db.commit()
            await db.refresh(offer)
            logger.info(
                "Investor %s offered %s for %s%% on round %s",
                investor_id, amount, equity, funding_round_id,
            )
            return offer

    async def counter_offer(self, db: AsyncSession, funding_round_id: str, investor_id: str,
                            amount: int, equity: float, actor: Optional[User] = None) -> Offer:
        """Overwrite the offer's terms and mark it ``countered``."""
        async with self._exclusive(funding_round_id, investor_id):
            funding_round = await get_funding_round(db, funding_round_id)
            offer = await require_offer_row(db, funding_round_id, investor_id)
            check_transition(offer, OfferAction.COUNTER)

            update_offer_row(offer, OfferStatus.COUNTERED, amount, equity)
            await record_event(db, offer, OfferAction.COUNTER, actor.id if actor else None)

            investor = await get_investor(db, investor_id)
            startup = await self._startup(db, funding_round)
            if actor is not None and actor.id == investor.user_id:
                await notifications.notify_counter(
                    db, startup.user_id, investor.name, amount, equity, self._link(funding_round_id)
                )
            else:
                await notifications.notify_counter(
                    db, investor.user_id, startup.name, amount, equity, self._link(funding_round_id)
                )
            await refresh_round_cache(db, funding_round)
            await db.commit()
            await db.refresh(offer)
            logger.info(
                "Offer for investor %s on round %s countered at %s for %s%%",
                investor_id, funding_round_id, amount, equity,
            )
            return offer

    async def accept_offer(self, db: AsyncSession, funding_round_id: str, investor_id: str,
                           actor: Optional[User] = None) -> Offer:
        """
        Accept the current terms and record them on the cap table.

        Accepting an already accepted offer returns it unchanged and does not
        add a second cap-table entry.
        """
        async with self._exclusive(funding_round_id, investor_id):
            funding_round = await get_funding_round(db, funding_round_id)
            offer = await require_offer_row(db, funding_round_id, investor_id)
            if offer.status == OfferStatus.ACCEPTED:
                logger.info("Offer %s already accepted; nothing to do", offer.id)
                return offer
            check_transition(offer, OfferAction.ACCEPT)

            update_offer_row(offer, OfferStatus.ACCEPTED)
            await insert_cap_table_entry(db, funding_round, offer)
            await record_event(db, offer, OfferAction.ACCEPT, actor.id if actor else None)

            investor: Investor = await get_investor(db, investor_id)
            startup = await self._startup(db, funding_round)
            await notifications.notify_accepted(
                db, investor.user_id, startup.name, offer.amount, offer.equity_percentage,
                self._link(funding_round_id),
            )
            await refresh_round_cache(db, funding_round)
            await db.commit()
            await db.refresh(offer)
            logger.info(
                "Offer for investor %s on round %s accepted: %s for %s%%",
                investor_id, funding_round_id, offer.amount, offer.equity_percentage,
            )
            return offer

    async def reject_offer(self, db: AsyncSession, funding_round_id: str, investor_id: str,
                           actor: Optional[User] = None) -> Offer:
        async with self._exclusive(funding_round_id, investor_id):
            funding_round = await get_funding_round(db, funding_round_id)
            offer = await require_offer_row(db, funding_round_id, investor_id)
            check_transition(offer, OfferAction.REJECT)

            update_offer_row(offer, OfferStatus.REJECTED)
            await record_event(db, offer, OfferAction.REJECT, actor.id if actor else None)

            investor = await get_investor(db, investor_id)
            startup = await self._startup(db, funding_round)
            await notifications.notify_rejected(
                db, investor.user_id, startup.name, self._link(funding_round_id)
            )
            await refresh_round_cache(db, funding_round)
            await db.commit()
            await db.refresh(offer)
            logger.info("Offer for investor %s on round %s rejected", investor_id, funding_round_id)
            return offer
