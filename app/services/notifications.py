"""In-app notification service for negotiation events."""

import logging
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import Notification

logger = logging.getLogger(__name__)


def _money(amount: int) -> str:
    return f"${amount:,}"


def _terms(amount: int, equity: float) -> str:
    return f"{_money(amount)} for {float(equity):g}%"


async def notify(db: AsyncSession, user_id: str, message: str, link: Optional[str] = None) -> Notification:
    """Queue an in-app notification on the current session."""
    notif = Notification(user_id=user_id, message=message, link=link)
    db.add(notif)
    logger.debug("Notification for %s: %s", user_id, message)
    return notif


async def notify_interest(db: AsyncSession, founder_user_id: str, investor_name: str, link: str):
    await notify(db, founder_user_id, f"👀 {investor_name} is reviewing your funding round", link)


async def notify_proposal(db: AsyncSession, founder_user_id: str, investor_name: str,
                          amount: int, equity: float, link: str):
    await notify(db, founder_user_id, f"💰 {investor_name} offered {_terms(amount, equity)}", link)


async def notify_counter(db: AsyncSession, recipient_user_id: str, by_name: str,
                         amount: int, equity: float, link: str):
    await notify(db, recipient_user_id, f"🔁 {by_name} countered with {_terms(amount, equity)}", link)


async def notify_accepted(db: AsyncSession, investor_user_id: str, startup_name: str,
                          amount: int, equity: float, link: str):
    await notify(
        db, investor_user_id,
        f"✅ {startup_name} accepted your offer of {_terms(amount, equity)}", link,
    )


async def notify_rejected(db: AsyncSession, investor_user_id: str, startup_name: str, link: str):
    await notify(db, investor_user_id, f"❌ {startup_name} declined your offer", link)


# ── Inbox queries ──

async def inbox(db: AsyncSession, user_id: str, limit: int, unread_only: bool = False) -> List[Notification]:
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.is_read.is_(False))
    result = await db.execute(query.order_by(Notification.created_at.desc()).limit(limit))
    return list(result.scalars().all())


async def unread_count(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.is_read.is_(False),
        )
    )
    return result.scalar() or 0


async def mark_read(db: AsyncSession, user_id: str, notification_id: str) -> Optional[Notification]:
    """Flag one of the user's notifications as read; ``None`` if it is not theirs."""
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
    )
    notif = result.scalar_one_or_none()
    if notif is not None:
        notif.is_read = True
    return notif


async def mark_all_read(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    return result.rowcount or 0
