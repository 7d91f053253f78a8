"""
Notifications router — the negotiation inbox of the signed-in user.

Endpoints:
    GET  /notifications                → latest notifications + unread count
    POST /notifications/read/{notif_id} → mark one as read, returns its link
    POST /notifications/read-all        → mark everything as read
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.user import User
from app.routers.auth import require_user
from app.schemas.notification import InboxOut, NotificationOut, ReadOut
from app.services import notifications

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=InboxOut)
async def get_inbox(
    unread: bool = Query(False),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    items = await notifications.inbox(db, current_user.id, limit, unread_only=unread)
    return InboxOut(
        unread_count=await notifications.unread_count(db, current_user.id),
        notifications=[NotificationOut.model_validate(n) for n in items],
    )


@router.post("/read/{notif_id}", response_model=ReadOut)
async def read_one(
    notif_id: str,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    notif = await notifications.mark_read(db, current_user.id, notif_id)
    if notif is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    await db.commit()
    return ReadOut(link=notif.link, updated=1)


@router.post("/read-all", response_model=ReadOut)
async def read_all(
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    updated = await notifications.mark_all_read(db, current_user.id)
    await db.commit()
    return ReadOut(updated=updated)
