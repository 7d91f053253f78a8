"""Users router – who is signed in, and public founder/investor profiles."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.investor import Investor
from app.models.startup import Startup
from app.models.user import User, UserRole
from app.routers.auth import require_user
from app.schemas.user import MeOut, UserOut

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=MeOut)
async def read_me(
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """
    The authenticated user's profile.

    Founders get the id of their startup, investors the id of their investor
    profile; those are the ids the offer endpoints take.
    """
    me = MeOut.model_validate(current_user)
    if current_user.role == UserRole.FOUNDER:
        result = await db.execute(select(Startup.id).where(Startup.user_id == current_user.id))
        me.startup_id = result.scalars().first()
    else:
        result = await db.execute(select(Investor.id).where(Investor.user_id == current_user.id))
        me.investor_id = result.scalars().first()
    return me


@router.get("/{user_id}", response_model=UserOut)
async def read_user(
    user_id: str,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user
