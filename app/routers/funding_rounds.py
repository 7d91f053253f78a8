"""Funding rounds router — read views over the offer ledger."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.startup import Startup
from app.models.user import User, UserRole
from app.routers.auth import require_role, require_user
from app.services.offer_ledger import FundingRoundNotFound, get_funding_round
from app.services.projections import cap_table, current_funding_round, funding_round_detail

router = APIRouter(prefix="/funding-rounds", tags=["funding-rounds"])


@router.get("/current")
async def get_current_round(
    current_user: User = Depends(require_role(UserRole.FOUNDER)),
    db: AsyncSession = Depends(get_db),
):
    """The founder's active round with progress and interested investors."""
    result = await db.execute(select(Startup).where(Startup.user_id == current_user.id))
    startup = result.scalars().first()
    if not startup:
        raise HTTPException(status_code=404, detail="Startup not found")

    funding_round = await current_funding_round(db, startup)
    return await funding_round_detail(db, funding_round)


@router.get("/{round_id}")
async def get_round(
    round_id: str,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        funding_round = await get_funding_round(db, round_id)
    except FundingRoundNotFound:
        raise HTTPException(status_code=404, detail="Funding round not found")
    return await funding_round_detail(db, funding_round)


@router.get("/{round_id}/cap-table")
async def get_cap_table(
    round_id: str,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Ownership split of the round's startup after every accepted offer."""
    try:
        funding_round = await get_funding_round(db, round_id)
    except FundingRoundNotFound:
        raise HTTPException(status_code=404, detail="Funding round not found")
    return await cap_table(db, funding_round.startup_id)
