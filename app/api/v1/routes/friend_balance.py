from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.dependencies import get_current_user, get_db, get_ledger, get_rate_cache
from app.schemas.balances import FriendBalance
from app.schemas.user import AuthUser
from app.services.balance_service import friend_balance
from app.services.currency_service import RateCache
from app.services.ledger_source import SqlLedgerSource
from app.services.user_queries import get_user_by_id

router = APIRouter()


@router.get("/{friend_id}", response_model=FriendBalance)
async def balance_with_friend(
    friend_id: int,
    db: AsyncSession = Depends(get_db),
    ledger: SqlLedgerSource = Depends(get_ledger),
    rates: RateCache = Depends(get_rate_cache),
    user: AuthUser = Depends(get_current_user),
):
    if friend_id == user.id:
        raise HTTPException(400, "Cannot compute a balance with yourself")

    friend = await get_user_by_id(db, friend_id)
    if not friend:
        raise HTTPException(404, "Friend not found")

    return await friend_balance(ledger, rates, user.id, friend_id)
