from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.dependencies import get_current_user, get_db, get_ledger, get_rate_cache, check_group_membership
from app.schemas.balances import DashboardOut, DashboardTransactionOut
from app.schemas.user import AuthUser
from app.services.balance_service import scope_from_group_id
from app.services.currency_service import RateCache
from app.services.dashboard_service import get_dashboard
from app.services.ledger_source import SqlLedgerSource
from app.services.user_queries import get_profiles

router = APIRouter()


@router.get("", response_model=DashboardOut)
async def dashboard(
    group_id: Optional[int] = Query(None, alias="groupId"),
    db: AsyncSession = Depends(get_db),
    ledger: SqlLedgerSource = Depends(get_ledger),
    rates: RateCache = Depends(get_rate_cache),
    user: AuthUser = Depends(get_current_user),
):
    if group_id is not None:
        await check_group_membership(db, group_id, user.id)

    result = await get_dashboard(ledger, rates, user.id, scope_from_group_id(group_id))

    profiles = await get_profiles(
        db,
        [t.from_user_id for t in result.transactions] + [t.to_user_id for t in result.transactions],
    )

    return DashboardOut(
        youOwe=float(result.you_owe),
        youAreOwed=float(result.you_are_owed),
        simplifiedTransactions=[
            DashboardTransactionOut(
                fromUserId=t.from_user_id,
                toUserId=t.to_user_id,
                amount=float(t.amount),
                fromUser=profiles.get(t.from_user_id),
                toUser=profiles.get(t.to_user_id),
            )
            for t in result.transactions
        ],
    )
