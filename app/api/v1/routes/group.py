from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.dependencies import get_current_user, get_db, get_ledger, get_rate_cache, check_group_membership
from app.schemas.balances import GroupBalanceOut, SimplifiedDebtOut
from app.schemas.user import AuthUser
from app.services.currency_service import RateCache
from app.services.dashboard_service import get_group_balances, get_group_simplified_debts
from app.services.ledger_source import SqlLedgerSource
from app.services.user_queries import get_profiles

router = APIRouter()

@router.get("/{group_id}/simplified-debts", response_model=list[SimplifiedDebtOut])
async def simplified_debts(
    group_id: int,
    db: AsyncSession = Depends(get_db),
    ledger: SqlLedgerSource = Depends(get_ledger),
    rates: RateCache = Depends(get_rate_cache),
    user: AuthUser = Depends(get_current_user),
):
    await check_group_membership(db, group_id, user.id)

    transfers = await get_group_simplified_debts(ledger, rates, user.id, group_id)
    profiles = await get_profiles(
        db,
        [t.from_user_id for t in transfers] + [t.to_user_id for t in transfers],
    )

    return [
        SimplifiedDebtOut(
            from_=profiles[t.from_user_id],
            to=profiles[t.to_user_id],
            amount=float(t.amount),
        )
        for t in transfers
    ]

@router.get("/{group_id}/balances", response_model=GroupBalanceOut)
async def group_balances(
    group_id: int,
    db: AsyncSession = Depends(get_db),
    ledger: SqlLedgerSource = Depends(get_ledger),
    rates: RateCache = Depends(get_rate_cache),
    user: AuthUser = Depends(get_current_user),
):
    await check_group_membership(db, group_id, user.id)
    return await get_group_balances(ledger, rates, user.id, group_id)
