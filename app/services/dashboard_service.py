import logging
from typing import List
from app.core.utils import ZERO, is_balanced, is_settled, qround, simplify_debts
from app.schemas.balances import Dashboard, GroupBalanceOut, SimplifiedTransaction
from app.services.balance_service import (
    GroupScope,
    Scope,
    closed_scope_tolerance,
    net_balances,
)
from app.services.currency_service import RateCache
from app.services.ledger_source import LedgerSource

logger = logging.getLogger(__name__)


async def _simplified(
    source: LedgerSource,
    rates: RateCache,
    user_id: int,
    scope: Scope,
) -> List[SimplifiedTransaction]:
    balances = await net_balances(source, rates, user_id, scope)

    if not is_balanced(balances, closed_scope_tolerance(len(balances))):
        logger.warning(
            "Net balances for user %s in %s do not sum to zero (%s)",
            user_id, scope, sum(balances.values(), ZERO),
        )

    return simplify_debts(balances)


def summarize(user_id: int, transactions: List[SimplifiedTransaction]) -> Dashboard:
    """Keep only the requester's edges and total them."""
    mine = [
        t for t in transactions
        if t.from_user_id == user_id or t.to_user_id == user_id
    ]

    you_owe = sum((t.amount for t in mine if t.from_user_id == user_id), ZERO)
    you_are_owed = sum((t.amount for t in mine if t.to_user_id == user_id), ZERO)

    return Dashboard(
        you_owe=qround(you_owe),
        you_are_owed=qround(you_are_owed),
        transactions=mine,
    )


async def get_dashboard(
    source: LedgerSource,
    rates: RateCache,
    user_id: int,
    scope: Scope,
) -> Dashboard:
    # a group dashboard nets a different population than the global one,
    # so its pairings are computed independently
    transactions = await _simplified(source, rates, user_id, scope)
    return summarize(user_id, transactions)


async def get_group_simplified_debts(
    source: LedgerSource,
    rates: RateCache,
    user_id: int,
    group_id: int,
) -> List[SimplifiedTransaction]:
    return await _simplified(source, rates, user_id, GroupScope(group_id))


async def get_group_balances(
    source: LedgerSource,
    rates: RateCache,
    user_id: int,
    group_id: int,
) -> GroupBalanceOut:
    balances = await net_balances(source, rates, user_id, GroupScope(group_id))

    return GroupBalanceOut(
        net={uid: float(qround(amount)) for uid, amount in balances.items()},
        settlements=simplify_debts(balances),
        is_settled=is_settled(balances),
    )
