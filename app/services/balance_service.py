"""
Net balance aggregation.

net_balance = total_paid - total_owed (+ settlements sent - settlements received)

Positive means the user is owed money, negative means the user owes money.
Every amount is converted into the requesting user's preferred currency
before it is accumulated; arithmetic stays in Decimal throughout and rounding
happens only where values leave the engine.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Union

from app.core.config import settings
from app.core.utils import EPSILON, ZERO, qround
from app.schemas.balances import FriendBalance, FriendHistoryItem
from app.schemas.ledger import ExpenseRecord, SettlementRecord, SettlementStatus
from app.services.currency_service import RateCache
from app.services.ledger_source import LedgerSource


FRIEND_HISTORY_LIMIT = 50


@dataclass(frozen=True)
class GlobalScope:
    """Every expense and settlement the user takes part in, across groups."""


@dataclass(frozen=True)
class GroupScope:
    group_id: int


Scope = Union[GlobalScope, GroupScope]


def scope_from_group_id(group_id: int | None) -> Scope:
    return GroupScope(group_id) if group_id is not None else GlobalScope()


async def reference_currency(source: LedgerSource, user_id: int) -> str:
    currency = await source.preferred_currency(user_id)
    return (currency or settings.DEFAULT_CURRENCY).upper()


class _Converter:
    """Per-call memo so one computation asks the cache once per currency."""

    def __init__(self, rates: RateCache, target: str):
        self.rates = rates
        self.target = target
        self._factors: Dict[str, Decimal] = {}

    async def __call__(self, amount: Decimal, currency: str) -> Decimal:
        currency = (currency or self.target).upper()

        if currency not in self._factors:
            self._factors[currency] = await self.rates.rate(currency, self.target)

        return Decimal(amount) * self._factors[currency]


async def _accumulate(
    expenses: Iterable[ExpenseRecord],
    settlements: Iterable[SettlementRecord],
    convert: _Converter,
) -> Dict[int, Decimal]:
    net: Dict[int, Decimal] = {}

    for exp in expenses:
        for payer in exp.payers:
            paid = await convert(payer.amount_paid, exp.currency)
            net[payer.user_id] = net.get(payer.user_id, ZERO) + paid

        for split in exp.splits:
            owed = await convert(split.amount_owed, exp.currency)
            net[split.user_id] = net.get(split.user_id, ZERO) - owed

    for s in settlements:
        if s.status != SettlementStatus.COMPLETED:
            continue

        amt = await convert(s.amount, s.currency)
        # sender paid money out, receiver's outstanding credit shrinks
        net[s.from_user] = net.get(s.from_user, ZERO) + amt
        net[s.to_user] = net.get(s.to_user, ZERO) - amt

    return net


async def net_balances(
    source: LedgerSource,
    rates: RateCache,
    user_id: int,
    scope: Scope,
) -> Dict[int, Decimal]:
    """
    Returns:
        {
            user_id: net_balance (Decimal, in the requester's currency)
        }

    Users whose balance is below one cent in magnitude are left out.
    """
    convert = _Converter(rates, await reference_currency(source, user_id))

    if isinstance(scope, GroupScope):
        expenses = await source.expenses_for_group(scope.group_id)
        settlements = await source.settlements_for_group(scope.group_id)
        # rows tagged with another group never count
        expenses = [e for e in expenses if e.group_id == scope.group_id]
        settlements = [s for s in settlements if s.group_id == scope.group_id]
    else:
        expenses = await source.expenses_for_user(user_id)
        settlements = await source.settlements_for_user(user_id)

    net = await _accumulate(expenses, settlements, convert)

    return {uid: amount for uid, amount in net.items() if abs(amount) >= EPSILON}


def closed_scope_tolerance(participants: int) -> Decimal:
    # paid and owed totals may drift by up to 0.02 per participant
    return EPSILON + Decimal("0.02") * participants


async def friend_balance(
    source: LedgerSource,
    rates: RateCache,
    user_id: int,
    friend_id: int,
) -> FriendBalance:
    """
    Pairwise balance between two users, without population-wide netting.

    For every shared expense the friend owes the user their share weighted by
    the fraction of the total the user paid, and vice versa. Completed
    settlements between the two move the balance directly.
    Positive: the friend owes the user.
    """
    currency = await reference_currency(source, user_id)
    convert = _Converter(rates, currency)

    expenses = await source.expenses_between(user_id, friend_id)
    settlements = await source.settlements_between(user_id, friend_id)
    settlements = [s for s in settlements if s.status == SettlementStatus.COMPLETED]

    balance = ZERO

    for exp in expenses:
        my_paid = sum((p.amount_paid for p in exp.payers if p.user_id == user_id), ZERO)
        friend_paid = sum((p.amount_paid for p in exp.payers if p.user_id == friend_id), ZERO)
        my_owed = sum((s.amount_owed for s in exp.splits if s.user_id == user_id), ZERO)
        friend_owed = sum((s.amount_owed for s in exp.splits if s.user_id == friend_id), ZERO)

        total_paid = sum((p.amount_paid for p in exp.payers), ZERO)
        if total_paid <= 0:
            continue

        if my_paid > 0 and friend_owed > 0:
            balance += await convert(friend_owed * my_paid / total_paid, exp.currency)

        if friend_paid > 0 and my_owed > 0:
            balance -= await convert(my_owed * friend_paid / total_paid, exp.currency)

    for s in settlements:
        amt = await convert(s.amount, s.currency)
        if s.from_user == user_id:
            balance += amt
        else:
            balance -= amt

    return FriendBalance(
        friend_id=friend_id,
        currency=currency,
        balance=qround(balance),
        transactions=_friend_history(user_id, friend_id, expenses, settlements),
    )


def _friend_history(
    user_id: int,
    friend_id: int,
    expenses: List[ExpenseRecord],
    settlements: List[SettlementRecord],
) -> List[FriendHistoryItem]:
    items = [
        FriendHistoryItem(
            type="expense",
            id=e.id,
            created_at=e.created_at,
            amount=e.total_amount,
            title=e.title,
            currency=e.currency,
            my_share=sum((s.amount_owed for s in e.splits if s.user_id == user_id), ZERO),
            friend_share=sum((s.amount_owed for s in e.splits if s.user_id == friend_id), ZERO),
            group_id=e.group_id,
        )
        for e in expenses[:FRIEND_HISTORY_LIMIT]
    ]
    items += [
        FriendHistoryItem(
            type="settlement",
            id=s.id,
            created_at=s.created_at,
            amount=s.amount,
            currency=s.currency,
            group_id=s.group_id,
            is_from_me=s.from_user == user_id,
        )
        for s in settlements[:FRIEND_HISTORY_LIMIT]
    ]

    # undated rows sort last
    items.sort(key=lambda item: (item.created_at is not None, item.created_at or 0), reverse=True)
    return items
