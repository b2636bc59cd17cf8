"""Test doubles for the ledger source and the FX provider."""

import asyncio
from decimal import Decimal
from typing import Dict, List, Optional

from app.schemas.ledger import (
    ExpenseRecord,
    Payer,
    SettlementRecord,
    SettlementStatus,
    Split,
)


def D(value) -> Decimal:
    return Decimal(str(value))


def make_expense(
    id: int,
    payers: Dict[int, object],
    splits: Dict[int, object],
    currency: str = "INR",
    group_id: Optional[int] = None,
    title: str = "Dinner",
) -> ExpenseRecord:
    payer_rows = [Payer(user_id=uid, amount_paid=D(amt)) for uid, amt in payers.items()]
    return ExpenseRecord(
        id=id,
        group_id=group_id,
        title=title,
        total_amount=sum((p.amount_paid for p in payer_rows), Decimal("0")),
        currency=currency,
        payers=payer_rows,
        splits=[Split(user_id=uid, amount_owed=D(amt)) for uid, amt in splits.items()],
    )


def make_settlement(
    id: int,
    from_user: int,
    to_user: int,
    amount,
    status: SettlementStatus = SettlementStatus.COMPLETED,
    currency: str = "INR",
    group_id: Optional[int] = None,
) -> SettlementRecord:
    return SettlementRecord(
        id=id,
        group_id=group_id,
        from_user=from_user,
        to_user=to_user,
        amount=D(amount),
        currency=currency,
        status=status,
    )


def _participants(expense: ExpenseRecord):
    return {p.user_id for p in expense.payers} | {s.user_id for s in expense.splits}


class InMemoryLedger:
    """LedgerSource over plain lists, with the same selection rules as the SQL source."""

    def __init__(self):
        self.expenses: List[ExpenseRecord] = []
        self.settlements: List[SettlementRecord] = []
        self.currencies: Dict[int, str] = {}

    def add(self, *records):
        for record in records:
            if isinstance(record, ExpenseRecord):
                self.expenses.append(record)
            else:
                self.settlements.append(record)
        return self

    async def preferred_currency(self, user_id):
        return self.currencies.get(user_id)

    async def expenses_for_user(self, user_id):
        return [e for e in self.expenses if user_id in _participants(e)]

    async def expenses_for_group(self, group_id):
        return [e for e in self.expenses if e.group_id == group_id]

    async def settlements_for_user(self, user_id):
        return [s for s in self.settlements if user_id in (s.from_user, s.to_user)]

    async def settlements_for_group(self, group_id):
        return [s for s in self.settlements if s.group_id == group_id]

    async def expenses_between(self, user_id, other_id):
        return [
            e for e in self.expenses
            if {user_id, other_id} <= _participants(e)
        ]

    async def settlements_between(self, user_id, other_id):
        return [
            s for s in self.settlements
            if {s.from_user, s.to_user} == {user_id, other_id}
        ]


class FakeFetcher:
    """Rate table fetcher that counts calls and can fail or stall on demand."""

    def __init__(self, tables: Dict[str, Dict[str, Decimal]]):
        self.tables = tables
        self.calls: List[str] = []
        self.error: Optional[Exception] = None
        self.gate: Optional[asyncio.Event] = None

    async def __call__(self, base: str) -> Dict[str, Decimal]:
        self.calls.append(base)

        if self.gate is not None:
            await self.gate.wait()

        if self.error is not None:
            raise self.error

        return dict(self.tables[base])
