from typing import List, Optional, Protocol
from sqlalchemy import select, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from app.models.expense import Expense, ExpensePayer, ExpenseSplit
from app.models.settlement import Settlement
from app.models.user import User
from app.models.group import Group  # noqa: F401  (registers Group.members mapper)
from app.models.group_member import GroupMember  # noqa: F401
from app.schemas.ledger import ExpenseRecord, SettlementRecord


class LedgerSource(Protocol):
    """Read-only view of the ledger the balance engine consumes."""

    async def preferred_currency(self, user_id: int) -> Optional[str]: ...

    async def expenses_for_user(self, user_id: int) -> List[ExpenseRecord]: ...

    async def expenses_for_group(self, group_id: int) -> List[ExpenseRecord]: ...

    async def settlements_for_user(self, user_id: int) -> List[SettlementRecord]: ...

    async def settlements_for_group(self, group_id: int) -> List[SettlementRecord]: ...

    async def expenses_between(self, user_id: int, other_id: int) -> List[ExpenseRecord]: ...

    async def settlements_between(self, user_id: int, other_id: int) -> List[SettlementRecord]: ...


def _involves(user_id: int):
    payer_q = select(ExpensePayer.expense_id).where(ExpensePayer.user_id == user_id)
    split_q = select(ExpenseSplit.expense_id).where(ExpenseSplit.user_id == user_id)

    return or_(Expense.id.in_(payer_q), Expense.id.in_(split_q))


class SqlLedgerSource:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _expenses(self, *criteria) -> List[ExpenseRecord]:
        q = (
            select(Expense)
            .options(selectinload(Expense.payers), selectinload(Expense.splits))
            .where(Expense.is_deleted == False, *criteria)
            .order_by(Expense.created_at.desc(), Expense.id.desc())
        )

        res = await self.db.execute(q)
        return [ExpenseRecord.model_validate(e) for e in res.scalars().all()]

    async def _settlements(self, *criteria) -> List[SettlementRecord]:
        q = (
            select(Settlement)
            .where(*criteria)
            .order_by(Settlement.created_at.desc(), Settlement.id.desc())
        )

        res = await self.db.execute(q)
        return [SettlementRecord.model_validate(s) for s in res.scalars().all()]

    async def preferred_currency(self, user_id: int) -> Optional[str]:
        return await self.db.scalar(select(User.currency).where(User.id == user_id))

    async def expenses_for_user(self, user_id: int) -> List[ExpenseRecord]:
        return await self._expenses(_involves(user_id))

    async def expenses_for_group(self, group_id: int) -> List[ExpenseRecord]:
        return await self._expenses(Expense.group_id == group_id)

    async def settlements_for_user(self, user_id: int) -> List[SettlementRecord]:
        return await self._settlements(
            or_(Settlement.from_user == user_id, Settlement.to_user == user_id)
        )

    async def settlements_for_group(self, group_id: int) -> List[SettlementRecord]:
        return await self._settlements(Settlement.group_id == group_id)

    async def expenses_between(self, user_id: int, other_id: int) -> List[ExpenseRecord]:
        return await self._expenses(_involves(user_id), _involves(other_id))

    async def settlements_between(self, user_id: int, other_id: int) -> List[SettlementRecord]:
        return await self._settlements(
            or_(
                and_(Settlement.from_user == user_id, Settlement.to_user == other_id),
                and_(Settlement.from_user == other_id, Settlement.to_user == user_id),
            )
        )
