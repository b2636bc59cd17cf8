from enum import Enum
from pydantic import BaseModel
from decimal import Decimal
from datetime import datetime
from typing import List

class SettlementStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"

class Payer(BaseModel):
    user_id: int
    amount_paid: Decimal

    class Config:
        from_attributes = True

class Split(BaseModel):
    user_id: int
    amount_owed: Decimal
    percentage: Decimal | None = None
    shares: Decimal | None = None

    class Config:
        from_attributes = True

class ExpenseRecord(BaseModel):
    id: int
    group_id: int | None = None
    title: str | None = None
    total_amount: Decimal
    currency: str
    payers: List[Payer] = []
    splits: List[Split] = []
    created_at: datetime | None = None

    class Config:
        from_attributes = True

class SettlementRecord(BaseModel):
    id: int
    group_id: int | None = None
    from_user: int
    to_user: int
    amount: Decimal
    currency: str
    status: SettlementStatus
    created_at: datetime | None = None

    class Config:
        from_attributes = True
