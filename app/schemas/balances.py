from pydantic import BaseModel, Field
from decimal import Decimal
from datetime import datetime
from typing import List, Literal
from app.schemas.user import UserProfile

class NetBalance(BaseModel):
    user_id: int
    amount: Decimal

class SimplifiedTransaction(BaseModel):
    from_user_id: int
    to_user_id: int
    amount: Decimal

class Dashboard(BaseModel):
    you_owe: Decimal
    you_are_owed: Decimal
    transactions: List[SimplifiedTransaction]

class DashboardTransactionOut(BaseModel):
    fromUserId: int
    toUserId: int
    amount: float
    fromUser: UserProfile | None = None
    toUser: UserProfile | None = None

class DashboardOut(BaseModel):
    youOwe: float
    youAreOwed: float
    simplifiedTransactions: List[DashboardTransactionOut]

class SimplifiedDebtOut(BaseModel):
    from_: UserProfile = Field(alias="from")
    to: UserProfile
    amount: float

    class Config:
        populate_by_name = True

class GroupBalanceOut(BaseModel):
    net: dict[int, float]
    settlements: List[SimplifiedTransaction]
    is_settled: bool

class FriendHistoryItem(BaseModel):
    type: Literal["expense", "settlement"]
    id: int
    created_at: datetime | None = None
    amount: Decimal
    title: str | None = None
    currency: str
    my_share: Decimal | None = None
    friend_share: Decimal | None = None
    group_id: int | None = None
    is_from_me: bool | None = None

class FriendBalance(BaseModel):
    friend_id: int
    currency: str
    balance: Decimal
    transactions: List[FriendHistoryItem]
