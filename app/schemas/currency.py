from pydantic import BaseModel
from decimal import Decimal
from datetime import datetime
from typing import List

class Currency(BaseModel):
    code: str
    symbol: str
    name: str

class CurrencyList(BaseModel):
    currencies: List[Currency]

class ExchangeRate(BaseModel):
    base_currency: str
    target_currency: str
    rate: Decimal
    last_updated: datetime

class RateOut(BaseModel):
    from_currency: str
    to_currency: str
    rate: Decimal
    timestamp: datetime

class MoneyOut(BaseModel):
    amount: Decimal
    currency: str

class ConvertOut(BaseModel):
    original: MoneyOut
    converted: MoneyOut
    rate: Decimal
    timestamp: datetime
