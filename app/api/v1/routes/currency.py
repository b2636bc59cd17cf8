from decimal import Decimal, InvalidOperation
from fastapi import APIRouter, Depends, HTTPException, Query
from app.core.dependencies import get_rate_cache
from app.core.utils import qround
from app.schemas.currency import ConvertOut, CurrencyList, MoneyOut, RateOut
from app.services.currency_service import SUPPORTED_CURRENCIES, RateCache, is_supported, utcnow

router = APIRouter()


def _check_codes(*codes: str):
    for code in codes:
        if not is_supported(code):
            raise HTTPException(400, f"Unsupported currency: {code}")


@router.get("", response_model=CurrencyList)
async def list_currencies():
    return CurrencyList(currencies=SUPPORTED_CURRENCIES)


@router.get("/rate", response_model=RateOut)
async def exchange_rate(
    from_currency: str = Query(..., alias="from"),
    to_currency: str = Query(..., alias="to"),
    rates: RateCache = Depends(get_rate_cache),
):
    _check_codes(from_currency, to_currency)

    rate = await rates.rate(from_currency, to_currency)

    return RateOut(
        from_currency=from_currency.upper(),
        to_currency=to_currency.upper(),
        rate=rate,
        timestamp=utcnow(),
    )


@router.get("/convert", response_model=ConvertOut)
async def convert(
    amount: str,
    from_currency: str = Query(..., alias="from"),
    to_currency: str = Query(..., alias="to"),
    rates: RateCache = Depends(get_rate_cache),
):
    try:
        value = Decimal(amount)
    except InvalidOperation:
        raise HTTPException(400, "Invalid amount")

    if not value.is_finite():
        raise HTTPException(400, "Invalid amount")

    _check_codes(from_currency, to_currency)

    rate = await rates.rate(from_currency, to_currency)

    try:
        converted = qround(value * rate)
    except InvalidOperation:
        # too many digits to quantize to cents
        raise HTTPException(400, "Invalid amount")

    return ConvertOut(
        original=MoneyOut(amount=value, currency=from_currency.upper()),
        converted=MoneyOut(amount=converted, currency=to_currency.upper()),
        rate=rate,
        timestamp=utcnow(),
    )
