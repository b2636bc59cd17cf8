"""
Currency conversion backed by a time-bounded exchange rate cache.

Rates are fetched as a whole table per base currency and cached per
(base, target) pair. A fetch failure never propagates: the caller gets the
identity rate and the balance math proceeds unconverted.

Concurrent readers that find the same base stale share a single in-flight
refresh instead of each hitting the provider.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Awaitable, Callable, Dict, Iterable, Optional, Tuple

import httpx

from app.core.config import settings
from app.schemas.currency import Currency, ExchangeRate

logger = logging.getLogger(__name__)

ONE = Decimal("1")

SUPPORTED_CURRENCIES = [
    Currency(code="INR", symbol="₹", name="Indian Rupee"),
    Currency(code="USD", symbol="$", name="US Dollar"),
    Currency(code="EUR", symbol="€", name="Euro"),
    Currency(code="GBP", symbol="£", name="British Pound"),
    Currency(code="JPY", symbol="¥", name="Japanese Yen"),
    Currency(code="AUD", symbol="A$", name="Australian Dollar"),
    Currency(code="CAD", symbol="C$", name="Canadian Dollar"),
    Currency(code="CHF", symbol="Fr", name="Swiss Franc"),
    Currency(code="CNY", symbol="¥", name="Chinese Yuan"),
    Currency(code="SEK", symbol="kr", name="Swedish Krona"),
    Currency(code="NZD", symbol="NZ$", name="New Zealand Dollar"),
    Currency(code="AED", symbol="د.إ", name="UAE Dirham"),
    Currency(code="SGD", symbol="S$", name="Singapore Dollar"),
    Currency(code="MYR", symbol="RM", name="Malaysian Ringgit"),
    Currency(code="THB", symbol="฿", name="Thai Baht"),
    Currency(code="KRW", symbol="₩", name="South Korean Won"),
    Currency(code="RUB", symbol="₽", name="Russian Ruble"),
    Currency(code="ZAR", symbol="R", name="South African Rand"),
    Currency(code="BRL", symbol="R$", name="Brazilian Real"),
]
SUPPORTED_CODES = frozenset(c.code for c in SUPPORTED_CURRENCIES)

RateFetcher = Callable[[str], Awaitable[Dict[str, Decimal]]]
Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_supported(code: str) -> bool:
    return code.upper() in SUPPORTED_CODES


class HttpRateFetcher:
    """
    Fetches a full rate table for one base currency from the FX provider.

    The provider answers ``{"base": "USD", "rates": {"EUR": 0.92, ...}}``;
    rates are parsed straight into Decimal so no float ever enters the math.
    """

    def __init__(
        self,
        url: str = settings.FX_API_URL,
        timeout: float = settings.FX_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def __call__(self, base: str) -> Dict[str, Decimal]:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            res = await client.get(self.url.format(base=base))
            res.raise_for_status()
            payload = res.json(parse_float=Decimal, parse_int=Decimal)

        rates = payload.get("rates")
        if not isinstance(rates, dict):
            raise ValueError(f"Malformed rate table for {base}: missing 'rates'")

        return {code.upper(): Decimal(rate) for code, rate in rates.items()}


class RateCache:
    def __init__(
        self,
        fetch: RateFetcher,
        ttl: timedelta = timedelta(seconds=settings.FX_CACHE_TTL_SECONDS),
        clock: Clock = utcnow,
        timeout: float = settings.FX_TIMEOUT_SECONDS,
        supported: Iterable[str] = SUPPORTED_CODES,
    ):
        self._fetch = fetch
        self._ttl = ttl
        self._clock = clock
        self._timeout = timeout
        self._supported = frozenset(c.upper() for c in supported)

        self._entries: Dict[Tuple[str, str], ExchangeRate] = {}
        # pairs the last fetched table had no rate for, stamped with the fetch time
        self._missing: Dict[Tuple[str, str], datetime] = {}
        self._inflight: Dict[str, "asyncio.Task[bool]"] = {}

    def get(self, base: str, target: str) -> Optional[ExchangeRate]:
        return self._entries.get((base.upper(), target.upper()))

    def _is_fresh(self, entry: Optional[ExchangeRate]) -> bool:
        return entry is not None and self._clock() - entry.last_updated < self._ttl

    async def rate(self, base: str, target: str) -> Decimal:
        """Factor such that ``factor * amount_in_base == amount_in_target``."""
        base = base.upper()
        target = target.upper()

        if base == target:
            return ONE

        entry = self._entries.get((base, target))
        if self._is_fresh(entry):
            return entry.rate

        missing_since = self._missing.get((base, target))
        if missing_since is not None and self._clock() - missing_since < self._ttl:
            return ONE

        if not await self._refresh(base):
            return ONE

        entry = self._entries.get((base, target))
        if not self._is_fresh(entry):
            logger.warning("Rate table for %s has no %s entry, using identity", base, target)
            self._missing[(base, target)] = self._clock()
            return ONE

        return entry.rate

    async def convert(self, amount: Decimal, base: str, target: str) -> Decimal:
        return Decimal(amount) * await self.rate(base, target)

    async def _refresh(self, base: str) -> bool:
        task = self._inflight.get(base)

        if task is None:
            task = asyncio.ensure_future(self._fetch_and_store(base))
            self._inflight[base] = task

            def _forget(done, base=base):
                if self._inflight.get(base) is done:
                    del self._inflight[base]

            task.add_done_callback(_forget)

        # a cancelled waiter must not cancel the refresh other waiters share
        return await asyncio.shield(task)

    async def _fetch_and_store(self, base: str) -> bool:
        logger.info("Fetching exchange rates for base %s", base)

        try:
            table = await asyncio.wait_for(self._fetch(base), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning("Exchange rate fetch for %s timed out after %ss, using identity", base, self._timeout)
            return False
        except Exception:
            logger.warning("Exchange rate fetch for %s failed, using identity", base, exc_info=True)
            return False

        now = self._clock()
        stored = 0
        self._missing = {pair: at for pair, at in self._missing.items() if pair[0] != base}

        for target, rate in table.items():
            target = target.upper()
            if target not in self._supported:
                continue

            self._entries[(base, target)] = ExchangeRate(
                base_currency=base,
                target_currency=target,
                rate=Decimal(rate),
                last_updated=now,
            )
            stored += 1

        logger.debug("Stored %d exchange rates for base %s", stored, base)
        return True
