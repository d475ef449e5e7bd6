"""USD -> VND exchange rate lookup with a fixed fallback."""

import logging
from dataclasses import dataclass
from datetime import date

import requests
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reportsync.config import settings
from reportsync.models.exchange_rate import ExchangeRate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateQuote:
    rate: float
    is_fallback: bool = False


def fetch_exchange_rate(
    base: str = settings.BASE_CURRENCY,
    quote: str = settings.QUOTE_CURRENCY,
) -> RateQuote:
    """Fetch the current rate, falling back to FALLBACK_EXCHANGE_RATE on any failure."""
    url = f"{settings.EXCHANGE_RATE_URL}/{base}"
    try:
        response = requests.get(url, timeout=settings.EXCHANGE_RATE_TIMEOUT)
        response.raise_for_status()
        rate = float(response.json()["rates"][quote])
        if rate <= 0:
            raise ValueError(f"Invalid exchange rate received: {rate}")
    except (requests.RequestException, KeyError, TypeError, ValueError) as e:
        logger.warning(
            "Failed to fetch %s/%s exchange rate, using fallback %s: %s",
            base, quote, settings.FALLBACK_EXCHANGE_RATE, e,
        )
        return RateQuote(rate=settings.FALLBACK_EXCHANGE_RATE, is_fallback=True)

    logger.info("Current %s to %s exchange rate: %s", base, quote, rate)
    return RateQuote(rate=rate)


def get_exchange_rate(
    base: str = settings.BASE_CURRENCY,
    quote: str = settings.QUOTE_CURRENCY,
) -> float:
    return fetch_exchange_rate(base, quote).rate


async def record_rate(
    db: AsyncSession,
    rate_date: date,
    quote: RateQuote,
    base: str = settings.BASE_CURRENCY,
    quote_currency: str = settings.QUOTE_CURRENCY,
) -> ExchangeRate:
    """Upsert the rate used for a report date."""
    result = await db.execute(
        select(ExchangeRate).where(
            ExchangeRate.rate_date == rate_date,
            ExchangeRate.base == base,
            ExchangeRate.quote == quote_currency,
        )
    )
    row = result.scalar_one_or_none()
    if row is None:
        row = ExchangeRate(
            rate_date=rate_date,
            base=base,
            quote=quote_currency,
            rate=quote.rate,
            is_fallback=quote.is_fallback,
        )
        db.add(row)
    else:
        row.rate = quote.rate
        row.is_fallback = quote.is_fallback
    await db.commit()
    return row
