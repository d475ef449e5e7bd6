import asyncio
from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reportsync.database import get_db
from reportsync.models.exchange_rate import ExchangeRate
from reportsync.models.setting import Setting
from reportsync.schemas.common import ApiResponse
from reportsync.services import exchange_rate_service
from reportsync.services.config_service import MANAGED_KEYS
from reportsync.utils.currency import format_rate

router = APIRouter(prefix="/settings", tags=["settings"])


class SettingUpdate(BaseModel):
    key: str = Field(..., min_length=1, max_length=100)
    value: str = Field(..., max_length=10000)


def _rate_to_dict(r: ExchangeRate) -> dict:
    return {
        "id": r.id,
        "rate_date": r.rate_date.isoformat(),
        "base": r.base,
        "quote": r.quote,
        "rate": r.rate,
        "is_fallback": r.is_fallback,
    }


@router.get("")
async def list_settings(
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[dict]:
    rows = (await db.execute(select(Setting).order_by(Setting.key))).scalars()
    return ApiResponse.ok({row.key: row.value for row in rows})


@router.put("")
async def put_setting(
    body: SettingUpdate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[dict]:
    # Report pairs go through /reports/config so they are validated
    if body.key in MANAGED_KEYS:
        return ApiResponse.fail(f"'{body.key}' is managed by /reports/config")

    row = await db.get(Setting, body.key)
    if row is None:
        row = Setting(key=body.key, value=body.value)
        db.add(row)
    else:
        row.value = body.value
    await db.commit()
    return ApiResponse.ok({"key": row.key, "value": row.value})


@router.get("/exchange-rates")
async def list_exchange_rates(
    since: date | None = Query(None),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[list[dict]]:
    """Rates used by past report runs, newest first."""
    stmt = select(ExchangeRate).order_by(ExchangeRate.rate_date.desc())
    if since is not None:
        stmt = stmt.where(ExchangeRate.rate_date >= since)
    rates = (await db.execute(stmt)).scalars()
    return ApiResponse.ok([_rate_to_dict(r) for r in rates])


@router.get("/exchange-rate/current")
async def current_exchange_rate() -> ApiResponse[dict]:
    quote = await asyncio.to_thread(exchange_rate_service.fetch_exchange_rate)
    return ApiResponse.ok({
        "rate": quote.rate,
        "is_fallback": quote.is_fallback,
        "display": format_rate(quote.rate),
    })
