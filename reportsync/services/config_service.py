"""Report configuration stored as JSON values in the settings table."""

import json
import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reportsync.models.setting import Setting
from reportsync.schemas.report import ReportConfig, ReportConfigUpdate, UrlPair

logger = logging.getLogger(__name__)

URL_PAIRS_KEY = "url_pairs"
SUMMARY_URL_KEY = "summary_report_url"
CONFIGURED_AT_KEY = "report_configured_at"
MANAGED_KEYS = frozenset({URL_PAIRS_KEY, SUMMARY_URL_KEY, CONFIGURED_AT_KEY})


async def _get_value(db: AsyncSession, key: str) -> str | None:
    result = await db.execute(select(Setting).where(Setting.key == key))
    setting = result.scalar_one_or_none()
    return setting.value if setting else None


async def _set_value(db: AsyncSession, key: str, value: str) -> None:
    result = await db.execute(select(Setting).where(Setting.key == key))
    setting = result.scalar_one_or_none()
    if setting is None:
        db.add(Setting(key=key, value=value))
    else:
        setting.value = value


async def get_report_config(db: AsyncSession) -> ReportConfig:
    raw_pairs = await _get_value(db, URL_PAIRS_KEY)
    summary_url = await _get_value(db, SUMMARY_URL_KEY)
    configured_at = await _get_value(db, CONFIGURED_AT_KEY)
    return ReportConfig(
        url_pairs=[UrlPair(**pair) for pair in json.loads(raw_pairs)] if raw_pairs else [],
        summary_report_url=summary_url or None,
        configured_at=datetime.fromisoformat(configured_at) if configured_at else None,
    )


async def save_report_config(db: AsyncSession, body: ReportConfigUpdate) -> ReportConfig:
    now = datetime.now(timezone.utc)
    await _set_value(
        db,
        URL_PAIRS_KEY,
        json.dumps([pair.model_dump() for pair in body.url_pairs], ensure_ascii=False),
    )
    await _set_value(db, SUMMARY_URL_KEY, body.summary_report_url or "")
    await _set_value(db, CONFIGURED_AT_KEY, now.isoformat())
    await db.commit()
    logger.info(
        "Report configuration saved: %d pairs, summary report %s",
        len(body.url_pairs), "set" if body.summary_report_url else "not set",
    )
    return ReportConfig(
        url_pairs=body.url_pairs,
        summary_report_url=body.summary_report_url,
        configured_at=now,
    )
