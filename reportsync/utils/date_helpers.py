import datetime

from reportsync.config import settings


def report_timezone() -> datetime.timezone:
    """Fixed-offset timezone report dates are computed in (UTC+7 by default)."""
    return datetime.timezone(datetime.timedelta(hours=settings.REPORT_UTC_OFFSET_HOURS))


def report_now() -> datetime.datetime:
    return datetime.datetime.now(report_timezone())


def report_today() -> datetime.date:
    """Return today's date in the report timezone."""
    return report_now().date()


def parse_report_date(value: str | None) -> datetime.date:
    """Parse a YYYY-MM-DD string, defaulting to today when empty.

    Raises ValueError for anything else.
    """
    if not value:
        return report_today()
    return datetime.date.fromisoformat(value.strip())


def seconds_until_next_run(now: datetime.datetime, hour: int) -> float:
    """Seconds from ``now`` until the next occurrence of ``hour``:00.

    ``now`` must be timezone-aware; the result is always positive, so a
    run scheduled exactly at ``now`` is pushed to the following day.
    """
    if not 0 <= hour <= 23:
        raise ValueError(f"Invalid hour: {hour}")
    target = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if target <= now:
        target += datetime.timedelta(days=1)
    return (target - now).total_seconds()
