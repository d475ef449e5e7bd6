"""Daily report job driven by an asyncio task started from the app lifespan."""

import asyncio
import logging

from reportsync.config import settings
from reportsync.database import async_session_factory
from reportsync.services.report_service import (
    ReportAlreadyRunningError,
    ReportNotConfiguredError,
    run_report,
)
from reportsync.sheets.workbook import WorkbookBackend
from reportsync.utils.date_helpers import report_now, seconds_until_next_run

logger = logging.getLogger(__name__)


async def run_scheduled_report() -> None:
    """Run one report for today; never raises."""
    backend = WorkbookBackend(settings.SHEETS_DIR)
    async with async_session_factory() as session:
        try:
            result = await run_report(session, backend)
        except ReportAlreadyRunningError:
            logger.warning("Skipping scheduled report: a run is already in progress")
        except ReportNotConfiguredError:
            logger.info("Skipping scheduled report: no report URLs configured")
        except Exception:
            logger.exception("Scheduled report failed")
        else:
            logger.info("Scheduled report finished: %s", result.message)


async def daily_report_loop(hour: int = settings.DAILY_REPORT_HOUR) -> None:
    """Sleep until ``hour``:00 in the report timezone, run, repeat until cancelled."""
    while True:
        delay = seconds_until_next_run(report_now(), hour)
        logger.info("Next scheduled report in %.0f seconds", delay)
        await asyncio.sleep(delay)
        await run_scheduled_report()


def start_scheduler() -> asyncio.Task | None:
    if not settings.SCHEDULER_ENABLED:
        logger.info("Report scheduler disabled")
        return None
    return asyncio.create_task(daily_report_loop(), name="daily-report")


async def stop_scheduler(task: asyncio.Task | None) -> None:
    if task is None:
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
