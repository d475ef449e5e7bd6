"""One report run: generate every pair, roll up the summary, persist state.

Runs are serialized by a process-wide lock. A trigger that arrives while a
run is in progress is rejected rather than queued.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from reportsync.models.report_run import ReportRun, RunStatus
from reportsync.reporting.records import ReportPair
from reportsync.reporting.report_writer import GenerationResult, ReportWriter
from reportsync.reporting.summary_writer import SummaryResult, SummaryWriter
from reportsync.services.config_service import get_report_config
from reportsync.services.exchange_rate_service import RateQuote, fetch_exchange_rate, record_rate
from reportsync.services.snapshot_store import SnapshotStore
from reportsync.sheets.backend import SpreadsheetBackend
from reportsync.utils.currency import format_rate
from reportsync.utils.date_helpers import report_today

logger = logging.getLogger(__name__)

_run_lock = asyncio.Lock()


class ReportAlreadyRunningError(RuntimeError):
    """A report run was triggered while another one is in progress."""


class ReportNotConfiguredError(ValueError):
    """No data/report URL pairs are configured."""


@dataclass
class ReportRunResult:
    target_date: date
    generation: GenerationResult
    summary: SummaryResult | None = None
    summary_error: str | None = None
    exchange_rate: RateQuote | None = None

    @property
    def successful_pairs(self) -> int:
        return sum(1 for r in self.generation.per_pair_results if r.success)

    @property
    def failed_pairs(self) -> int:
        return len(self.generation.per_pair_results) - self.successful_pairs

    @property
    def message(self) -> str:
        total = len(self.generation.per_pair_results)
        if self.failed_pairs == 0:
            return f"Report generated successfully for {self.target_date.isoformat()}"
        return (
            f"Report generated for {self.target_date.isoformat()}: "
            f"{self.successful_pairs}/{total} pairs succeeded"
        )

    def to_dict(self) -> dict:
        results = self.generation.per_pair_results
        return {
            "date": self.target_date.isoformat(),
            "results": [r.to_dict() for r in results],
            "totalPairsProcessed": len(results),
            "successfulPairs": self.successful_pairs,
            "failedPairs": self.failed_pairs,
            "totalStoresProcessed": sum(r.stores_processed for r in results),
            "totalRecords": sum(r.total_records for r in results),
            "summary": self.summary.to_dict() if self.summary else None,
            "summaryError": self.summary_error,
            "exchangeRate": self.exchange_rate.rate if self.exchange_rate else None,
            "exchangeRateIsFallback": (
                self.exchange_rate.is_fallback if self.exchange_rate else None
            ),
        }


def is_running() -> bool:
    return _run_lock.locked()


async def _log_runs(
    db: AsyncSession, target_date: date, generation: GenerationResult,
) -> None:
    for result in generation.per_pair_results:
        db.add(
            ReportRun(
                report_date=target_date,
                pair_index=result.pair_index,
                report_url=result.report_url,
                status=RunStatus.SUCCESS if result.success else RunStatus.FAILED,
                stores_processed=result.stores_processed,
                changed_stores=result.changed_stores,
                total_spend=result.totals.total_spend,
                total_benefit=result.totals.total_benefit,
                start_column=result.start_column,
                error_message=result.error[:1000] if result.error else None,
            )
        )
    await db.commit()


async def run_report(
    db: AsyncSession,
    backend: SpreadsheetBackend,
    target_date: date | None = None,
    rate_provider: Callable[[], RateQuote] = fetch_exchange_rate,
) -> ReportRunResult:
    """Run the report for ``target_date`` (today in the report timezone by default).

    Raises:
        ReportAlreadyRunningError: If another run holds the lock.
        ReportNotConfiguredError: If no URL pairs are configured.
    """
    if _run_lock.locked():
        raise ReportAlreadyRunningError("A report run is already in progress")

    async with _run_lock:
        config = await get_report_config(db)
        if not config.configured:
            raise ReportNotConfiguredError(
                "Report URLs not configured. Please configure data and report URLs first."
            )

        target_date = target_date or report_today()
        logger.info(
            "Generating report for %s over %d pairs",
            target_date.isoformat(), len(config.url_pairs),
        )

        store = SnapshotStore(db)
        previous = await store.get_all()
        pairs = [ReportPair(p.data_url, p.report_url) for p in config.url_pairs]
        generation = await ReportWriter(backend).generate_report(pairs, target_date, previous)
        run = ReportRunResult(target_date=target_date, generation=generation)

        if config.summary_report_url:
            # Blocking HTTP call; keep the event loop free while it waits
            run.exchange_rate = await asyncio.to_thread(rate_provider)
            logger.info(
                "Using exchange rate %s for profit calculations",
                format_rate(run.exchange_rate.rate),
            )
            try:
                await record_rate(db, target_date, run.exchange_rate)
            except Exception as e:
                await db.rollback()
                logger.warning("Could not record exchange rate for %s: %s", target_date, e)
            try:
                run.summary = await SummaryWriter(backend).write_summary(
                    config.summary_report_url,
                    generation.pair_totals,
                    target_date,
                    run.exchange_rate.rate,
                )
            except Exception as e:
                # A failed summary does not fail the pairs already written
                logger.exception("Error generating summary report")
                run.summary_error = str(e)

        await store.save_all(generation.new_snapshot)
        await _log_runs(db, target_date, generation)
        logger.info("%s", run.message)
        return run
