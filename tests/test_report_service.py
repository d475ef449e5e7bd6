"""Tests for report run orchestration."""

import asyncio
import datetime
import time

import pytest
from sqlalchemy import select

from conftest import InMemoryBackend, source_row, source_sheet
from reportsync.models.exchange_rate import ExchangeRate
from reportsync.models.report_run import ReportRun, RunStatus
from reportsync.reporting.config import GRAND_TOTAL_LABEL
from reportsync.schemas.report import ReportConfigUpdate, UrlPair
from reportsync.services import report_service
from reportsync.services.config_service import get_report_config, save_report_config
from reportsync.services.exchange_rate_service import RateQuote
from reportsync.services.snapshot_store import SnapshotStore

DAY_1 = datetime.date(2026, 3, 1)
DAY_2 = datetime.date(2026, 3, 2)


def _fixed_rate():
    return RateQuote(rate=25000.0)


async def _configure(db, summary=None, pairs=(("data", "report"),)):
    await save_report_config(
        db,
        ReportConfigUpdate(
            url_pairs=[UrlPair(data_url=d, report_url=r) for d, r in pairs],
            summary_report_url=summary,
        ),
    )


@pytest.fixture
def sources():
    return InMemoryBackend({"data": source_sheet(source_row("A", 100, 10, 0, 1))})


class TestConfigService:

    def test_round_trip(self, run_with_db):
        async def check(db):
            assert not (await get_report_config(db)).configured
            await _configure(db, summary="  ")
            config = await get_report_config(db)
            assert config.configured
            assert config.url_pairs == [UrlPair(data_url="data", report_url="report")]
            assert config.summary_report_url is None
            assert config.configured_at is not None

        run_with_db(check)


class TestRunReport:

    def test_not_configured(self, run_with_db, sources):
        async def check(db):
            with pytest.raises(report_service.ReportNotConfiguredError):
                await report_service.run_report(db, sources, DAY_1, _fixed_rate)

        run_with_db(check)

    def test_full_run(self, run_with_db, sources):
        async def check(db):
            await _configure(db, summary="summary")
            run = await report_service.run_report(db, sources, DAY_1, _fixed_rate)

            assert run.failed_pairs == 0
            assert run.message == "Report generated successfully for 2026-03-01"
            assert run.summary is not None
            assert run.summary.grand_totals.total_spend == 100
            assert sources.sheets["summary"][1][1] == GRAND_TOTAL_LABEL

            snapshot = await SnapshotStore(db).get_all()
            assert snapshot[0].roster == ["A"]

            runs = (await db.execute(select(ReportRun))).scalars().all()
            assert [(r.status, r.start_column) for r in runs] == [(RunStatus.SUCCESS, "F")]
            rates = (await db.execute(select(ExchangeRate))).scalars().all()
            assert [r.rate for r in rates] == [25000.0]

        run_with_db(check)

    def test_second_run_uses_saved_snapshot(self, run_with_db, sources):
        async def check(db):
            await _configure(db)
            await report_service.run_report(db, sources, DAY_1, _fixed_rate)
            sources.sources["data"] = source_sheet(
                source_row("A", 150, 10, 0, 1), source_row("B", 20, 2),
            )
            run = await report_service.run_report(db, sources, DAY_2, _fixed_rate)

            result = run.generation.per_pair_results[0]
            assert result.changes_tracked
            assert result.totals.total_spend == 170
            assert result.totals.total_clicks == 12
            assert run.summary is None

        run_with_db(check)

    def test_failed_pair_logged(self, run_with_db, sources):
        async def check(db):
            await _configure(db, pairs=(("missing", "r0"), ("data", "r1")))
            run = await report_service.run_report(db, sources, DAY_1, _fixed_rate)

            assert run.failed_pairs == 1
            assert "1/2 pairs succeeded" in run.message
            runs = (await db.execute(select(ReportRun).order_by(ReportRun.pair_index))).scalars().all()
            assert [r.status for r in runs] == [RunStatus.FAILED, RunStatus.SUCCESS]
            assert "missing" in runs[0].error_message

        run_with_db(check)

    def test_summary_failure_does_not_fail_run(self, run_with_db, sources):
        async def check(db):
            await _configure(db, summary="summary")
            original = sources.batch_write

            async def failing_batch_write(ref, ranges):
                if ref == "summary":
                    raise RuntimeError("quota exceeded")
                await original(ref, ranges)

            sources.batch_write = failing_batch_write
            run = await report_service.run_report(db, sources, DAY_1, _fixed_rate)

            assert run.failed_pairs == 0
            assert run.summary is None
            assert run.summary_error == "quota exceeded"
            assert (await SnapshotStore(db).get_all())[0].roster == ["A"]

        run_with_db(check)

    def test_slow_rate_fetch_keeps_loop_responsive(self, run_with_db, sources):
        def slow_rate():
            time.sleep(0.5)
            return RateQuote(rate=25000.0)

        async def check(db):
            await _configure(db, summary="summary")
            ticks: list[float] = []

            async def heartbeat():
                while True:
                    ticks.append(time.monotonic())
                    await asyncio.sleep(0.02)

            beat = asyncio.create_task(heartbeat())
            try:
                run = await report_service.run_report(db, sources, DAY_1, slow_rate)
            finally:
                beat.cancel()

            assert run.exchange_rate.rate == 25000.0
            gaps = [b - a for a, b in zip(ticks, ticks[1:])]
            assert len(ticks) > 5
            assert max(gaps) < 0.3

        run_with_db(check)

    def test_rate_record_failure_still_saves_snapshot(self, run_with_db, sources, monkeypatch):
        async def failing_record_rate(*args, **kwargs):
            raise RuntimeError("database is locked")

        monkeypatch.setattr(report_service, "record_rate", failing_record_rate)

        async def check(db):
            await _configure(db, summary="summary")
            run = await report_service.run_report(db, sources, DAY_1, _fixed_rate)

            assert run.failed_pairs == 0
            assert run.summary is not None
            snapshot = await SnapshotStore(db).get_all()
            assert snapshot[0].roster == ["A"]
            assert snapshot[0].entities["A"]["totalSpend"] == 100
            runs = (await db.execute(select(ReportRun))).scalars().all()
            assert [r.status for r in runs] == [RunStatus.SUCCESS]

        run_with_db(check)

    def test_overlapping_run_rejected(self, run_with_db, sources):
        async def check(db):
            await _configure(db)
            async with report_service._run_lock:
                assert report_service.is_running()
                with pytest.raises(report_service.ReportAlreadyRunningError):
                    await report_service.run_report(db, sources, DAY_1, _fixed_rate)
            assert not report_service.is_running()

        run_with_db(check)

    def test_concurrent_triggers(self, run_with_db, sources):
        async def check(db):
            await _configure(db)
            results = await asyncio.gather(
                report_service.run_report(db, sources, DAY_1, _fixed_rate),
                report_service.run_report(db, sources, DAY_1, _fixed_rate),
                return_exceptions=True,
            )
            errors = [r for r in results if isinstance(r, report_service.ReportAlreadyRunningError)]
            assert len(errors) == 1

        run_with_db(check)
