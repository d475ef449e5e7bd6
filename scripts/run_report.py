"""Run one report outside the web server.

Optionally stores a new pair configuration first, then generates the report
for the given date (today in UTC+7 by default) and prints a per-pair result.

Usage:
    python scripts/run_report.py --date 2026-03-01
    python scripts/run_report.py --pair stores.xlsx#Data report.xlsx \\
        --summary summary.xlsx
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from reportsync.config import settings
from reportsync.database import async_session_factory, init_db
from reportsync.schemas.report import ReportConfigUpdate, UrlPair
from reportsync.services.config_service import save_report_config
from reportsync.services.report_service import run_report
from reportsync.sheets.workbook import WorkbookBackend
from reportsync.utils.date_helpers import parse_report_date


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate the daily spreadsheet report.")
    parser.add_argument("--date", help="Report date (YYYY-MM-DD), defaults to today")
    parser.add_argument(
        "--pair",
        nargs=2,
        action="append",
        metavar=("DATA_REF", "REPORT_REF"),
        help="Replace the configured pairs (repeatable)",
    )
    parser.add_argument("--summary", help="Summary sheet reference, used with --pair")
    parser.add_argument(
        "--sheets-dir",
        type=Path,
        default=settings.SHEETS_DIR,
        help=f"Directory sheet references resolve against (default: {settings.SHEETS_DIR})",
    )
    parser.add_argument("--no-backup", action="store_true", help="Skip workbook backups")
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")

    try:
        target_date = parse_report_date(args.date)
    except ValueError:
        print(f"ERROR: Invalid date: {args.date}")
        return 2

    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    print("Initializing database...")
    await init_db()

    backend = WorkbookBackend(args.sheets_dir, backup=not args.no_backup)
    async with async_session_factory() as session:
        if args.pair:
            await save_report_config(
                session,
                ReportConfigUpdate(
                    url_pairs=[UrlPair(data_url=d, report_url=r) for d, r in args.pair],
                    summary_report_url=args.summary,
                ),
            )
            print(f"  Saved {len(args.pair)} pair(s)")

        result = await run_report(session, backend, target_date)

    print()
    print("=" * 60)
    print(result.message)
    print("=" * 60)
    for pair in result.generation.per_pair_results:
        if pair.success:
            print(
                f"  Pair {pair.pair_index + 1}: {pair.stores_processed} stores, "
                f"{pair.changed_stores} changed, block {pair.start_column}:{pair.end_column}"
            )
        else:
            print(f"  Pair {pair.pair_index + 1}: FAILED - {pair.error}")
    if result.summary_error:
        print(f"  Summary: FAILED - {result.summary_error}")
    elif result.summary:
        print(f"  Summary: {result.summary.rows_written} rows at {result.summary.range_spec}")

    return 0 if result.failed_pairs == 0 else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
