"""Cross-pair summary roll-up.

Layout of the summary sheet (columns A-G)::

    row 1   headers
    row 2   "TỔNG TẤT CẢ" grand total, rewritten in place on every run
    then, per run:
            <date> | "TỔNG"      | date totals      (group parent)
                   | <sheet name> | pair totals     (grouped detail rows)

Only the grand-total row is idempotent. Running twice for the same date
appends a second date block.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Awaitable, Sequence

from reportsync.reporting.columns import a1_range
from reportsync.reporting.config import (
    DATE_TOTAL_LABEL,
    GRAND_TOTAL_LABEL,
    SUMMARY_DATE_COL,
    SUMMARY_LABEL_COL,
    SUMMARY_RANGE,
    SUMMARY_WIDTH,
    summary_headers,
)
from reportsync.reporting.numbers import parse_number
from reportsync.reporting.records import PairTotals, cell_text
from reportsync.reporting.report_writer import trim_trailing_empty
from reportsync.reporting.styles import (
    BORDER_FORMAT,
    GRAND_TOTAL_FORMAT,
    SUMMARY_HEADER_FORMAT,
)
from reportsync.sheets.backend import SpreadsheetBackend, ValueRange

logger = logging.getLogger(__name__)

# Offset of the first metric (spend) within a summary row
METRICS_START_COL = 2


@dataclass
class SummaryResult:
    range_spec: str
    rows_written: int
    date_totals: PairTotals
    grand_totals: PairTotals
    grand_total_updated_in_place: bool
    date_already_present: bool
    exchange_rate: float

    def to_dict(self) -> dict:
        return {
            "range": self.range_spec,
            "rowsWritten": self.rows_written,
            "dateTotals": self.date_totals.to_dict(),
            "grandTotals": self.grand_totals.to_dict(),
            "grandTotalUpdatedInPlace": self.grand_total_updated_in_place,
            "dateAlreadyPresent": self.date_already_present,
            "exchangeRate": self.exchange_rate,
        }


def summary_row(
    date_cell: str, label: str, totals: PairTotals, exchange_rate: float,
) -> list[Any]:
    return [date_cell, label, *totals.metrics, totals.profit(exchange_rate)]


def scan_existing(rows: Sequence[Sequence[Any]]) -> tuple[int | None, PairTotals]:
    """Locate the grand-total row and re-sum every dated "TỔNG" row.

    Row 0 is the header. The grand-total row is excluded from the sum.
    Returns (grand-total row index or None, historical totals).
    """
    sentinel_index = None
    historical = PairTotals()
    for index, row in enumerate(rows):
        if index == 0:
            continue
        label = cell_text(row[SUMMARY_LABEL_COL]) if len(row) > SUMMARY_LABEL_COL else ""
        if label == GRAND_TOTAL_LABEL:
            sentinel_index = index
            continue
        if label == DATE_TOTAL_LABEL and row[SUMMARY_DATE_COL]:
            padded = list(row) + [None] * (SUMMARY_WIDTH - len(row))
            historical.add_values(
                [parse_number(v) for v in padded[METRICS_START_COL:METRICS_START_COL + 4]]
            )
    return sentinel_index, historical


class SummaryWriter:
    """Appends one date block per run to the summary sheet."""

    def __init__(self, backend: SpreadsheetBackend) -> None:
        self.backend = backend

    async def write_summary(
        self,
        ref: str,
        pair_totals: Sequence[PairTotals],
        target_date: date,
        exchange_rate: float,
    ) -> SummaryResult:
        existing = await self._read_existing(ref)
        first_write = not existing
        date_text = target_date.isoformat()

        date_totals = PairTotals(sheet_name=DATE_TOTAL_LABEL)
        for totals in pair_totals:
            date_totals.add(totals)

        sentinel_index, grand_totals = scan_existing(existing)
        grand_totals.sheet_name = GRAND_TOTAL_LABEL
        grand_totals.add(date_totals)
        grand_row = summary_row("", GRAND_TOTAL_LABEL, grand_totals, exchange_rate)

        date_present = any(
            cell_text(row[SUMMARY_DATE_COL]) == date_text
            for row in existing[1:]
            if row
        )
        if date_present:
            logger.warning(
                "Date %s already exists in summary %s, appending another block",
                date_text, ref,
            )

        to_write: list[list[Any]] = []
        if first_write:
            to_write.append(summary_headers(exchange_rate))

        if sentinel_index is not None:
            # Data write: failure propagates
            await self.backend.write_values(
                ref,
                a1_range(0, sentinel_index + 1, SUMMARY_WIDTH - 1, sentinel_index + 1),
                [grand_row],
            )
            logger.info("Updated grand total row %d in %s", sentinel_index + 1, ref)
        else:
            to_write.append(grand_row)

        next_row = len(existing)
        date_row_index = len(to_write) + next_row
        to_write.append(summary_row(date_text, DATE_TOTAL_LABEL, date_totals, exchange_rate))
        for index, totals in enumerate(pair_totals):
            label = totals.sheet_name or f"Sheet {index + 1}"
            to_write.append(summary_row("", label, totals, exchange_rate))

        start_row = 1 if first_write else next_row + 1
        end_row = start_row + len(to_write) - 1
        range_spec = a1_range(0, start_row, SUMMARY_WIDTH - 1, end_row)
        logger.info("Writing summary data to %s!%s", ref, range_spec)
        await self.backend.batch_write(ref, [ValueRange(range_spec, to_write)])

        await self._apply_formatting(
            ref, first_write, start_row, date_row_index, len(pair_totals),
        )

        return SummaryResult(
            range_spec=range_spec,
            rows_written=len(to_write),
            date_totals=date_totals,
            grand_totals=grand_totals,
            grand_total_updated_in_place=sentinel_index is not None,
            date_already_present=date_present,
            exchange_rate=exchange_rate,
        )

    async def _read_existing(self, ref: str) -> list[list[Any]]:
        try:
            rows = await self.backend.read_values(ref, SUMMARY_RANGE)
        except Exception as e:
            logger.warning("Could not read existing summary data from %s: %s", ref, e)
            return []
        return trim_trailing_empty([list(row) for row in rows])

    async def _apply_formatting(
        self,
        ref: str,
        first_write: bool,
        start_row: int,
        date_row_index: int,
        pair_count: int,
    ) -> None:
        if first_write:
            await self._best_effort(
                "format summary header",
                self.backend.format_cells(ref, 0, 1, 0, SUMMARY_WIDTH, SUMMARY_HEADER_FORMAT),
            )
            await self._best_effort(
                "format grand total row",
                self.backend.format_cells(ref, 1, 2, 0, SUMMARY_WIDTH, GRAND_TOTAL_FORMAT),
            )

        if pair_count:
            pair_rows_start = 2 if first_write else start_row - 1
            await self._best_effort(
                "format pair rows",
                self.backend.format_cells(
                    ref, pair_rows_start, pair_rows_start + pair_count + 1,
                    0, SUMMARY_WIDTH, BORDER_FORMAT,
                ),
            )
            await self._best_effort(
                "group date rows",
                self.backend.group_rows(
                    ref, date_row_index + 1, date_row_index + 1 + pair_count,
                ),
            )

        await self._best_effort(
            "auto-fit summary columns",
            self.backend.auto_fit_columns(ref, 0, SUMMARY_WIDTH),
        )

    @staticmethod
    async def _best_effort(description: str, operation: Awaitable[None]) -> None:
        try:
            await operation
        except Exception as e:
            logger.warning("Could not %s: %s", description, e)
