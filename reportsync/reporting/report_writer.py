"""Incremental report writing.

Each run appends one 6-column block per pair to the right of the previous
blocks, rewrites the roster in column A, and recomputes the all-time totals
area (B-E) from every historical block. Data writes are fatal for a pair;
formatting is best effort.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Awaitable, Mapping, Sequence

from reportsync.reporting.aggregator import aggregate_by_entity
from reportsync.reporting.allocator import find_next_block_index, required_dimensions
from reportsync.reporting.change_detector import detect_change
from reportsync.reporting.columns import a1_range, letter_from_index
from reportsync.reporting.config import (
    BLOCK_HEADERS,
    BLOCK_WIDTH,
    DEFAULT_SHEET_NAME,
    FIRST_BLOCK_COL,
    FIRST_ENTITY_ROW_INDEX,
    METRIC_HEADERS,
    REPORT_HEADER_ROWS,
    ROSTER_COL,
    ROSTER_EXCLUDED_LABELS,
    ROSTER_TOTAL_LABEL,
    SUMMARY_ROW_INDEX,
    TOTALS_END_COL,
    TOTALS_START_COL,
    TOTALS_TITLE,
)
from reportsync.reporting.numbers import parse_number
from reportsync.reporting.records import (
    ChangeIndicator,
    EntityTotals,
    PairSnapshot,
    PairTotals,
    ReportPair,
    cell_text,
)
from reportsync.reporting.styles import BORDER_FORMAT, HEADER_FORMAT, SUMMARY_ROW_FORMAT
from reportsync.sheets.backend import SpreadsheetBackend, ValueRange

logger = logging.getLogger(__name__)

METRIC_COUNT = len(METRIC_HEADERS)


@dataclass
class ReportPlan:
    """Everything one run writes into a report sheet."""

    roster: list[str]
    indicators: dict[str, ChangeIndicator]
    changed: list[EntityTotals]
    headline: PairTotals
    start_index: int
    roster_values: list[list[Any]]
    block_values: list[list[Any]]
    totals_values: list[list[Any]]
    required_rows: int
    required_columns: int

    @property
    def start_column(self) -> str:
        return letter_from_index(self.start_index)

    @property
    def end_index(self) -> int:
        """Exclusive end column index of the block."""
        return self.start_index + BLOCK_WIDTH

    @property
    def end_column(self) -> str:
        return letter_from_index(self.end_index - 1)

    def value_ranges(self) -> list[ValueRange]:
        return [
            ValueRange(
                a1_range(ROSTER_COL, 1, ROSTER_COL, len(self.roster_values)),
                self.roster_values,
            ),
            ValueRange(
                a1_range(TOTALS_START_COL, 1, TOTALS_END_COL - 1, len(self.totals_values)),
                self.totals_values,
            ),
            ValueRange(
                a1_range(self.start_index, 1, self.end_index - 1, len(self.block_values)),
                self.block_values,
            ),
        ]


@dataclass
class PairResult:
    pair_index: int
    data_url: str
    report_url: str
    success: bool
    error: str | None = None
    sheet_name: str = DEFAULT_SHEET_NAME
    stores_processed: int = 0
    changed_stores: int = 0
    total_records: int = 0
    totals: PairTotals = field(default_factory=PairTotals)
    start_column: str | None = None
    end_column: str | None = None
    roster_size: int = 0
    changes_tracked: bool = False
    previous_report_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            **self.totals.to_dict(),
            "pairIndex": self.pair_index,
            "dataUrl": self.data_url,
            "reportUrl": self.report_url,
            "success": self.success,
            "error": self.error,
            "sheetName": self.sheet_name,
            "storesProcessed": self.stores_processed,
            "changedStores": self.changed_stores,
            "totalRecords": self.total_records,
            "startColumn": self.start_column,
            "endColumn": self.end_column,
            "stores": self.roster_size,
            "changesTracked": self.changes_tracked,
            "previousReportDate": (
                self.previous_report_at.isoformat() if self.previous_report_at else None
            ),
        }


@dataclass
class GenerationResult:
    per_pair_results: list[PairResult]
    new_snapshot: dict[int, PairSnapshot]

    @property
    def pair_totals(self) -> list[PairTotals]:
        """Headline totals of the pairs that were written successfully."""
        return [result.totals for result in self.per_pair_results if result.success]


def _cell(row: Sequence[Any], index: int) -> Any:
    return row[index] if index < len(row) else None


def _entity_rows(existing_rows: Sequence[Sequence[Any]]) -> list[tuple[str, Sequence[Any]]]:
    """(name, row) for every entity row already in the sheet."""
    entries = []
    for row in existing_rows[FIRST_ENTITY_ROW_INDEX:]:
        name = cell_text(_cell(row, ROSTER_COL))
        if not name or name in ROSTER_EXCLUDED_LABELS:
            continue
        entries.append((name, row))
    return entries


def historical_totals(existing_rows: Sequence[Sequence[Any]]) -> dict[str, list[float]]:
    """Re-sum every historical block of every entity row.

    Each block contributes its first four cells (spend, clicks, commission,
    benefit). The sheet is rescanned in full on each run.
    """
    totals: dict[str, list[float]] = {}
    for name, row in _entity_rows(existing_rows):
        sums = [0.0] * METRIC_COUNT
        for start in range(FIRST_BLOCK_COL, len(row), BLOCK_WIDTH):
            for offset in range(METRIC_COUNT):
                sums[offset] += parse_number(_cell(row, start + offset))
        totals[name] = sums
    return totals


def build_roster(
    existing_rows: Sequence[Sequence[Any]],
    entities: Mapping[str, EntityTotals],
    known: Sequence[str] = (),
) -> list[str]:
    """Known names from column A, then newly seen names in first-seen order.

    ``known`` is the last saved roster. It stands in for column A when the
    sheet lists no names, so an unreadable history keeps existing rows.
    """
    roster: list[str] = []
    seen: set[str] = set()
    sheet_names = [name for name, _ in _entity_rows(existing_rows)]
    for name in sheet_names or known:
        if name not in seen:
            seen.add(name)
            roster.append(name)
    for name in entities:
        if name not in seen:
            seen.add(name)
            roster.append(name)
    return roster


def plan_report(
    existing_rows: Sequence[Sequence[Any]],
    entities: Mapping[str, EntityTotals],
    previous: PairSnapshot | None,
    target_date: date,
) -> ReportPlan:
    """Lay out one run's block against the current contents of a report sheet."""
    roster = build_roster(existing_rows, entities, previous.roster if previous else ())
    start_index = find_next_block_index(existing_rows)
    all_time = historical_totals(existing_rows)

    indicators: dict[str, ChangeIndicator] = {}
    changed: list[EntityTotals] = []
    headline = PairTotals()
    entity_values: list[list[Any]] = []

    for name in roster:
        current = entities.get(name)
        if current is None:
            # Blank, not zero: the entity was not reported in this run
            entity_values.append([""] * BLOCK_WIDTH)
            continue

        previous_totals = previous.get_entity(name) if previous else None
        indicator = detect_change(current, previous_totals)
        indicators[name] = indicator
        if indicator is not ChangeIndicator.UNCHANGED:
            changed.append(current)
            headline.add(current)

        entity_values.append([*current.metrics, indicator.value, current.assignee])
        sums = all_time.setdefault(name, [0.0] * METRIC_COUNT)
        for offset, value in enumerate(current.metrics):
            sums[offset] += value

    block_values: list[list[Any]] = [
        [target_date.isoformat()] + [""] * (BLOCK_WIDTH - 1),
        list(BLOCK_HEADERS),
        [*headline.metrics, "", ""],
        *entity_values,
    ]

    roster_values: list[list[Any]] = [[""], [""], [ROSTER_TOTAL_LABEL]]
    roster_values.extend([name] for name in roster)

    grand = PairTotals()
    per_entity: list[list[Any]] = []
    for name in roster:
        sums = all_time.get(name, [0.0] * METRIC_COUNT)
        grand.add_values(sums)
        per_entity.append(list(sums))
    totals_values: list[list[Any]] = [
        [TOTALS_TITLE] + [""] * (METRIC_COUNT - 1),
        list(METRIC_HEADERS),
        grand.metrics,
        *per_entity,
    ]

    rows, columns = required_dimensions(len(roster), start_index)
    return ReportPlan(
        roster=roster,
        indicators=indicators,
        changed=changed,
        headline=headline,
        start_index=start_index,
        roster_values=roster_values,
        block_values=block_values,
        totals_values=totals_values,
        required_rows=rows,
        required_columns=columns,
    )


def trim_trailing_empty(rows: list[list[Any]]) -> list[list[Any]]:
    end = len(rows)
    while end and not any(value not in (None, "") for value in rows[end - 1]):
        end -= 1
    return rows[:end]


class ReportWriter:
    """Writes per-pair report blocks through a spreadsheet backend."""

    def __init__(self, backend: SpreadsheetBackend) -> None:
        self.backend = backend

    async def generate_report(
        self,
        pairs: Sequence[ReportPair],
        target_date: date,
        previous_snapshot: Mapping[int, PairSnapshot],
    ) -> GenerationResult:
        """Write one block per pair, strictly in order.

        A failing pair is recorded and skipped; its previous snapshot entry
        is carried over so the next run still has something to diff against.
        """
        results: list[PairResult] = []
        new_snapshot: dict[int, PairSnapshot] = {}

        for index, pair in enumerate(pairs):
            logger.info("Processing pair %d/%d", index + 1, len(pairs))
            previous = previous_snapshot.get(index)
            if previous is not None and (previous.data_url, previous.report_url) != (
                pair.data_url, pair.report_url,
            ):
                logger.info(
                    "Pair %d was reconfigured, ignoring its previous snapshot", index + 1,
                )
                previous = None
            try:
                result, snapshot = await self.write_pair(index, pair, target_date, previous)
            except Exception as e:
                logger.exception("Report for pair %d failed", index + 1)
                result = PairResult(
                    pair_index=index,
                    data_url=pair.data_url,
                    report_url=pair.report_url,
                    success=False,
                    error=str(e),
                )
                snapshot = previous
            results.append(result)
            if snapshot is not None:
                new_snapshot[index] = snapshot

        return GenerationResult(per_pair_results=results, new_snapshot=new_snapshot)

    async def write_pair(
        self,
        pair_index: int,
        pair: ReportPair,
        target_date: date,
        previous: PairSnapshot | None,
    ) -> tuple[PairResult, PairSnapshot]:
        rows = await self.backend.read_rows(pair.data_url)
        entities = aggregate_by_entity(rows, target_date)
        sheet_name = await self._sheet_name(pair.data_url)

        existing = await self._read_existing(pair.report_url)
        plan = plan_report(existing, entities, previous, target_date)
        logger.info(
            "Pair %d: %d entities, %d changed, writing block at column %s",
            pair_index + 1, len(entities), len(plan.changed), plan.start_column,
        )

        ref = pair.report_url
        await self._best_effort(
            f"resize {ref} to {plan.required_rows}x{plan.required_columns}",
            self.backend.resize(ref, plan.required_rows, plan.required_columns),
        )
        await self.backend.batch_write(ref, plan.value_ranges())
        await self._apply_formatting(ref, plan)

        plan.headline.sheet_name = sheet_name
        result = PairResult(
            pair_index=pair_index,
            data_url=pair.data_url,
            report_url=pair.report_url,
            success=True,
            sheet_name=sheet_name,
            stores_processed=len(entities),
            changed_stores=len(plan.changed),
            total_records=sum(len(e.records) for e in entities.values()),
            totals=plan.headline,
            start_column=plan.start_column,
            end_column=plan.end_column,
            roster_size=len(plan.roster),
            changes_tracked=previous is not None,
            previous_report_at=previous.saved_at if previous else None,
        )
        snapshot = PairSnapshot(
            pair_index=pair_index,
            data_url=pair.data_url,
            report_url=pair.report_url,
            roster=plan.roster,
            entities={name: e.to_snapshot() for name, e in entities.items()},
        )
        return result, snapshot

    async def _read_existing(self, ref: str) -> list[list[Any]]:
        try:
            rows = await self.backend.read_values(ref)
        except Exception as e:
            logger.warning("Could not read existing data from %s, starting fresh: %s", ref, e)
            return []
        return trim_trailing_empty([list(row) for row in rows])

    async def _sheet_name(self, ref: str) -> str:
        try:
            return await self.backend.get_sheet_title(ref)
        except Exception as e:
            logger.warning("Could not get sheet name for %s, using default: %s", ref, e)
            return DEFAULT_SHEET_NAME

    async def _apply_formatting(self, ref: str, plan: ReportPlan) -> None:
        block_rows = len(plan.block_values)
        end = plan.end_index
        await self._best_effort(
            "format report block",
            self.backend.format_cells(ref, 0, block_rows, plan.start_index, end, BORDER_FORMAT),
        )
        await self._best_effort(
            "format roster and totals",
            self.backend.format_cells(ref, 0, len(plan.roster_values), 0, end, BORDER_FORMAT),
        )
        await self._best_effort(
            "merge date header",
            self.backend.merge_cells(ref, 0, 1, plan.start_index, end),
        )
        await self._best_effort(
            "merge totals title",
            self.backend.merge_cells(ref, 0, 1, TOTALS_START_COL, TOTALS_END_COL),
        )
        await self._best_effort(
            "format header rows",
            self.backend.format_cells(ref, 0, REPORT_HEADER_ROWS, 1, end, HEADER_FORMAT),
        )
        await self._best_effort(
            "format summary row",
            self.backend.format_cells(
                ref, SUMMARY_ROW_INDEX, SUMMARY_ROW_INDEX + 1, 1, end, SUMMARY_ROW_FORMAT,
            ),
        )
        await self._best_effort(
            "auto-fit columns",
            self.backend.auto_fit_columns(ref, 0, end),
        )

    @staticmethod
    async def _best_effort(description: str, operation: Awaitable[None]) -> bool:
        try:
            await operation
        except Exception as e:
            logger.warning("Could not %s: %s", description, e)
            return False
        return True
