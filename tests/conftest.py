"""Shared fixtures: an in-memory spreadsheet backend and a throwaway database."""

import asyncio
from typing import Any

import pytest

from reportsync.database import isolated_session
from reportsync.reporting.config import RAW_ROW_WIDTH
from reportsync.sheets.backend import SheetBackendError, SpreadsheetBackend
from reportsync.sheets.workbook import parse_range


def source_row(
    name: Any,
    spend: Any = 0,
    clicks: Any = 0,
    commission: Any = 0,
    benefit: Any = 0,
    runner: str = "",
) -> list[Any]:
    """One 18-column source row with the metrics in columns O-R."""
    row: list[Any] = [""] * RAW_ROW_WIDTH
    row[3] = name
    row[12] = runner
    row[14] = spend
    row[15] = clicks
    row[16] = commission
    row[17] = benefit
    return row


SOURCE_HEADER = [[f"h{i}" for i in range(RAW_ROW_WIDTH)], [""] * RAW_ROW_WIDTH]


def source_sheet(*rows: list[Any]) -> list[list[Any]]:
    return [list(r) for r in SOURCE_HEADER] + [list(r) for r in rows]


class InMemoryBackend(SpreadsheetBackend):
    """Spreadsheet backend over plain lists, recording cosmetic calls.

    ``sources`` feeds ``read_rows``; ``sheets`` holds written grids. Any
    method named in ``fail_on`` raises SheetBackendError.
    """

    def __init__(self, sources: dict[str, list[list[Any]]] | None = None) -> None:
        self.sources = dict(sources or {})
        self.sheets: dict[str, list[list[Any]]] = {}
        self.titles: dict[str, str] = {}
        self.fail_on: set[str] = set()
        self.merges: list[tuple] = []
        self.formats: list[tuple] = []
        self.groups: list[tuple] = []
        self.resizes: list[tuple] = []
        self.writes: list[tuple[str, str]] = []

    def _check(self, method: str) -> None:
        if method in self.fail_on:
            raise SheetBackendError(f"{method} failed")

    async def read_rows(self, ref: str) -> list[list[Any]]:
        self._check("read_rows")
        if ref not in self.sources:
            raise SheetBackendError(f"Source not found: {ref}")
        return [list(row) for row in self.sources[ref]]

    async def read_values(self, ref: str, range_spec: str | None = None) -> list[list[Any]]:
        self._check("read_values")
        if ref not in self.sheets:
            raise SheetBackendError(f"Sheet not found: {ref}")
        rows = [list(row) for row in self.sheets[ref]]
        if range_spec:
            start_col, _, end_col, _ = parse_range(range_spec)
            rows = [row[start_col - 1:(end_col or start_col)] for row in rows]
        return rows

    async def write_values(self, ref: str, range_spec: str, values) -> None:
        self._check("write_values")
        self.writes.append((ref, range_spec))
        grid = self.sheets.setdefault(ref, [])
        start_col, start_row, _, _ = parse_range(range_spec)
        top = (start_row or 1) - 1
        left = start_col - 1
        for r, row in enumerate(values):
            while len(grid) <= top + r:
                grid.append([])
            target = grid[top + r]
            for c, value in enumerate(row):
                while len(target) <= left + c:
                    target.append(None)
                target[left + c] = value
        width = max(len(row) for row in grid)
        for row in grid:
            row.extend([None] * (width - len(row)))

    async def resize(self, ref: str, min_rows: int, min_cols: int) -> None:
        self._check("resize")
        self.resizes.append((ref, min_rows, min_cols))

    async def merge_cells(self, ref, start_row, end_row, start_col, end_col) -> None:
        self._check("merge_cells")
        self.merges.append((ref, start_row, end_row, start_col, end_col))

    async def format_cells(self, ref, start_row, end_row, start_col, end_col, cell_format) -> None:
        self._check("format_cells")
        self.formats.append((ref, start_row, end_row, start_col, end_col, cell_format))

    async def auto_fit_columns(self, ref: str, start_col: int, end_col: int) -> None:
        self._check("auto_fit_columns")

    async def group_rows(self, ref: str, start_row: int, end_row: int) -> None:
        self._check("group_rows")
        self.groups.append((ref, start_row, end_row))

    async def get_sheet_title(self, ref: str) -> str:
        self._check("get_sheet_title")
        return self.titles.get(ref, "Sheet1")


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
def run_with_db(db_url):
    """Run ``fn(session)`` against a fresh schema inside its own event loop."""

    def runner(fn):
        async def main():
            async with isolated_session(db_url) as session:
                return await fn(session)

        return asyncio.run(main())

    return runner
