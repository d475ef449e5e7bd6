"""Local workbook implementation of the spreadsheet backend.

References look like ``reports/store_a.xlsx`` or ``reports/store_a.xlsx#Report``
and resolve against ``base_dir``. ``.csv`` files can be read as sources.
Workbooks and sheets are created on first write, and a timestamped backup
is taken before the first modification of an existing file.
"""

from __future__ import annotations

import csv
import datetime
import logging
import re
import shutil
from pathlib import Path
from typing import Any, Sequence

import openpyxl
from openpyxl.cell.cell import MergedCell
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from reportsync.reporting.columns import index_from_letter
from reportsync.sheets.backend import (
    CellFormat,
    Grid,
    SheetBackendError,
    SpreadsheetBackend,
    ValueRange,
)

logger = logging.getLogger(__name__)

_RANGE_RE = re.compile(r"^([A-Za-z]+)(\d*)(?::([A-Za-z]+)(\d*))?$")

MIN_COLUMN_WIDTH = 10
MAX_COLUMN_WIDTH = 50


def _create_backup(file_path: Path) -> Path:
    """Create a timestamped backup of the file before modification.

    Returns the backup file path.
    """
    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_dir = file_path.parent / "backups"
    backup_dir.mkdir(parents=True, exist_ok=True)
    backup_path = backup_dir / f"{file_path.stem}_{timestamp}{file_path.suffix}"
    shutil.copy2(str(file_path), str(backup_path))
    return backup_path


def parse_range(range_spec: str) -> tuple[int, int | None, int | None, int | None]:
    """Parse an A1 range into (start_col, start_row, end_col, end_row).

    Columns and rows are 1-indexed as openpyxl expects; missing parts are
    None ("A:G" has no rows, "B3" has no end).
    """
    match = _RANGE_RE.match(range_spec.strip())
    if not match:
        raise ValueError(f"Invalid range: {range_spec!r}")
    start_letters, start_row, end_letters, end_row = match.groups()
    return (
        index_from_letter(start_letters) + 1,
        int(start_row) if start_row else None,
        index_from_letter(end_letters) + 1 if end_letters else None,
        int(end_row) if end_row else None,
    )


def _to_cell_value(value: Any) -> Any:
    if value == "":
        return None
    return value


def _build_styles(cell_format: CellFormat) -> dict[str, Any]:
    styles: dict[str, Any] = {}
    if cell_format.bold or cell_format.font_size:
        styles["font"] = Font(bold=cell_format.bold, size=cell_format.font_size)
    if cell_format.horizontal or cell_format.vertical:
        styles["alignment"] = Alignment(
            horizontal=cell_format.horizontal,
            vertical=cell_format.vertical,
        )
    if cell_format.background:
        styles["fill"] = PatternFill(
            fill_type="solid",
            start_color=cell_format.background,
            end_color=cell_format.background,
        )
    if cell_format.border or cell_format.border_top_bottom:
        side = Side(style=cell_format.border)
        edge = Side(style=cell_format.border_top_bottom or cell_format.border)
        styles["border"] = Border(left=side, right=side, top=edge, bottom=edge)
    if cell_format.number_format:
        styles["number_format"] = cell_format.number_format
    return styles


class WorkbookBackend(SpreadsheetBackend):
    """Reads and writes local .xlsx files with openpyxl."""

    def __init__(self, base_dir: str | Path, backup: bool = True) -> None:
        self.base_dir = Path(base_dir)
        self.backup = backup
        self._backed_up: set[Path] = set()

    # --- reference handling ---

    def resolve(self, ref: str) -> tuple[Path, str | None]:
        """Split a reference into (file path, sheet name or None)."""
        file_part, _, sheet_name = ref.partition("#")
        if not file_part.strip():
            raise SheetBackendError(f"Invalid sheet reference: {ref!r}")
        path = Path(file_part.strip())
        if not path.is_absolute():
            path = self.base_dir / path
        return path, sheet_name.strip() or None

    def _load_existing(self, ref: str) -> tuple[Path, str | None, Workbook, Worksheet]:
        path, sheet_name = self.resolve(ref)
        if not path.exists():
            raise SheetBackendError(f"Workbook not found: {path}")
        wb = openpyxl.load_workbook(str(path))
        if sheet_name is None:
            return path, sheet_name, wb, wb.active
        if sheet_name not in wb.sheetnames:
            wb.close()
            raise SheetBackendError(
                f"Sheet '{sheet_name}' not found. Available: {wb.sheetnames}"
            )
        return path, sheet_name, wb, wb[sheet_name]

    def _open_for_write(self, ref: str) -> tuple[Path, Workbook, Worksheet]:
        path, sheet_name = self.resolve(ref)
        if path.suffix.lower() == ".csv":
            raise SheetBackendError(f"CSV files are read-only: {path}")

        if path.exists():
            if self.backup and path not in self._backed_up:
                backup_path = _create_backup(path)
                self._backed_up.add(path)
                logger.debug("Backed up %s to %s", path, backup_path)
            wb = openpyxl.load_workbook(str(path))
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            wb = openpyxl.Workbook()
            if sheet_name:
                wb.active.title = sheet_name
            self._backed_up.add(path)

        if sheet_name is None:
            return path, wb, wb.active
        if sheet_name not in wb.sheetnames:
            wb.create_sheet(sheet_name)
        return path, wb, wb[sheet_name]

    # --- reads ---

    async def read_rows(self, ref: str) -> list[list[Any]]:
        path, sheet_name = self.resolve(ref)
        if not path.exists():
            raise SheetBackendError(f"Source not found: {path}")

        if path.suffix.lower() == ".csv":
            with open(path, newline="", encoding="utf-8-sig") as f:
                rows = [list(row) for row in csv.reader(f)]
        else:
            wb = openpyxl.load_workbook(str(path), data_only=True, read_only=True)
            try:
                if sheet_name is not None and sheet_name not in wb.sheetnames:
                    raise SheetBackendError(
                        f"Sheet '{sheet_name}' not found. Available: {wb.sheetnames}"
                    )
                ws = wb[sheet_name] if sheet_name else wb.active
                rows = [list(row) for row in ws.iter_rows(values_only=True)]
            finally:
                wb.close()

        # Pad ragged rows so fixed-position reads see the full width
        width = max((len(row) for row in rows), default=0)
        for row in rows:
            row.extend([None] * (width - len(row)))
        return rows

    async def read_values(self, ref: str, range_spec: str | None = None) -> list[list[Any]]:
        _, _, wb, ws = self._load_existing(ref)
        try:
            min_col, max_col = 1, ws.max_column
            if range_spec:
                start_col, _, end_col, _ = parse_range(range_spec)
                min_col, max_col = start_col, end_col or start_col
            if ws.max_row == 1 and ws.max_column == 1 and ws.cell(1, 1).value is None:
                return []
            return [
                list(row)
                for row in ws.iter_rows(
                    min_row=1,
                    max_row=ws.max_row,
                    min_col=min_col,
                    max_col=max_col,
                    values_only=True,
                )
            ]
        finally:
            wb.close()

    # --- writes ---

    @staticmethod
    def _write_grid(ws: Worksheet, range_spec: str, values: Grid) -> None:
        start_col, start_row, _, _ = parse_range(range_spec)
        start_row = start_row or 1
        for r, row in enumerate(values):
            for c, value in enumerate(row):
                cell = ws.cell(row=start_row + r, column=start_col + c)
                value = _to_cell_value(value)
                if isinstance(cell, MergedCell):
                    if value is None:
                        continue
                    raise SheetBackendError(
                        f"Cannot write {value!r} into merged cell {cell.coordinate}"
                    )
                cell.value = value

    async def write_values(self, ref: str, range_spec: str, values: Grid) -> None:
        await self.batch_write(ref, [ValueRange(range_spec, values)])

    async def batch_write(self, ref: str, ranges: Sequence[ValueRange]) -> None:
        path, wb, ws = self._open_for_write(ref)
        try:
            for value_range in ranges:
                self._write_grid(ws, value_range.range_spec, value_range.values)
            wb.save(str(path))
        finally:
            wb.close()

    async def resize(self, ref: str, min_rows: int, min_cols: int) -> None:
        # Worksheets grow on demand; only make sure the sheet exists.
        path, wb, ws = self._open_for_write(ref)
        try:
            logger.debug(
                "Sheet %s is %dx%d, requested at least %dx%d",
                ws.title, ws.max_row, ws.max_column, min_rows, min_cols,
            )
            wb.save(str(path))
        finally:
            wb.close()

    async def merge_cells(
        self, ref: str, start_row: int, end_row: int, start_col: int, end_col: int,
    ) -> None:
        path, wb, ws = self._open_for_write(ref)
        try:
            coord = (
                f"{get_column_letter(start_col + 1)}{start_row + 1}:"
                f"{get_column_letter(end_col)}{end_row}"
            )
            existing = {str(merged) for merged in ws.merged_cells.ranges}
            if coord not in existing:
                ws.merge_cells(coord)
                wb.save(str(path))
        finally:
            wb.close()

    async def format_cells(
        self,
        ref: str,
        start_row: int,
        end_row: int,
        start_col: int,
        end_col: int,
        cell_format: CellFormat,
    ) -> None:
        styles = _build_styles(cell_format)
        if not styles:
            return
        path, wb, ws = self._open_for_write(ref)
        try:
            for row in range(start_row + 1, end_row + 1):
                for col in range(start_col + 1, end_col + 1):
                    cell = ws.cell(row=row, column=col)
                    for attr, style in styles.items():
                        setattr(cell, attr, style)
            wb.save(str(path))
        finally:
            wb.close()

    async def auto_fit_columns(self, ref: str, start_col: int, end_col: int) -> None:
        path, wb, ws = self._open_for_write(ref)
        try:
            for col in range(start_col + 1, end_col + 1):
                max_length = 0
                for (value,) in ws.iter_rows(min_col=col, max_col=col, values_only=True):
                    if value is None:
                        continue
                    if isinstance(value, float):
                        text = f"{value:,.0f}"
                    else:
                        text = str(value)
                    max_length = max(max_length, len(text))
                ws.column_dimensions[get_column_letter(col)].width = max(
                    MIN_COLUMN_WIDTH, min(max_length + 4, MAX_COLUMN_WIDTH)
                )
            wb.save(str(path))
        finally:
            wb.close()

    async def group_rows(self, ref: str, start_row: int, end_row: int) -> None:
        if end_row <= start_row:
            return
        path, wb, ws = self._open_for_write(ref)
        try:
            ws.row_dimensions.group(start_row + 1, end_row, outline_level=1, hidden=False)
            wb.save(str(path))
        finally:
            wb.close()

    async def get_sheet_title(self, ref: str) -> str:
        path, sheet_name = self.resolve(ref)
        if sheet_name:
            return sheet_name
        if path.suffix.lower() == ".csv":
            return path.stem
        if not path.exists():
            raise SheetBackendError(f"Workbook not found: {path}")
        wb = openpyxl.load_workbook(str(path), read_only=True)
        try:
            return wb.active.title
        finally:
            wb.close()
