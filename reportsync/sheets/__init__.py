"""Spreadsheet transport: the abstract backend and its workbook implementation."""

from reportsync.sheets.backend import (
    CellFormat,
    SheetBackendError,
    SpreadsheetBackend,
    ValueRange,
)
from reportsync.sheets.workbook import WorkbookBackend

__all__ = [
    "CellFormat",
    "SheetBackendError",
    "SpreadsheetBackend",
    "ValueRange",
    "WorkbookBackend",
]
