"""Abstract spreadsheet transport used by the report engine.

Row and column indices are zero-based and end-exclusive. Every operation is
independently fallible; nothing here is transactional.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any, Sequence

Grid = Sequence[Sequence[Any]]


class SheetBackendError(RuntimeError):
    """A spreadsheet could not be read or written."""


@dataclass(frozen=True)
class CellFormat:
    """Backend-neutral cell styling.

    Border styles follow openpyxl names ("thin", "medium"). ``background``
    is an RGB hex string without the leading '#'.
    """

    number_format: str | None = None
    bold: bool = False
    font_size: int | None = None
    horizontal: str | None = None
    vertical: str | None = None
    background: str | None = None
    border: str | None = None
    # Overrides ``border`` on the top and bottom edges
    border_top_bottom: str | None = None


@dataclass(frozen=True)
class ValueRange:
    range_spec: str
    values: Grid


class SpreadsheetBackend(abc.ABC):
    """Reads and writes cell ranges of a sheet addressed by a reference string."""

    @abc.abstractmethod
    async def read_rows(self, ref: str) -> list[list[Any]]:
        """Read every row of a source sheet."""

    @abc.abstractmethod
    async def read_values(self, ref: str, range_spec: str | None = None) -> list[list[Any]]:
        """Read the used area of a sheet, or only ``range_spec`` (e.g. "A:G")."""

    @abc.abstractmethod
    async def write_values(self, ref: str, range_spec: str, values: Grid) -> None:
        """Write a grid starting at the top-left cell of ``range_spec``."""

    async def batch_write(self, ref: str, ranges: Sequence[ValueRange]) -> None:
        for value_range in ranges:
            await self.write_values(ref, value_range.range_spec, value_range.values)

    @abc.abstractmethod
    async def resize(self, ref: str, min_rows: int, min_cols: int) -> None:
        """Grow the sheet to at least the given dimensions."""

    @abc.abstractmethod
    async def merge_cells(
        self, ref: str, start_row: int, end_row: int, start_col: int, end_col: int,
    ) -> None: ...

    @abc.abstractmethod
    async def format_cells(
        self,
        ref: str,
        start_row: int,
        end_row: int,
        start_col: int,
        end_col: int,
        cell_format: CellFormat,
    ) -> None: ...

    @abc.abstractmethod
    async def auto_fit_columns(self, ref: str, start_col: int, end_col: int) -> None: ...

    @abc.abstractmethod
    async def group_rows(self, ref: str, start_row: int, end_row: int) -> None:
        """Create a collapsible row group over [start_row, end_row)."""

    @abc.abstractmethod
    async def get_sheet_title(self, ref: str) -> str: ...
