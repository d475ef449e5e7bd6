"""Column allocation for append-only report blocks."""

from __future__ import annotations

from typing import Any, Sequence

from reportsync.reporting.columns import letter_from_index
from reportsync.reporting.config import (
    BLOCK_HEADER_PROBE,
    BLOCK_WIDTH,
    COLUMN_HEADROOM,
    FIRST_BLOCK_COL,
    MIN_REPORT_ROWS,
    REPORT_HEADER_ROWS,
)


def find_next_block_index(rows: Sequence[Sequence[Any]]) -> int:
    """Return the zero-based start column of the first free block.

    Blocks start at column F and are 6 columns wide. A block is free when
    its first 5 cells in the header row (row 1) are all empty. Past the end
    of the header row every cell is empty, so the scan always terminates.
    """
    index = FIRST_BLOCK_COL
    if not rows:
        return index
    header = rows[0]
    while True:
        probe = header[index:index + BLOCK_HEADER_PROBE]
        if not any(probe):
            return index
        index += BLOCK_WIDTH


def find_next_block_start(rows: Sequence[Sequence[Any]]) -> str:
    """Column letter of the first free block (``"F"`` for an empty sheet)."""
    return letter_from_index(find_next_block_index(rows))


def required_dimensions(entity_count: int, start_index: int) -> tuple[int, int]:
    """Minimum (rows, columns) the sheet needs before a block is written."""
    rows = max(entity_count + REPORT_HEADER_ROWS, MIN_REPORT_ROWS)
    columns = start_index + COLUMN_HEADROOM
    return rows, columns
