"""Spreadsheet column letter <-> zero-based index conversion.

Unlike ``openpyxl.utils.get_column_letter`` these are not capped at XFD,
so a report can keep growing to the right indefinitely.
"""

from __future__ import annotations

import re

_LETTERS_RE = re.compile(r"^[A-Z]+$")


def index_from_letter(letters: str) -> int:
    """Convert a column label ("A", "AB") to a zero-based index (0, 27)."""
    label = letters.strip().upper()
    if not _LETTERS_RE.match(label):
        raise ValueError(f"Invalid column letters: {letters!r}")
    result = 0
    for char in label:
        result = result * 26 + (ord(char) - 64)
    return result - 1


def letter_from_index(index: int) -> str:
    """Convert a zero-based column index to its label (0 -> "A", 26 -> "AA")."""
    if index < 0:
        raise ValueError(f"Column index must be >= 0, got {index}")
    label = ""
    while index >= 0:
        label = chr(index % 26 + 65) + label
        index = index // 26 - 1
    return label


def a1_range(start_col: int, start_row: int, end_col: int, end_row: int) -> str:
    """Build an A1 range from zero-based column indices and 1-based rows."""
    return (
        f"{letter_from_index(start_col)}{start_row}:"
        f"{letter_from_index(end_col)}{end_row}"
    )
