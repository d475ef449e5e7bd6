"""Cell formats applied to report and summary sheets."""

from typing import Final

from reportsync.sheets.backend import CellFormat

NUMBER_FORMAT: Final[str] = "#,##0"

BORDER_FORMAT: Final[CellFormat] = CellFormat(
    number_format=NUMBER_FORMAT,
    border="thin",
)

HEADER_FORMAT: Final[CellFormat] = CellFormat(
    number_format=NUMBER_FORMAT,
    bold=True,
    font_size=11,
    horizontal="center",
    vertical="center",
    border="thin",
)

SUMMARY_ROW_FORMAT: Final[CellFormat] = CellFormat(
    number_format=NUMBER_FORMAT,
    bold=True,
    font_size=11,
    horizontal="center",
    vertical="center",
    background="E6E6E6",
    border="thin",
    border_top_bottom="medium",
)

SUMMARY_HEADER_FORMAT: Final[CellFormat] = CellFormat(
    number_format=NUMBER_FORMAT,
    bold=True,
    font_size=12,
    horizontal="center",
    vertical="center",
    background="DFE4EC",
    border="thin",
)

GRAND_TOTAL_FORMAT: Final[CellFormat] = CellFormat(
    number_format=NUMBER_FORMAT,
    bold=True,
    font_size=10,
    horizontal="center",
    vertical="center",
    background="DFE4EC",
    border="thin",
)
