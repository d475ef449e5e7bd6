"""Layout constants for source data sheets, report sheets and the summary sheet.

Source data sheet (0-indexed positions within a row):
    D=entity name, M=runner, O=spend, P=clicks, Q=commission (CĐ), R=benefit ($)
    Rows 1-2 are headers.

Report sheet:
    A        = roster (A3 = "TỔNG", A4+ = entity names, append-only)
    B-E      = all-time totals area (B1 merged title, B2 headers, B3 grand sum)
    F onward = one 6-column block per run:
               row 1 = merged date, row 2 = headers, row 3 = changed-only totals,
               row 4+ = one row per roster entity

Summary sheet:
    A=Date, B=Label, C=Spend, D=Clicks, E=Commission, F=Benefit, G=Profit
"""

from typing import Final

# --- Source data rows ---
NAME_COL: Final[int] = 3        # D
RUNNER_COL: Final[int] = 12     # M
SPEND_COL: Final[int] = 14      # O
CLICKS_COL: Final[int] = 15     # P
COMMISSION_COL: Final[int] = 16  # Q
BENEFIT_COL: Final[int] = 17    # R
RAW_ROW_WIDTH: Final[int] = BENEFIT_COL + 1
# Row indices <= this are header rows
LAST_HEADER_ROW_INDEX: Final[int] = 1

# --- Report sheet ---
ROSTER_COL: Final[int] = 0            # A
TOTALS_START_COL: Final[int] = 1      # B
TOTALS_END_COL: Final[int] = 5        # F (exclusive)
FIRST_BLOCK_COL: Final[int] = 5       # F
BLOCK_WIDTH: Final[int] = 6
# Header cells that must be blank for a block to count as free
BLOCK_HEADER_PROBE: Final[int] = 5
# Extra columns requested beyond the block start when resizing
COLUMN_HEADROOM: Final[int] = 12
MIN_REPORT_ROWS: Final[int] = 10
# Date row, header row, summary row
REPORT_HEADER_ROWS: Final[int] = 3
SUMMARY_ROW_INDEX: Final[int] = 2
FIRST_ENTITY_ROW_INDEX: Final[int] = 3

ROSTER_TOTAL_LABEL: Final[str] = "TỔNG"
ROSTER_EXCLUDED_LABELS: Final[frozenset[str]] = frozenset({"TỔNG", "TỔNG CỘNG"})
TOTALS_TITLE: Final[str] = "Tổng"

METRIC_HEADERS: Final[tuple[str, ...]] = (
    "Số Tiền Chạy(VNĐ)",
    "Click",
    "CĐ",
    "Tiền Hoa Hồng ($)",
)
BLOCK_HEADERS: Final[tuple[str, ...]] = METRIC_HEADERS + ("Trạng thái", "Người chạy")

# --- Summary sheet ---
SUMMARY_RANGE: Final[str] = "A:G"
SUMMARY_WIDTH: Final[int] = 7
SUMMARY_DATE_COL: Final[int] = 0
SUMMARY_LABEL_COL: Final[int] = 1
GRAND_TOTAL_LABEL: Final[str] = "TỔNG TẤT CẢ"
DATE_TOTAL_LABEL: Final[str] = "TỔNG"
DEFAULT_SHEET_NAME: Final[str] = "Sheet1"


def summary_headers(exchange_rate: float) -> list[str]:
    """Header row of a freshly created summary sheet."""
    return [
        "Ngày",
        "Tên Sheet",
        "Số tiền chạy (VNĐ)",
        "Tổng Click",
        "Tổng CĐ",
        "Tổng hoa hồng ($)",
        f"Lợi nhuận (VNĐ) - Tỷ giá: {exchange_rate:g} VNĐ",
    ]
