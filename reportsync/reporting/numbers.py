"""Locale-tolerant number parsing for spreadsheet cells."""

from __future__ import annotations

import math
import re
from typing import Any

# Thousands dots, whitespace, the đồng sign and dollar signs
_STRIP_RE = re.compile(r"[.\sđ$]")
# Leading float literal, mirroring how lenient parsers read "12abc" as 12
_FLOAT_PREFIX_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_number(value: Any) -> float:
    """Convert a cell value to float, returning 0.0 when it cannot be parsed.

    Strings are normalized for Vietnamese formatting: dots are treated as
    thousands separators and dropped, and the comma becomes the decimal
    point. ``"1.234,56đ"`` parses as 1234.56 and ``"$1,000"`` as 1.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        cleaned = _STRIP_RE.sub("", value).replace(",", ".")
        match = _FLOAT_PREFIX_RE.match(cleaned)
        if not match:
            return 0.0
        result = float(match.group(0))
    else:
        try:
            result = float(value)
        except (TypeError, ValueError):
            return 0.0
    if math.isnan(result):
        return 0.0
    return result
