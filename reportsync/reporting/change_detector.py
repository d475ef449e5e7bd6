"""Classify an entity against its last persisted totals."""

from __future__ import annotations

from typing import Any

from reportsync.reporting.records import ChangeIndicator, EntityTotals


def _loosely_equal(left: Any, right: Any) -> bool:
    """Compare numerically when both sides coerce to float, else with ==."""
    try:
        return float(left) == float(right)
    except (TypeError, ValueError):
        return left == right


def detect_change(
    current: EntityTotals,
    previous: EntityTotals | None,
) -> ChangeIndicator:
    if previous is None:
        return ChangeIndicator.NEW
    for now, before in zip(current.metrics, previous.metrics):
        if not _loosely_equal(now, before):
            return ChangeIndicator.CHANGED
    return ChangeIndicator.UNCHANGED
