"""Value types shared by the report engine."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Sequence

from reportsync.reporting.config import (
    BENEFIT_COL,
    CLICKS_COL,
    COMMISSION_COL,
    NAME_COL,
    RAW_ROW_WIDTH,
    RUNNER_COL,
    SPEND_COL,
)
from reportsync.reporting.numbers import parse_number
from reportsync.utils.currency import profit_vnd


class SchemaMismatchError(ValueError):
    """A source row does not have the columns the report layout expects."""


class ChangeIndicator(str, enum.Enum):
    NEW = "Mới"
    CHANGED = "Thay Đổi"
    UNCHANGED = ""


def cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass(frozen=True)
class RawRow:
    """One source record, read by fixed column position."""

    row_number: int
    name: str
    assignee: str
    spend: float
    clicks: float
    commission: float
    benefit: float
    cells: tuple[Any, ...] = ()

    @classmethod
    def from_cells(cls, cells: Sequence[Any], row_number: int) -> "RawRow":
        """Build a RawRow from raw cell values.

        Raises:
            SchemaMismatchError: If the row is narrower than the source layout.
        """
        if len(cells) < RAW_ROW_WIDTH:
            raise SchemaMismatchError(
                f"Schema mismatch at source row {row_number}: expected at least "
                f"{RAW_ROW_WIDTH} columns, got {len(cells)}"
            )
        return cls(
            row_number=row_number,
            name=cell_text(cells[NAME_COL]),
            assignee=cell_text(cells[RUNNER_COL]),
            spend=parse_number(cells[SPEND_COL]),
            clicks=parse_number(cells[CLICKS_COL]),
            commission=parse_number(cells[COMMISSION_COL]),
            benefit=parse_number(cells[BENEFIT_COL]),
            cells=tuple(cells),
        )


@dataclass
class EntityTotals:
    """Summed metrics of one named entity within a single run."""

    name: str
    total_spend: float = 0.0
    total_clicks: float = 0.0
    total_commission: float = 0.0
    total_benefit: float = 0.0
    assignee: str = ""
    records: list[RawRow] = field(default_factory=list)

    def add(self, row: RawRow) -> None:
        self.records.append(row)
        self.total_spend += row.spend
        self.total_clicks += row.clicks
        self.total_commission += row.commission
        self.total_benefit += row.benefit
        if not self.assignee and row.assignee:
            self.assignee = row.assignee

    @property
    def metrics(self) -> tuple[float, float, float, float]:
        return (
            self.total_spend,
            self.total_clicks,
            self.total_commission,
            self.total_benefit,
        )

    def is_empty(self) -> bool:
        return all(value == 0 for value in self.metrics)

    def to_snapshot(self) -> dict:
        return {
            "totalSpend": self.total_spend,
            "totalClicks": self.total_clicks,
            "totalCommission": self.total_commission,
            "totalBenefit": self.total_benefit,
            "runner": self.assignee,
        }

    @classmethod
    def from_snapshot(cls, name: str, data: dict) -> "EntityTotals":
        return cls(
            name=name,
            total_spend=data.get("totalSpend", 0),
            total_clicks=data.get("totalClicks", 0),
            total_commission=data.get("totalCommission", 0),
            total_benefit=data.get("totalBenefit", 0),
            assignee=data.get("runner", "") or "",
        )


@dataclass
class PairTotals:
    """Headline totals of one pair (or of all pairs) for a report date."""

    sheet_name: str = ""
    total_spend: float = 0.0
    total_clicks: float = 0.0
    total_commission: float = 0.0
    total_benefit: float = 0.0

    def add(self, other: "PairTotals | EntityTotals") -> None:
        self.total_spend += other.total_spend
        self.total_clicks += other.total_clicks
        self.total_commission += other.total_commission
        self.total_benefit += other.total_benefit

    def add_values(self, values: Sequence[float]) -> None:
        spend, clicks, commission, benefit = values
        self.total_spend += spend
        self.total_clicks += clicks
        self.total_commission += commission
        self.total_benefit += benefit

    @property
    def metrics(self) -> list[float]:
        return [
            self.total_spend,
            self.total_clicks,
            self.total_commission,
            self.total_benefit,
        ]

    def profit(self, exchange_rate: float) -> float:
        """Benefit converted at the exchange rate, minus spend."""
        return profit_vnd(self.total_benefit, self.total_spend, exchange_rate)

    def to_dict(self) -> dict:
        return {
            "sheetName": self.sheet_name,
            "totalSpend": self.total_spend,
            "totalClicks": self.total_clicks,
            "totalCommission": self.total_commission,
            "totalBenefit": self.total_benefit,
        }


@dataclass
class PairSnapshot:
    """Persisted state of one pair, used as the "previous" side of diffs."""

    pair_index: int
    data_url: str
    report_url: str
    roster: list[str] = field(default_factory=list)
    entities: dict[str, dict] = field(default_factory=dict)
    saved_at: datetime | None = None

    def get_entity(self, name: str) -> EntityTotals | None:
        data = self.entities.get(name)
        if data is None:
            return None
        return EntityTotals.from_snapshot(name, data)


@dataclass(frozen=True)
class ReportPair:
    """A configured (data source, report destination) association."""

    data_url: str
    report_url: str
