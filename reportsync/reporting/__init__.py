"""Report engine.

Aggregates source rows per entity, classifies them against the last
snapshot, and appends dated blocks to report and summary sheets.
"""

from reportsync.reporting.aggregator import aggregate_by_entity
from reportsync.reporting.allocator import find_next_block_start, required_dimensions
from reportsync.reporting.change_detector import detect_change
from reportsync.reporting.columns import index_from_letter, letter_from_index
from reportsync.reporting.numbers import parse_number
from reportsync.reporting.records import (
    ChangeIndicator,
    EntityTotals,
    PairSnapshot,
    PairTotals,
    RawRow,
    ReportPair,
    SchemaMismatchError,
)
from reportsync.reporting.report_writer import (
    GenerationResult,
    PairResult,
    ReportWriter,
    plan_report,
)
from reportsync.reporting.summary_writer import SummaryResult, SummaryWriter

__all__ = [
    "ChangeIndicator",
    "EntityTotals",
    "GenerationResult",
    "PairResult",
    "PairSnapshot",
    "PairTotals",
    "RawRow",
    "ReportPair",
    "ReportWriter",
    "SchemaMismatchError",
    "SummaryResult",
    "SummaryWriter",
    "aggregate_by_entity",
    "detect_change",
    "find_next_block_start",
    "index_from_letter",
    "letter_from_index",
    "parse_number",
    "plan_report",
    "required_dimensions",
]
