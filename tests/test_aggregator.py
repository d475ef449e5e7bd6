"""Tests for per-entity aggregation."""

import datetime

import pytest

from conftest import source_row, source_sheet
from reportsync.reporting.aggregator import aggregate_by_entity
from reportsync.reporting.records import SchemaMismatchError


class TestAggregateByEntity:

    def test_sums_per_entity(self):
        rows = source_sheet(
            source_row("A", 100, 10, 1, 2),
            source_row("B", 5, 1),
            source_row("A", "1.000", "5", 0, "0,5"),
        )
        result = aggregate_by_entity(rows)
        assert list(result) == ["A", "B"]
        a = result["A"]
        assert a.metrics == (1100.0, 15.0, 1.0, 2.5)
        assert len(a.records) == 2

    def test_header_rows_skipped(self):
        rows = [source_row("Header", 1), source_row("Header2", 1), source_row("A", 1)]
        assert list(aggregate_by_entity(rows)) == ["A"]

    def test_empty_names_skipped(self):
        rows = source_sheet(source_row("", 100), source_row(None, 100), source_row("A", 1))
        assert list(aggregate_by_entity(rows)) == ["A"]

    def test_all_zero_entities_dropped(self):
        rows = source_sheet(
            source_row("Zero", 0, 0, 0, 0),
            source_row("Junk", "abc", "", None, "đ"),
            source_row("A", 0, 1),
        )
        result = aggregate_by_entity(rows)
        assert list(result) == ["A"]
        assert all(not e.is_empty() for e in result.values())

    def test_entity_cancelling_to_zero_is_dropped(self):
        rows = source_sheet(source_row("A", 10), source_row("A", -10))
        assert aggregate_by_entity(rows) == {}

    def test_first_runner_kept(self):
        rows = source_sheet(
            source_row("A", 1, runner=""),
            source_row("A", 1, runner="Lan"),
            source_row("A", 1, runner="Minh"),
        )
        assert aggregate_by_entity(rows)["A"].assignee == "Lan"

    def test_names_are_case_sensitive(self):
        rows = source_sheet(source_row("a", 1), source_row("A", 1))
        assert list(aggregate_by_entity(rows)) == ["a", "A"]

    def test_target_date_does_not_filter(self):
        rows = source_sheet(source_row("A", 1), source_row("B", 2))
        result = aggregate_by_entity(rows, datetime.date(2026, 3, 1))
        assert set(result) == {"A", "B"}

    def test_narrow_row_raises_schema_mismatch(self):
        rows = source_sheet(["", "", "", "A", 1])
        with pytest.raises(SchemaMismatchError, match="row 3"):
            aggregate_by_entity(rows)

    def test_empty_input(self):
        assert aggregate_by_entity([]) == {}
