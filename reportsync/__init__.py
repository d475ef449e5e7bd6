"""Incremental spreadsheet report aggregation service."""
