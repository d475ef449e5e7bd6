"""Per-entity aggregation of raw source rows."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Sequence

from reportsync.reporting.config import LAST_HEADER_ROW_INDEX, NAME_COL
from reportsync.reporting.records import EntityTotals, RawRow

logger = logging.getLogger(__name__)


def aggregate_by_entity(
    rows: Sequence[Sequence[Any]],
    target_date: date | None = None,
) -> dict[str, EntityTotals]:
    """Group source rows by entity name and sum their metrics.

    Header rows and rows without an entity name are skipped. Entities whose
    four totals are all zero are dropped. The result keeps first-seen order.

    ``target_date`` is accepted for the report date but rows are not filtered
    by it: every row in the source contributes.

    Raises:
        SchemaMismatchError: If a named data row is narrower than the layout.
    """
    entities: dict[str, EntityTotals] = {}
    for index, cells in enumerate(rows):
        if index <= LAST_HEADER_ROW_INDEX:
            continue
        name = cells[NAME_COL] if len(cells) > NAME_COL else None
        if name is None or name == "":
            continue

        row = RawRow.from_cells(cells, row_number=index + 1)
        totals = entities.get(row.name)
        if totals is None:
            totals = EntityTotals(name=row.name)
            entities[row.name] = totals
        totals.add(row)

    dropped = [name for name, totals in entities.items() if totals.is_empty()]
    for name in dropped:
        del entities[name]

    logger.debug(
        "Aggregated %d rows into %d entities (%d all-zero dropped) for %s",
        len(rows), len(entities), len(dropped), target_date,
    )
    return entities
