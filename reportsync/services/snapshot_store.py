"""Persistence of the per-pair snapshot used for change detection."""

import json
import logging
from datetime import datetime, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from reportsync.models.report_snapshot import ReportSnapshot
from reportsync.reporting.records import EntityTotals, PairSnapshot

logger = logging.getLogger(__name__)


def _to_pair_snapshot(row: ReportSnapshot) -> PairSnapshot:
    return PairSnapshot(
        pair_index=row.pair_index,
        data_url=row.data_url,
        report_url=row.report_url,
        roster=json.loads(row.roster_json),
        entities=json.loads(row.entities_json),
        saved_at=row.saved_at,
    )


class SnapshotStore:
    """Snapshot repository keyed by pair index.

    The whole snapshot is replaced on every save; entries are never merged.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_last(self, pair_index: int) -> dict[str, EntityTotals] | None:
        """Previous per-entity totals of one pair, or None if never saved."""
        row = await self.db.get(ReportSnapshot, pair_index)
        if row is None:
            return None
        snapshot = _to_pair_snapshot(row)
        return {
            name: EntityTotals.from_snapshot(name, data)
            for name, data in snapshot.entities.items()
        }

    async def get_all(self) -> dict[int, PairSnapshot]:
        result = await self.db.execute(
            select(ReportSnapshot).order_by(ReportSnapshot.pair_index)
        )
        return {row.pair_index: _to_pair_snapshot(row) for row in result.scalars().all()}

    async def save_all(self, snapshot: dict[int, PairSnapshot]) -> None:
        saved_at = datetime.now(timezone.utc)
        await self.db.execute(delete(ReportSnapshot))
        for pair_index, pair in sorted(snapshot.items()):
            self.db.add(
                ReportSnapshot(
                    pair_index=pair_index,
                    data_url=pair.data_url,
                    report_url=pair.report_url,
                    roster_json=json.dumps(pair.roster, ensure_ascii=False),
                    entities_json=json.dumps(pair.entities, ensure_ascii=False),
                    saved_at=saved_at,
                )
            )
        await self.db.commit()
        logger.info("Saved snapshot for %d pairs", len(snapshot))

    async def last_saved_at(self) -> datetime | None:
        result = await self.db.execute(select(func.max(ReportSnapshot.saved_at)))
        return result.scalar()
