from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from reportsync.models.base import Base


class ReportSnapshot(Base):
    """Last persisted per-entity totals of one source/report pair."""

    __tablename__ = "report_snapshots"

    pair_index: Mapped[int] = mapped_column(Integer, primary_key=True)
    data_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    report_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    roster_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    entities_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    saved_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
