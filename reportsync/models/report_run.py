import enum
from datetime import date, datetime, timezone

from sqlalchemy import Date, DateTime, Enum, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from reportsync.models.base import Base


class RunStatus(str, enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"


class ReportRun(Base):
    __tablename__ = "report_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    report_date: Mapped[date] = mapped_column(Date, nullable=False)
    pair_index: Mapped[int] = mapped_column(Integer, nullable=False)
    report_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    status: Mapped[RunStatus] = mapped_column(Enum(RunStatus), nullable=False)
    stores_processed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    changed_stores: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_spend: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_benefit: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    start_column: Mapped[str | None] = mapped_column(String(10), nullable=True)
    error_message: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
