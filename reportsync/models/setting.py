from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from reportsync.models.base import Base


class Setting(Base):
    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    # JSON-encoded for structured entries (e.g. report URL pairs)
    value: Mapped[str] = mapped_column(Text, nullable=False)
