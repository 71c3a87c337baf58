"""Dining table model."""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from qrorder.db.base import Base

TABLE_STATUSES = ("available", "occupied", "reserved", "disabled")


class DiningTable(Base):
    """Physical table with its QR ordering entry point."""

    __tablename__ = "tables"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    # Nullable so legacy rows without a number can be repaired by renumbering.
    table_number: Mapped[str | None] = mapped_column(String(32), nullable=True, unique=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="available")
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    qr_code_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
