"""Shift model - part-time instructor shifts."""

import datetime

from sqlalchemy import Date, Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from labadmin.db.base import BaseModel


class Shift(BaseModel):
    """An open or filled instructor shift."""

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    date: Mapped[datetime.date] = mapped_column(
        Date,
        nullable=False,
    )
    department: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )
    # open, filled, cancelled
    status: Mapped[str] = mapped_column(
        String(50),
        default="open",
        nullable=False,
    )
    instructor_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        nullable=True,
        index=True,
    )

    __table_args__ = (Index("ix_shifts_date_status", "date", "status"),)

    def __repr__(self) -> str:
        return f"<Shift {self.title} on {self.date} ({self.status})>"
