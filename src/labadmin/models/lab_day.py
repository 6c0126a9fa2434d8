"""LabDay model - a scheduled skills lab for a cohort."""

import datetime

from sqlalchemy import Boolean, Date, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from labadmin.db.base import BaseModel


class LabDay(BaseModel):
    """A lab session on a given date."""

    date: Mapped[datetime.date] = mapped_column(
        Date,
        nullable=False,
        index=True,
    )
    title: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    cohort_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        nullable=True,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<LabDay {self.date} {self.title or ''}>"
