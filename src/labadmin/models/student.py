"""
Student model - enrolled paramedic/EMT students.

Students belong to a cohort and carry an enrollment status.
"""

from sqlalchemy import Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from labadmin.db.base import BaseModel


class Student(BaseModel):
    """Student enrolled in the program."""

    first_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    last_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    email: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    # Sponsoring agency (fire department, ambulance service, ...)
    agency: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    # active, inactive, withdrawn, graduated, on_leave, remediation
    status: Mapped[str] = mapped_column(
        String(50),
        default="active",
        nullable=False,
        index=True,
    )
    cohort_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        nullable=True,
        index=True,
    )

    __table_args__ = (Index("ix_students_name", "last_name", "first_name"),)

    def __repr__(self) -> str:
        return f"<Student {self.first_name} {self.last_name} ({self.status})>"
