"""StudentInternship model - field internship placement of a student."""

from sqlalchemy import ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from labadmin.db.base import BaseModel


class StudentInternship(BaseModel):
    """Internship record tracking a student's clinical phase."""

    student_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    cohort_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        nullable=True,
        index=True,
    )
    agency_name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    # pending, active, completed, withdrawn
    status: Mapped[str] = mapped_column(
        String(50),
        default="pending",
        nullable=False,
    )
    current_phase: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<StudentInternship {self.student_id} ({self.status})>"
