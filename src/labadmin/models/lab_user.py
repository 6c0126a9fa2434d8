"""
LabUser model - program staff accounts.

Authentication is handled by the identity provider; this table holds the
role used for permission checks.
"""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from labadmin.db.base import BaseModel


class LabUser(BaseModel):
    """Staff member (instructor, admin, ...)."""

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    # superadmin, admin, lead_instructor, instructor, guest
    role: Mapped[str] = mapped_column(
        String(50),
        default="guest",
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<LabUser {self.email} ({self.role})>"
