"""
Audit log model.

Append-only trail of privileged actions (who did what to which resource).
"""

from enum import Enum

from sqlalchemy import Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from labadmin.db.base import BaseModel


class AuditAction(str, Enum):
    """Types of auditable actions."""

    VIEW = "view"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    EXPORT = "export"


class AuditLog(BaseModel):
    """Audit log entry for a privileged action."""

    # Actor information, denormalized for historical accuracy
    user_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        nullable=True,
        index=True,
    )
    user_email: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        index=True,
    )
    user_role: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )

    action: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )
    resource_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )  # e.g. "student_list"
    resource_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    resource_description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    # Request context
    ip_address: Mapped[str | None] = mapped_column(
        String(45),  # IPv6 max length
        nullable=True,
    )
    user_agent: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    # Additional context (JSON)
    meta: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        default="{}",
    )

    __table_args__ = (
        Index("ix_audit_logs_resource", "resource_type", "resource_id"),
        Index("ix_audit_logs_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} on {self.resource_type} by {self.user_email}>"
