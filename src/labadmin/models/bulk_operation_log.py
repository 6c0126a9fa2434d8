"""
BulkOperationLog model - history of executed bulk operations.

The log is the only record of what a bulk mutation changed. Target table rows
carry no reference back to it; the before-state snapshot is the durable link
used by rollback.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from labadmin.db.base import BaseModel


class BulkOperationType(str, Enum):
    """Kinds of bulk operation."""

    UPDATE_STATUS = "update_status"
    ASSIGN_COHORT = "assign_cohort"
    DELETE_RECORDS = "delete_records"
    EXPORT_RECORDS = "export_records"


# Deletion is permanent and export changes nothing, so only field updates reverse.
ROLLBACKABLE_OPERATIONS = frozenset(
    {BulkOperationType.UPDATE_STATUS.value, BulkOperationType.ASSIGN_COHORT.value}
)


class OperationStatus(str, Enum):
    """Lifecycle of a log entry."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    ROLLED_BACK = "rolled_back"


class BulkOperationLog(BaseModel):
    """
    One executed bulk operation.

    Lifecycle: pending -> running -> completed | failed, and
    completed -> rolled_back once for update_status / assign_cohort.
    """

    operation_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )
    target_table: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    affected_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=OperationStatus.PENDING.value,
        nullable=False,
        index=True,
    )
    performed_by: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # JSON stored as text
    filters: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="[]",
    )
    parameters: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="{}",
    )
    # List of row snapshots: {"id": ..., <field>: <prior value>} for updates,
    # full rows for deletes. NULL for exports.
    before_state: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        default=None,
    )

    error_message: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    rolled_back_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    rolled_back_by: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_bulk_operation_logs_created", "created_at"),
        Index("ix_bulk_operation_logs_table_type", "target_table", "operation_type"),
    )

    def __repr__(self) -> str:
        return (
            f"<BulkOperationLog {self.id}: {self.operation_type} on "
            f"{self.target_table} ({self.status})>"
        )

    @property
    def is_rollbackable(self) -> bool:
        """Whether rollback is currently allowed for this entry."""
        return (
            self.operation_type in ROLLBACKABLE_OPERATIONS
            and self.status == OperationStatus.COMPLETED.value
        )

    def get_filters(self) -> list[dict[str, Any]]:
        return _load_json(self.filters, [])

    def set_filters(self, filters: list[dict[str, Any]]) -> None:
        self.filters = json.dumps(filters)

    def get_parameters(self) -> dict[str, Any]:
        return _load_json(self.parameters, {})

    def set_parameters(self, parameters: dict[str, Any]) -> None:
        self.parameters = json.dumps(parameters)

    def get_before_state(self) -> list[dict[str, Any]] | None:
        """
        Get the before-state snapshot.

        Returns:
            List of row snapshots, or None when nothing was captured
        """
        return _load_json(self.before_state, None)

    def set_before_state(self, rows: list[dict[str, Any]] | None) -> None:
        """
        Store the before-state snapshot.

        Args:
            rows: JSON-compatible row snapshots
        """
        self.before_state = json.dumps(rows) if rows is not None else None


def _load_json(raw: str | None, default: Any) -> Any:
    try:
        return json.loads(raw) if raw else default
    except (json.JSONDecodeError, TypeError):
        return default
