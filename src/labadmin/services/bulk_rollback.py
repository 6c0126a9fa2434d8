"""Rollback of completed bulk field updates from their before-state snapshot."""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from labadmin.core.exceptions import (
    AlreadyRolledBackError,
    NotRollbackableError,
    OperationNotFoundError,
    StorageFailureError,
)
from labadmin.core.logging import get_logger
from labadmin.core.permissions import Actor
from labadmin.db.base import utc_now
from labadmin.models.audit_log import AuditAction
from labadmin.models.bulk_operation_log import (
    ROLLBACKABLE_OPERATIONS,
    BulkOperationLog,
    OperationStatus,
)
from labadmin.services.audit_service import AuditService
from labadmin.services.bulk_tables import get_table_spec

logger = get_logger(__name__)


@dataclass
class RollbackResult:
    operation_id: str
    restored_count: int
    message: str


class BulkRollbackService:
    """Service for reversing bulk status and cohort updates."""

    def __init__(self) -> None:
        self.audit = AuditService()

    async def get_operation(self, db: AsyncSession, operation_id: str) -> BulkOperationLog:
        """Load a log entry or raise OperationNotFoundError."""
        try:
            UUID(operation_id)
        except ValueError:
            raise OperationNotFoundError(operation_id) from None

        log = await db.get(BulkOperationLog, operation_id)
        if log is None:
            raise OperationNotFoundError(operation_id)
        return log

    async def rollback(
        self,
        db: AsyncSession,
        operation_id: str,
        actor: Actor,
    ) -> RollbackResult:
        """Restore every snapshotted field of a completed update.

        The entry is claimed with a conditional status update first, so of two
        concurrent rollbacks only one proceeds. Restores are not retried; a
        storage error aborts the whole request transaction, claim included.

        Args:
            db: Database session
            operation_id: Log entry ID
            actor: Staff member requesting the rollback

        Returns:
            RollbackResult with the number of rows restored

        Raises:
            OperationNotFoundError: If the entry does not exist
            NotRollbackableError: If the kind, state or snapshot forbids it
            AlreadyRolledBackError: If the entry was already rolled back
            StorageFailureError: If a restore write fails

        """
        log = await self.get_operation(db, operation_id)

        if not log.is_rollbackable:
            if log.operation_type not in ROLLBACKABLE_OPERATIONS:
                raise NotRollbackableError(
                    operation_id,
                    f"{log.operation_type} operations cannot be rolled back",
                )
            if log.status == OperationStatus.ROLLED_BACK.value:
                raise AlreadyRolledBackError(operation_id)
            raise NotRollbackableError(
                operation_id,
                f"Only completed operations can be rolled back (status is {log.status})",
            )

        snapshot = log.get_before_state()
        if not snapshot:
            raise NotRollbackableError(operation_id, "No before-state was captured for this operation")

        spec = get_table_spec(log.target_table)
        pk = spec.primary_key

        try:
            claim = await db.execute(
                update(BulkOperationLog)
                .where(
                    BulkOperationLog.id == log.id,
                    BulkOperationLog.status == OperationStatus.COMPLETED.value,
                )
                .values(
                    status=OperationStatus.ROLLED_BACK.value,
                    rolled_back_at=utc_now(),
                    rolled_back_by=actor.email,
                )
            )
            if claim.rowcount == 0:
                raise AlreadyRolledBackError(operation_id)

            restored = 0
            for row in snapshot:
                values = {
                    field_name: value
                    for field_name, value in row.items()
                    if field_name != pk and spec.supports_update(field_name)
                }
                if not values:
                    continue
                result = await db.execute(
                    update(spec.model).where(spec.pk_column == row[pk]).values(values)
                )
                restored += max(result.rowcount, 0)
        except SQLAlchemyError as e:
            logger.error(
                f"Rollback of bulk operation failed: {e}",
                extra={"operation_id": operation_id, "target_table": log.target_table},
            )
            raise StorageFailureError(operation_id=operation_id, original_error=e) from e

        table = spec.name.value
        message = f"Rolled back {log.operation_type}: restored {restored} {table} records"
        logger.info(
            "Bulk operation rolled back",
            extra={
                "operation_id": operation_id,
                "restored_count": restored,
                "user_email": actor.email,
            },
        )

        await self.audit.log_event(
            db,
            actor,
            AuditAction.UPDATE,
            resource_type=spec.resource_type,
            resource_id=operation_id,
            resource_description=message,
            meta={
                "rollback_of": operation_id,
                "operation": log.operation_type,
                "target_table": table,
                "restored_count": restored,
            },
        )

        return RollbackResult(operation_id=operation_id, restored_count=restored, message=message)
