"""Bulk operation service: preview, execute and list bulk record operations."""

from dataclasses import dataclass
from typing import Any, Optional
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy import delete, desc, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from labadmin.core.config import settings
from labadmin.core.exceptions import (
    ConfirmationRequiredError,
    InvalidParameterError,
    MissingParameterError,
    StorageFailureError,
    UnsupportedOperationError,
)
from labadmin.core.logging import get_logger
from labadmin.core.permissions import Actor
from labadmin.models.audit_log import AuditAction
from labadmin.models.bulk_operation_log import (
    BulkOperationLog,
    BulkOperationType,
    OperationStatus,
)
from labadmin.schemas.bulk_operation import (
    PARAMETER_MODELS,
    AssignCohortParams,
    BulkOperationRequest,
    DeleteParams,
    ExportParams,
    FilterCondition,
    OperationParams,
    UpdateStatusParams,
)
from labadmin.services.audit_service import AuditService
from labadmin.services.bulk_export import (
    build_export_filename,
    content_type_for,
    rows_to_csv,
    rows_to_json,
    to_jsonable,
)
from labadmin.services.bulk_query import count_matching, select_matching
from labadmin.services.bulk_tables import COHORT_FIELD, STATUS_FIELD, TableSpec, get_table_spec

logger = get_logger(__name__)


@dataclass
class PreviewResult:
    """Dry-run outcome."""

    total_matching: int
    preview: list[dict[str, Any]]


@dataclass
class ExecutionResult:
    """Outcome of an executed update, assign or delete."""

    operation_id: Optional[str]
    affected_count: int
    status: Optional[str]
    message: str


@dataclass
class ExportResult:
    """Rendered export file plus the log entry that records it."""

    operation_id: str
    affected_count: int
    content: bytes
    filename: str
    content_type: str


def parse_operation_parameters(
    operation: BulkOperationType,
    parameters: dict[str, Any],
) -> OperationParams:
    """
    Validate the free-form parameter map against the operation's model.

    Raises:
        MissingParameterError: If a required parameter is absent or blank
        ConfirmationRequiredError: If a delete carries anything but a literal true
        InvalidParameterError: If a parameter has the wrong type or value
    """
    model = PARAMETER_MODELS[operation]
    try:
        return model.model_validate(parameters)
    except ValidationError as e:
        error = e.errors()[0]
        parameter = str(error["loc"][0]) if error["loc"] else "parameters"
        if operation is BulkOperationType.DELETE_RECORDS and parameter == "confirmed":
            raise ConfirmationRequiredError() from None
        if error["type"] in ("missing", "string_too_short") or error.get("input") is None:
            raise MissingParameterError(operation.value, parameter) from None
        raise InvalidParameterError(
            operation.value, parameter, f"Invalid {parameter}: {error['msg']}"
        ) from None


class BulkOperationService:
    """Service for bulk operations over the registered target tables."""

    def __init__(self) -> None:
        self.audit = AuditService()

    # =========================================================================
    # Entry point
    # =========================================================================

    async def execute(
        self,
        db: AsyncSession,
        request: BulkOperationRequest,
        actor: Actor,
    ) -> PreviewResult | ExecutionResult | ExportResult:
        """Run a bulk operation request.

        Dry runs only read. Otherwise parameters and table support are checked
        before anything is written.

        Args:
            db: Database session
            request: Validated operation request
            actor: Staff member performing the operation

        Returns:
            PreviewResult for dry runs, ExportResult for exports,
            ExecutionResult for mutations

        Raises:
            BadRequestError subclasses: On invalid filters or parameters
            StorageFailureError: If the mutation could not be written

        """
        spec = get_table_spec(request.target_table)

        if not request.filters:
            logger.warning(
                "Bulk operation with no filters matches every row",
                extra={
                    "operation": request.operation.value,
                    "target_table": spec.name.value,
                    "user_email": actor.email,
                    "dry_run": request.dry_run,
                },
            )

        if request.dry_run:
            return await self.preview(db, spec, request.filters)

        params = parse_operation_parameters(request.operation, request.parameters)

        if isinstance(params, ExportParams):
            return await self._export(db, spec, request.filters, params, actor)

        field_name, new_value = self._resolve_change(spec, request.operation, params)
        return await self._mutate(
            db, spec, request.operation, request.filters, params, field_name, new_value, actor
        )

    # =========================================================================
    # Read paths
    # =========================================================================

    async def preview(
        self,
        db: AsyncSession,
        spec: TableSpec,
        filters: list[FilterCondition],
    ) -> PreviewResult:
        """Count matching rows and return the first few, ordered by primary key."""
        total = await db.scalar(count_matching(spec, filters)) or 0
        result = await db.execute(
            select_matching(spec, filters, limit=settings.bulk_preview_limit)
        )
        rows = [row.to_dict() for row in result.scalars().all()]

        return PreviewResult(total_matching=total, preview=to_jsonable(rows))

    async def list_operations(
        self,
        db: AsyncSession,
        limit: Optional[int] = None,
    ) -> list[BulkOperationLog]:
        """Get the most recent bulk operations, newest first.

        Args:
            db: Database session
            limit: Maximum number of entries; clamped to 1..bulk_history_max_limit

        Returns:
            Log entries

        """
        if limit is None:
            limit = settings.bulk_history_default_limit
        limit = max(1, min(limit, settings.bulk_history_max_limit))

        result = await db.execute(
            select(BulkOperationLog)
            .order_by(desc(BulkOperationLog.created_at), desc(BulkOperationLog.id))
            .limit(limit)
        )
        return list(result.scalars().all())

    # =========================================================================
    # Validation
    # =========================================================================

    def _resolve_change(
        self,
        spec: TableSpec,
        operation: BulkOperationType,
        params: OperationParams,
    ) -> tuple[Optional[str], Any]:
        """Check the operation against the table and return (field, new value).

        Delete returns ``(None, None)``.
        """
        table = spec.name.value

        if isinstance(params, UpdateStatusParams):
            if not spec.supports_update(STATUS_FIELD):
                raise UnsupportedOperationError(operation.value, table)
            if params.new_status not in spec.statuses:
                raise InvalidParameterError(
                    operation.value,
                    "new_status",
                    f"Invalid status '{params.new_status}' for {table}. "
                    f"Allowed: {', '.join(spec.statuses)}",
                )
            return STATUS_FIELD, params.new_status

        if isinstance(params, AssignCohortParams):
            if not spec.supports_update(COHORT_FIELD):
                raise UnsupportedOperationError(operation.value, table)
            try:
                cohort_id = str(UUID(params.cohort_id))
            except ValueError:
                raise InvalidParameterError(
                    operation.value, "cohort_id", "cohort_id must be a UUID"
                ) from None
            return COHORT_FIELD, cohort_id

        if isinstance(params, DeleteParams):
            if not params.confirmed:
                raise ConfirmationRequiredError()
            return None, None

        raise UnsupportedOperationError(operation.value, table)

    # =========================================================================
    # Write paths
    # =========================================================================

    async def _mutate(
        self,
        db: AsyncSession,
        spec: TableSpec,
        operation: BulkOperationType,
        filters: list[FilterCondition],
        params: OperationParams,
        field_name: Optional[str],
        new_value: Any,
        actor: Actor,
    ) -> ExecutionResult:
        table = spec.name.value
        result = await db.execute(select_matching(spec, filters))
        rows = list(result.scalars().all())

        if not rows:
            return ExecutionResult(
                operation_id=None,
                affected_count=0,
                status=None,
                message="No records matched the filters",
            )

        log = BulkOperationLog(
            operation_type=operation.value,
            target_table=table,
            status=OperationStatus.PENDING.value,
            performed_by=actor.email,
            affected_count=0,
        )
        log.set_filters([f.model_dump(mode="json") for f in filters])
        log.set_parameters(params.model_dump(mode="json"))
        db.add(log)
        await db.flush()

        log.status = OperationStatus.RUNNING.value

        pk = spec.primary_key
        ids = [getattr(row, pk) for row in rows]
        if field_name is None:
            snapshot = [row.to_dict() for row in rows]
        else:
            snapshot = [{pk: getattr(row, pk), field_name: getattr(row, field_name)} for row in rows]
        log.set_before_state(to_jsonable(snapshot))
        await db.flush()

        logger.info(
            "Executing bulk operation",
            extra={
                "operation_id": log.id,
                "operation": operation.value,
                "target_table": table,
                "matched": len(ids),
                "user_email": actor.email,
            },
        )

        try:
            async with db.begin_nested():
                if field_name is None:
                    stmt = delete(spec.model).where(spec.pk_column.in_(ids))
                else:
                    stmt = (
                        update(spec.model)
                        .where(spec.pk_column.in_(ids))
                        .values({field_name: new_value})
                    )
                outcome = await db.execute(stmt)
        except SQLAlchemyError as e:
            await self._mark_failed(db, log, e)
            raise StorageFailureError(operation_id=log.id, original_error=e) from e

        # some drivers report -1 when the count is unknown
        affected = outcome.rowcount if outcome.rowcount >= 0 else len(ids)
        log.status = OperationStatus.COMPLETED.value
        log.affected_count = affected
        await db.flush()

        message = self._success_message(operation, table, affected, new_value)
        logger.info(
            "Bulk operation completed",
            extra={"operation_id": log.id, "affected_count": affected},
        )

        await self.audit.log_event(
            db,
            actor,
            AuditAction.DELETE if field_name is None else AuditAction.UPDATE,
            resource_type=spec.resource_type,
            resource_id=log.id,
            resource_description=message,
            meta={
                "operation": operation.value,
                "target_table": table,
                "affected_count": affected,
                "filters": log.get_filters(),
                "parameters": log.get_parameters(),
            },
        )

        return ExecutionResult(
            operation_id=log.id,
            affected_count=affected,
            status=log.status,
            message=message,
        )

    async def _export(
        self,
        db: AsyncSession,
        spec: TableSpec,
        filters: list[FilterCondition],
        params: ExportParams,
        actor: Actor,
    ) -> ExportResult:
        table = spec.name.value
        result = await db.execute(select_matching(spec, filters))
        rows = to_jsonable([row.to_dict() for row in result.scalars().all()])
        filter_dicts = [f.model_dump(mode="json") for f in filters]

        if params.format == "csv":
            columns = [column.name for column in spec.model.__table__.columns]
            content = rows_to_csv(rows, columns)
        else:
            content = rows_to_json(
                rows, table=table, exported_by=actor.email, filters=filter_dicts
            )

        log = BulkOperationLog(
            operation_type=BulkOperationType.EXPORT_RECORDS.value,
            target_table=table,
            status=OperationStatus.COMPLETED.value,
            performed_by=actor.email,
            affected_count=len(rows),
        )
        log.set_filters(filter_dicts)
        log.set_parameters(params.model_dump(mode="json"))
        db.add(log)
        await db.flush()

        logger.info(
            "Bulk export completed",
            extra={
                "operation_id": log.id,
                "target_table": table,
                "format": params.format,
                "affected_count": len(rows),
                "user_email": actor.email,
            },
        )

        await self.audit.log_event(
            db,
            actor,
            AuditAction.EXPORT,
            resource_type=spec.resource_type,
            resource_id=log.id,
            resource_description=f"Exported {len(rows)} {table} as {params.format}",
            meta={"format": params.format, "record_count": len(rows), "filters": filter_dicts},
        )

        return ExportResult(
            operation_id=log.id,
            affected_count=len(rows),
            content=content,
            filename=build_export_filename(table, params.format),
            content_type=content_type_for(params.format),
        )

    async def _mark_failed(
        self,
        db: AsyncSession,
        log: BulkOperationLog,
        error: SQLAlchemyError,
    ) -> None:
        logger.error(
            f"Bulk operation failed: {error}",
            extra={"operation_id": log.id, "target_table": log.target_table},
        )
        log.status = OperationStatus.FAILED.value
        log.error_message = str(error)[:2000]
        try:
            await db.flush()
        except SQLAlchemyError as flush_error:
            logger.error(
                f"Could not record failure for bulk operation: {flush_error}",
                extra={"operation_id": log.id},
            )

    @staticmethod
    def _success_message(
        operation: BulkOperationType,
        table: str,
        affected: int,
        new_value: Any,
    ) -> str:
        if operation is BulkOperationType.UPDATE_STATUS:
            return f"Updated status to '{new_value}' for {affected} {table} records"
        if operation is BulkOperationType.ASSIGN_COHORT:
            return f"Assigned {affected} {table} records to cohort {new_value}"
        return f"Deleted {affected} {table} records"
