"""
Bulk operation endpoints.

Preview, execute, export and roll back operations over many records at once.
Admin access is required for every endpoint.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status

from labadmin.api.deps import CurrentAdmin, DbSession
from labadmin.core.config import settings
from labadmin.core.exceptions import StorageFailureError
from labadmin.core.logging import get_logger
from labadmin.models.bulk_operation_log import BulkOperationLog
from labadmin.schemas.bulk_operation import (
    BulkExecuteResponse,
    BulkOperationRequest,
    BulkPreviewResponse,
    OperationHistoryResponse,
    OperationLogResponse,
    RollbackResponse,
)
from labadmin.services.bulk_operations import (
    BulkOperationService,
    ExportResult,
    PreviewResult,
)
from labadmin.services.bulk_rollback import BulkRollbackService

logger = get_logger(__name__)

router = APIRouter()

# =============================================================================
# Dependencies
# =============================================================================


def get_bulk_operation_service() -> BulkOperationService:
    """Get bulk operation service instance."""
    return BulkOperationService()


def get_bulk_rollback_service() -> BulkRollbackService:
    """Get bulk rollback service instance."""
    return BulkRollbackService()


def _log_response(log: BulkOperationLog) -> OperationLogResponse:
    return OperationLogResponse(
        id=str(log.id),
        operation_type=log.operation_type,
        target_table=log.target_table,
        affected_count=log.affected_count,
        filters=log.get_filters(),
        parameters=log.get_parameters(),
        before_state=log.get_before_state(),
        status=log.status,
        performed_by=log.performed_by,
        error_message=log.error_message,
        rolled_back_at=log.rolled_back_at,
        rolled_back_by=log.rolled_back_by,
        is_rollbackable=log.is_rollbackable,
        created_at=log.created_at,
        updated_at=log.updated_at,
    )


# =============================================================================
# Endpoints
# =============================================================================


@router.post(
    "/bulk-operations",
    response_model=None,
    status_code=status.HTTP_200_OK,
)
async def run_bulk_operation(
    request: BulkOperationRequest,
    db: DbSession,
    current_admin: CurrentAdmin,
    service: Annotated[BulkOperationService, Depends(get_bulk_operation_service)],
) -> BulkPreviewResponse | BulkExecuteResponse | Response:
    """
    Preview or execute a bulk operation.

    With ``dry_run`` the matching rows are counted and sampled. Exports are
    returned as a file download; updates and deletes return the log entry ID.
    """
    try:
        result = await service.execute(db, request, current_admin)
    except StorageFailureError:
        # Keep the failed log entry; the mutation itself was rolled back.
        await db.commit()
        raise

    if isinstance(result, PreviewResult):
        return BulkPreviewResponse(
            total_matching=result.total_matching,
            affected_count=result.total_matching,
            preview=result.preview,
        )

    if isinstance(result, ExportResult):
        return Response(
            content=result.content,
            media_type=result.content_type,
            headers={
                "Content-Disposition": f'attachment; filename="{result.filename}"',
                "X-Operation-Id": result.operation_id,
                "X-Affected-Count": str(result.affected_count),
            },
        )

    return BulkExecuteResponse(
        operation_id=result.operation_id,
        affected_count=result.affected_count,
        status=result.status,
        message=result.message,
    )


@router.get(
    "/bulk-operations",
    response_model=OperationHistoryResponse,
)
async def list_bulk_operations(
    db: DbSession,
    current_admin: CurrentAdmin,
    service: Annotated[BulkOperationService, Depends(get_bulk_operation_service)],
    limit: Annotated[int, Query()] = settings.bulk_history_default_limit,
) -> OperationHistoryResponse:
    """
    List recent bulk operations, newest first.

    ``limit`` is clamped to the configured maximum.
    """
    operations = await service.list_operations(db, limit=limit)
    return OperationHistoryResponse(operations=[_log_response(op) for op in operations])


@router.post(
    "/bulk-operations/{operation_id}/rollback",
    response_model=RollbackResponse,
)
async def rollback_bulk_operation(
    operation_id: str,
    db: DbSession,
    current_admin: CurrentAdmin,
    service: Annotated[BulkRollbackService, Depends(get_bulk_rollback_service)],
) -> RollbackResponse:
    """
    Roll back a completed status update or cohort assignment.

    Deletes and exports cannot be rolled back.
    """
    result = await service.rollback(db, operation_id, current_admin)
    return RollbackResponse(
        operation_id=result.operation_id,
        restored_count=result.restored_count,
        message=result.message,
    )
