"""Pydantic schemas for labadmin API."""

from labadmin.schemas.bulk_operation import (
    BulkExecuteResponse,
    BulkOperationRequest,
    BulkPreviewResponse,
    FilterCondition,
    FilterOperator,
    OperationHistoryResponse,
    OperationLogResponse,
    RollbackResponse,
    TargetTable,
)

__all__ = [
    "BulkExecuteResponse",
    "BulkOperationRequest",
    "BulkPreviewResponse",
    "FilterCondition",
    "FilterOperator",
    "OperationHistoryResponse",
    "OperationLogResponse",
    "RollbackResponse",
    "TargetTable",
]
