"""Bulk operation schemas for request/response validation."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, StrictBool, StringConstraints, field_validator, model_validator

from labadmin.models.bulk_operation_log import BulkOperationType


class TargetTable(str, Enum):
    """Tables that bulk operations may target."""

    STUDENTS = "students"
    LAB_DAYS = "lab_days"
    SHIFTS = "shifts"
    LAB_USERS = "lab_users"
    STUDENT_INTERNSHIPS = "student_internships"


class FilterOperator(str, Enum):
    """Comparison applied by a filter condition."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    IN_LIST = "in_list"


# --- Request Schemas ---


class FilterCondition(BaseModel):
    """
    A single ``field <operator> value`` condition.

    Conditions in a request are AND-combined. ``value`` is a string; for
    ``in_list`` it may be a comma-separated string or a list of strings.
    """

    field: str = Field(..., min_length=1, description="Column to filter on")
    operator: FilterOperator = Field(..., description="Comparison operator")
    value: Union[str, list[str]] = Field("", description="Value to compare against")

    @field_validator("value", mode="before")
    @classmethod
    def stringify_scalars(cls, v: Any) -> Any:
        """Accept JSON numbers and booleans from the client as strings."""
        if isinstance(v, bool):
            return "true" if v else "false"
        if isinstance(v, (int, float)):
            return str(v)
        if isinstance(v, list):
            return [str(item).lower() if isinstance(item, bool) else str(item) for item in v]
        return v

    @model_validator(mode="after")
    def list_only_for_in_list(self) -> "FilterCondition":
        if isinstance(self.value, list) and self.operator != FilterOperator.IN_LIST:
            raise ValueError("A list value is only allowed with the in_list operator")
        return self


class BulkOperationRequest(BaseModel):
    """Schema for executing or previewing a bulk operation."""

    operation: BulkOperationType = Field(..., description="Operation to perform")
    target_table: TargetTable = Field(..., description="Table the operation applies to")
    filters: list[FilterCondition] = Field(
        default_factory=list, description="AND-combined conditions; empty matches every row"
    )
    parameters: dict[str, Any] = Field(
        default_factory=dict, description="Operation-specific parameters"
    )
    dry_run: bool = Field(False, description="Preview matching rows without changing anything")


# --- Operation parameters (one model per operation kind) ---

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class UpdateStatusParams(BaseModel):
    """Parameters for update_status."""

    new_status: NonEmptyStr


class AssignCohortParams(BaseModel):
    """Parameters for assign_cohort."""

    cohort_id: NonEmptyStr


class DeleteParams(BaseModel):
    """Parameters for delete_records."""

    confirmed: StrictBool = False


class ExportParams(BaseModel):
    """Parameters for export_records."""

    format: Literal["csv", "json"] = "csv"


OperationParams = Union[UpdateStatusParams, AssignCohortParams, DeleteParams, ExportParams]

PARAMETER_MODELS: dict[BulkOperationType, type[BaseModel]] = {
    BulkOperationType.UPDATE_STATUS: UpdateStatusParams,
    BulkOperationType.ASSIGN_COHORT: AssignCohortParams,
    BulkOperationType.DELETE_RECORDS: DeleteParams,
    BulkOperationType.EXPORT_RECORDS: ExportParams,
}


# --- Response Schemas ---


class BulkPreviewResponse(BaseModel):
    """Dry-run result: how many rows match and a sample of them."""

    success: bool = True
    dry_run: bool = True
    total_matching: int
    affected_count: int
    preview: list[dict[str, Any]]


class BulkExecuteResponse(BaseModel):
    """Result of an executed update or delete."""

    success: bool = True
    operation_id: Optional[str] = None
    affected_count: int
    status: Optional[str] = None
    message: str


class OperationLogResponse(BaseModel):
    """Schema for a bulk operation history entry."""

    id: str
    operation_type: str
    target_table: str
    affected_count: int
    filters: list[dict[str, Any]]
    parameters: dict[str, Any]
    before_state: Optional[list[dict[str, Any]]]
    status: str
    performed_by: str
    error_message: Optional[str] = None
    rolled_back_at: Optional[datetime] = None
    rolled_back_by: Optional[str] = None
    is_rollbackable: bool = False
    created_at: datetime
    updated_at: datetime


class OperationHistoryResponse(BaseModel):
    """Schema for the bulk operation history list."""

    success: bool = True
    operations: list[OperationLogResponse]


class RollbackResponse(BaseModel):
    """Result of rolling back an operation."""

    success: bool = True
    operation_id: str
    restored_count: int
    message: str
