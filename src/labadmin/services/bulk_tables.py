"""
Registry of tables reachable by bulk operations.

Each table declares its primary key, the columns that may appear in a filter
(with the kind of value they hold), the columns bulk updates may write, and
the status vocabulary accepted by ``update_status``. Nothing outside this
registry can be filtered or written.
"""

from dataclasses import dataclass
from enum import Enum

from sqlalchemy.orm import InstrumentedAttribute

from labadmin.db.base import BaseModel
from labadmin.models import LabDay, LabUser, Shift, Student, StudentInternship
from labadmin.schemas.bulk_operation import TargetTable


class FieldKind(str, Enum):
    """Value kind of a filterable column; decides coercion and allowed operators."""

    TEXT = "text"
    IDENTIFIER = "identifier"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"

    @property
    def is_orderable(self) -> bool:
        return self in (FieldKind.NUMBER, FieldKind.DATE, FieldKind.DATETIME)

    @property
    def is_text(self) -> bool:
        return self is FieldKind.TEXT


STATUS_FIELD = "status"
COHORT_FIELD = "cohort_id"


@dataclass(frozen=True)
class TableSpec:
    """Bulk-operation contract for one table."""

    name: TargetTable
    model: type[BaseModel]
    filter_fields: dict[str, FieldKind]
    update_fields: frozenset[str] = frozenset()
    statuses: tuple[str, ...] = ()
    primary_key: str = "id"
    resource_type: str = "record"

    @property
    def pk_column(self) -> InstrumentedAttribute:
        return getattr(self.model, self.primary_key)

    def column(self, field_name: str) -> InstrumentedAttribute:
        return getattr(self.model, field_name)

    def supports_update(self, field_name: str) -> bool:
        return field_name in self.update_fields


TABLE_SPECS: dict[TargetTable, TableSpec] = {
    TargetTable.STUDENTS: TableSpec(
        name=TargetTable.STUDENTS,
        model=Student,
        filter_fields={
            "status": FieldKind.TEXT,
            "cohort_id": FieldKind.IDENTIFIER,
            "agency": FieldKind.TEXT,
            "created_at": FieldKind.DATETIME,
            "first_name": FieldKind.TEXT,
            "last_name": FieldKind.TEXT,
        },
        update_fields=frozenset({STATUS_FIELD, COHORT_FIELD}),
        statuses=("active", "inactive", "withdrawn", "graduated", "on_leave", "remediation"),
        resource_type="student_list",
    ),
    TargetTable.LAB_DAYS: TableSpec(
        name=TargetTable.LAB_DAYS,
        model=LabDay,
        filter_fields={
            "is_active": FieldKind.BOOLEAN,
            "cohort_id": FieldKind.IDENTIFIER,
            "date": FieldKind.DATE,
            "created_at": FieldKind.DATETIME,
        },
        update_fields=frozenset({COHORT_FIELD}),
        resource_type="lab_day",
    ),
    TargetTable.SHIFTS: TableSpec(
        name=TargetTable.SHIFTS,
        model=Shift,
        filter_fields={
            "status": FieldKind.TEXT,
            "department": FieldKind.TEXT,
            "date": FieldKind.DATE,
            "created_at": FieldKind.DATETIME,
            "instructor_id": FieldKind.IDENTIFIER,
        },
        update_fields=frozenset({STATUS_FIELD}),
        statuses=("open", "filled", "cancelled"),
        resource_type="shift",
    ),
    TargetTable.LAB_USERS: TableSpec(
        name=TargetTable.LAB_USERS,
        model=LabUser,
        filter_fields={
            "role": FieldKind.TEXT,
            "is_active": FieldKind.BOOLEAN,
            "created_at": FieldKind.DATETIME,
            "email": FieldKind.TEXT,
        },
        resource_type="user",
    ),
    TargetTable.STUDENT_INTERNSHIPS: TableSpec(
        name=TargetTable.STUDENT_INTERNSHIPS,
        model=StudentInternship,
        filter_fields={
            "status": FieldKind.TEXT,
            "cohort_id": FieldKind.IDENTIFIER,
            "current_phase": FieldKind.TEXT,
            "created_at": FieldKind.DATETIME,
        },
        update_fields=frozenset({STATUS_FIELD}),
        statuses=("pending", "active", "completed", "withdrawn"),
        resource_type="internship",
    ),
}


def get_table_spec(table: TargetTable | str) -> TableSpec:
    """
    Look up the contract for a target table.

    Args:
        table: Target table enum member or its name

    Returns:
        The table's spec

    Raises:
        ValueError: If the name is not a bulk-operation target
    """
    return TABLE_SPECS[TargetTable(table)]
