"""SQLAlchemy models for labadmin."""

from labadmin.models.audit_log import AuditAction, AuditLog
from labadmin.models.bulk_operation_log import (
    BulkOperationLog,
    BulkOperationType,
    OperationStatus,
)
from labadmin.models.lab_day import LabDay
from labadmin.models.lab_user import LabUser
from labadmin.models.shift import Shift
from labadmin.models.student import Student
from labadmin.models.student_internship import StudentInternship

__all__ = [
    "AuditAction",
    "AuditLog",
    "BulkOperationLog",
    "BulkOperationType",
    "LabDay",
    "LabUser",
    "OperationStatus",
    "Shift",
    "Student",
    "StudentInternship",
]
