"""Service layer modules."""

from labadmin.services.audit_service import AuditService
from labadmin.services.bulk_operations import BulkOperationService
from labadmin.services.bulk_rollback import BulkRollbackService

__all__ = [
    "AuditService",
    "BulkOperationService",
    "BulkRollbackService",
]
