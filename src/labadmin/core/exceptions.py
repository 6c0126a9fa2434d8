"""
Custom exceptions for labadmin.

Every error carries an HTTP status code, a machine-readable code and
structured details so the API layer can render it without special cases.
"""

from typing import Any


class LabAdminException(Exception):
    """
    Base exception for all labadmin errors.

    All custom exceptions should inherit from this class.
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
            details: Additional error details
        """
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API response."""
        return {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            },
        }


# =============================================================================
# HTTP 400 - Bad Request Errors
# =============================================================================


class BadRequestError(LabAdminException):
    """Invalid request parameters or payload."""

    status_code = 400


class UnknownFieldError(BadRequestError):
    """Filter references a column outside the table's allow-list."""

    def __init__(self, table: str, field_name: str) -> None:
        super().__init__(
            message=f"Field '{field_name}' cannot be used to filter {table}",
            code="UNKNOWN_FIELD",
            details={"table": table, "field": field_name},
        )


class InvalidOperatorForFieldError(BadRequestError):
    """Operator cannot be applied to the field's kind."""

    def __init__(self, field_name: str, operator: str, field_kind: str) -> None:
        super().__init__(
            message=f"Operator '{operator}' cannot be used on {field_kind} field '{field_name}'",
            code="INVALID_OPERATOR_FOR_FIELD",
            details={"field": field_name, "operator": operator, "field_kind": field_kind},
        )


class InvalidFilterValueError(BadRequestError):
    """Filter value cannot be converted to the field's native type."""

    def __init__(self, field_name: str, value: Any, expected: str) -> None:
        super().__init__(
            message=f"Invalid value for field '{field_name}'. Expected {expected}.",
            code="INVALID_FILTER_VALUE",
            details={"field": field_name, "value": str(value)[:100], "expected": expected},
        )


class MissingParameterError(BadRequestError):
    """Required operation parameter is missing or empty."""

    def __init__(self, operation: str, parameter: str) -> None:
        super().__init__(
            message=f"{parameter} parameter is required for {operation} operation",
            code="MISSING_PARAMETER",
            details={"operation": operation, "parameter": parameter},
        )


class InvalidParameterError(BadRequestError):
    """Operation parameter is present but not acceptable."""

    def __init__(self, operation: str, parameter: str, message: str) -> None:
        super().__init__(
            message=message,
            code="INVALID_PARAMETER",
            details={"operation": operation, "parameter": parameter},
        )


class UnsupportedOperationError(BadRequestError):
    """Operation kind is not available for the target table."""

    def __init__(self, operation: str, table: str) -> None:
        super().__init__(
            message=f"Table '{table}' does not support {operation}",
            code="UNSUPPORTED_OPERATION",
            details={"operation": operation, "table": table},
        )


class ConfirmationRequiredError(BadRequestError):
    """Destructive operation submitted without explicit confirmation."""

    def __init__(self) -> None:
        super().__init__(
            message="confirmed parameter must be true to delete records",
            code="CONFIRMATION_REQUIRED",
        )


# =============================================================================
# HTTP 401 - Authentication Errors
# =============================================================================


class AuthenticationError(LabAdminException):
    """Authentication failed."""

    status_code = 401

    def __init__(
        self,
        message: str = "Authentication required",
        code: str = "AUTHENTICATION_REQUIRED",
    ) -> None:
        super().__init__(message=message, code=code)


class InvalidTokenError(AuthenticationError):
    """Session token is invalid or expired."""

    def __init__(self) -> None:
        super().__init__(message="Invalid or expired token", code="INVALID_TOKEN")


# =============================================================================
# HTTP 403 - Authorization Errors
# =============================================================================


class AuthorizationError(LabAdminException):
    """Authorization failed - user lacks permission."""

    status_code = 403

    def __init__(
        self,
        message: str = "You don't have permission to perform this action",
        required_role: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="FORBIDDEN",
            details={"required_role": required_role},
        )


# =============================================================================
# HTTP 404 - Not Found Errors
# =============================================================================


class NotFoundError(LabAdminException):
    """Requested resource not found."""

    status_code = 404

    def __init__(
        self,
        resource: str,
        identifier: str | None = None,
    ) -> None:
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with ID '{identifier}' not found"

        super().__init__(
            message=message,
            code="NOT_FOUND",
            details={"resource": resource, "identifier": identifier},
        )


class OperationNotFoundError(NotFoundError):
    """Bulk operation log entry not found."""

    def __init__(self, operation_id: str | None = None) -> None:
        super().__init__(resource="Operation", identifier=operation_id)


# =============================================================================
# HTTP 409 - Conflict Errors
# =============================================================================


class ConflictError(LabAdminException):
    """Request conflicts with the current state of a resource."""

    status_code = 409

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, code=code, details=details)


class NotRollbackableError(ConflictError):
    """Operation kind or state does not allow a rollback."""

    def __init__(self, operation_id: str, reason: str) -> None:
        super().__init__(
            message=reason,
            code="NOT_ROLLBACKABLE",
            details={"operation_id": operation_id},
        )


class AlreadyRolledBackError(ConflictError):
    """Operation has already been rolled back."""

    def __init__(self, operation_id: str) -> None:
        super().__init__(
            message=f"Operation '{operation_id}' has already been rolled back",
            code="ALREADY_ROLLED_BACK",
            details={"operation_id": operation_id},
        )


# =============================================================================
# HTTP 503 - Server Errors
# =============================================================================


class StorageFailureError(LabAdminException):
    """The backing store rejected or failed a read or write."""

    status_code = 503

    def __init__(
        self,
        message: str = "The database could not complete the operation. Please try again.",
        operation_id: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="STORAGE_FAILURE",
            details={"operation_id": operation_id},
        )
        self.original_error = original_error
