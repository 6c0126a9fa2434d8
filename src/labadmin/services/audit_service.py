"""Audit service for recording privileged actions."""

from typing import Any, Optional

import orjson
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from labadmin.core.config import settings
from labadmin.core.logging import get_logger
from labadmin.core.permissions import Actor
from labadmin.models.audit_log import AuditAction, AuditLog

logger = get_logger(__name__)


class AuditService:
    """Service for audit logging operations."""

    async def log_event(
        self,
        db: AsyncSession,
        actor: Actor,
        action: AuditAction | str,
        resource_type: str,
        resource_id: Optional[str] = None,
        resource_description: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        meta: Optional[dict[str, Any]] = None,
    ) -> Optional[AuditLog]:
        """Record an audit event.

        The insert runs in its own savepoint. Auditing never fails the
        surrounding request: storage errors are logged and ``None`` is
        returned.

        Args:
            db: Database session
            actor: Staff member who performed the action
            action: Type of action performed
            resource_type: Type of resource affected (e.g. "student_list")
            resource_id: ID of affected resource
            resource_description: Human-readable summary of the action
            ip_address: IP address of request
            user_agent: User agent string
            meta: Additional metadata

        Returns:
            Created audit log entry, or None if auditing is disabled or failed

        """
        if not settings.audit_enabled:
            return None

        action_value = action.value if isinstance(action, AuditAction) else action

        entry = AuditLog(
            user_id=actor.user_id,
            user_email=actor.email,
            user_role=actor.role,
            action=action_value,
            resource_type=resource_type,
            resource_id=resource_id,
            resource_description=resource_description,
            ip_address=ip_address,
            user_agent=user_agent[:500] if user_agent else None,
            meta=orjson.dumps(meta or {}, default=str).decode("utf-8"),
        )

        try:
            async with db.begin_nested():
                db.add(entry)
                await db.flush()
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to write audit event: {e}",
                extra={
                    "action": action_value,
                    "resource_type": resource_type,
                    "resource_id": resource_id,
                    "user_email": actor.email,
                },
            )
            return None

        return entry
