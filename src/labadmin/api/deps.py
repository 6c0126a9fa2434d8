"""
FastAPI dependency injection functions.

Provides reusable dependencies for database sessions and the acting admin.
"""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from labadmin.core.exceptions import AuthenticationError, AuthorizationError, InvalidTokenError
from labadmin.core.permissions import Actor, Role, can_access_admin
from labadmin.core.security import decode_session_token
from labadmin.db.session import get_db
from labadmin.models.lab_user import LabUser

# HTTP Bearer token security scheme
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_actor(
    db: Annotated[AsyncSession, Depends(get_db)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Actor:
    """
    Resolve the authenticated staff member from the session token.

    Args:
        db: Database session
        credentials: HTTP Bearer credentials

    Returns:
        Actor for the token's user

    Raises:
        AuthenticationError: If no token is sent or the user is unknown
        InvalidTokenError: If the token does not verify
    """
    if credentials is None:
        raise AuthenticationError()

    payload = decode_session_token(credentials.credentials)
    if payload is None:
        raise InvalidTokenError()

    result = await db.execute(
        select(LabUser).where(
            LabUser.email == payload.sub.lower(),
            LabUser.is_active == True,  # noqa: E712
        )
    )
    user = result.scalar_one_or_none()

    if user is None:
        raise AuthenticationError(message="User not found or inactive", code="USER_NOT_FOUND")

    return Actor(email=user.email, role=user.role, user_id=user.id)


async def get_current_admin(
    actor: Annotated[Actor, Depends(get_current_actor)],
) -> Actor:
    """
    Require admin-level access.

    Raises:
        AuthorizationError: If the actor's role is below admin
    """
    if not can_access_admin(actor.role):
        raise AuthorizationError(
            message="Admin access required",
            required_role=Role.ADMIN.value,
        )
    return actor


# Type aliases for cleaner dependency injection
CurrentAdmin = Annotated[Actor, Depends(get_current_admin)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
