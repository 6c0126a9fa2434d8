"""
Session token verification.

Tokens are issued by the program's identity provider; this service only
verifies them with the shared secret and reads the subject (the user's
email address).
"""

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from pydantic import BaseModel

from labadmin.core.config import settings


class TokenPayload(BaseModel):
    """Session token claims used by this service."""

    sub: str  # Subject (user email)
    exp: datetime
    iat: datetime | None = None


def create_session_token(
    email: str,
    expires_delta: timedelta | None = None,
    extra_claims: dict[str, Any] | None = None,
) -> str:
    """
    Create a signed session token.

    Used by tests and local tooling; production tokens come from the
    identity provider.

    Args:
        email: Token subject
        expires_delta: Custom expiration time (defaults to one hour)
        extra_claims: Additional claims to include

    Returns:
        Encoded JWT token
    """
    now = datetime.now(timezone.utc)
    to_encode: dict[str, Any] = {
        "sub": email,
        "iat": now,
        "exp": now + (expires_delta or timedelta(hours=1)),
    }
    if extra_claims:
        to_encode.update(extra_claims)

    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_session_token(token: str) -> TokenPayload | None:
    """
    Decode and validate a session token.

    Signature and expiry are checked by python-jose.

    Args:
        token: JWT token to decode

    Returns:
        TokenPayload if valid, None otherwise
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None

    subject = payload.get("sub")
    if not subject or "exp" not in payload:
        return None

    return TokenPayload(
        sub=subject,
        exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc) if "iat" in payload else None,
    )
