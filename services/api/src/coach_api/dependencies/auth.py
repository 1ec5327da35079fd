"""Authentication dependencies for protecting API routes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from uuid import UUID

import jwt
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from coach_shared.config import get_settings
from coach_shared.db.connection import get_session
from coach_shared.db.models import Profile
from coach_shared.logging.config import bind_user, get_logger

logger = get_logger(__name__)


@dataclass
class AuthenticatedUser:
    """Caller identity extracted from a verified bearer token."""

    user_id: UUID
    email: str | None
    claims: dict[str, Any]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_auth(
    authorization: str | None = Header(default=None),
) -> AuthenticatedUser:
    """FastAPI dependency that requires a valid bearer token.

    The user id is read from the ``userId`` claim, falling back to ``sub``.

    Usage:
        @router.get("/endpoint")
        async def my_endpoint(user: AuthenticatedUser = Depends(require_auth)):
            print(user.user_id)

    Raises:
        HTTPException 401 if the token is missing, malformed, expired or invalid.
    """
    if not authorization:
        raise _unauthorized("No token provided")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise _unauthorized("Invalid authorization header")

    settings = get_settings().auth
    if not settings.jwt_secret:
        logger.error("AUTH_JWT_SECRET is not configured")
        raise _unauthorized("Could not validate credentials")

    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.PyJWTError:
        raise _unauthorized("Could not validate credentials")

    raw_user_id = claims.get("userId") or claims.get("sub")
    try:
        user_id = UUID(str(raw_user_id))
    except ValueError:
        raise _unauthorized("Invalid token payload")

    bind_user(user_id)
    return AuthenticatedUser(user_id=user_id, email=claims.get("email"), claims=claims)


async def is_admin(session: AsyncSession, user_id: UUID) -> bool:
    """Whether the user's profile carries the admin flag."""
    result = await session.execute(select(Profile.is_admin).where(Profile.id == user_id))
    return bool(result.scalar_one_or_none())


async def require_admin(
    user: AuthenticatedUser = Depends(require_auth),
    session: AsyncSession = Depends(get_session),
) -> AuthenticatedUser:
    """Require the authenticated user to be an admin."""
    if not await is_admin(session, user.user_id):
        logger.warning("Admin access denied", user_id=str(user.user_id))
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user
