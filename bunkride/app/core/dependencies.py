"""
Authentication dependencies for FastAPI.

This module provides dependencies for protecting routes with JWT authentication
and for resolving the verified principal the trip workflow acts on behalf of.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from bunkride.app.core.jwt import decode_access_token
from bunkride.app.core.redis_client import get_redis
from bunkride.app.core.token_revocation import is_token_revoked
from bunkride.app.db.session import get_db
from bunkride.app.models.user import User

# HTTP Bearer security scheme
security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    redis=Depends(get_redis),
) -> dict:
    """
    FastAPI dependency for JWT authentication.

    1. Validates JWT token signature and expiry
    2. Checks if token has been revoked by logout

    Returns:
        Decoded token payload, with the raw token under ``token``

    Raises:
        HTTPException: 401 if authentication fails for any reason
    """
    token = credentials.credentials

    payload = decode_access_token(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not payload.get("user_id"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if await is_token_revoked(redis, token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has been revoked",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return {**payload, "token": token}


async def get_current_principal(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Resolve the authenticated, verified principal.

    Profile fields (name, college, privacy flags) are read fresh from the
    database on every request; the token only carries the identity.

    Raises:
        HTTPException: 401 if the account is gone, 403 if inactive or unverified
    """
    result = await db.execute(select(User).where(User.id == current_user["user_id"]))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    if not user.email_verified:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Email address is not verified",
        )

    return user
