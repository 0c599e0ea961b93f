"""
JWT token utilities for authentication.

This module provides functions for encoding and decoding session tokens
and the single-purpose email verification tokens.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from bunkride.app.core.config import settings

EMAIL_VERIFICATION_PURPOSE = "verify_email"


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Data payload to encode in the token (should include: sub, user_id, college)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string

    Example payload:
        {
            "sub": "arjun@thapar.edu",
            "user_id": 12,
            "college": "thapar",
            "exp": 1234567890
        }
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)

    return encoded_jwt


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate a JWT access token.

    Verification tokens are rejected here so they cannot be used as sessions.

    Returns:
        Decoded token payload if valid, None otherwise
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    if payload.get("purpose"):
        return None
    return payload


def create_email_verification_token(user_id: int, email: str) -> str:
    """Create a token the external mailer embeds in the verification link."""
    return create_access_token(
        data={"sub": email, "user_id": user_id, "purpose": EMAIL_VERIFICATION_PURPOSE},
        expires_delta=timedelta(hours=settings.email_verification_expire_hours),
    )


def decode_email_verification_token(token: str) -> Optional[Dict[str, Any]]:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    if payload.get("purpose") != EMAIL_VERIFICATION_PURPOSE:
        return None
    return payload
