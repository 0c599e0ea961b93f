"""
Token Revocation using Redis.

Logging out blacklists the presented JWT until it would have expired on
its own.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from bunkride.app.core.config import settings

logger = logging.getLogger("bunkride.auth")

# Redis key prefix for blacklisted tokens
TOKEN_BLACKLIST_PREFIX = "blacklist:token:"


def _remaining_ttl_seconds(expires_at: Optional[int]) -> int:
    if not expires_at:
        return settings.access_token_expire_minutes * 60
    remaining = int(expires_at - datetime.now(timezone.utc).timestamp())
    return max(remaining, 1)


async def revoke_token(redis, token: str, user_id: int, expires_at: Optional[int] = None) -> bool:
    """
    Revoke a specific JWT token by adding it to the blacklist.

    Args:
        redis: Redis client
        token: The JWT token string to revoke
        user_id: User ID who owns the token
        expires_at: The token's ``exp`` claim, bounds the blacklist TTL

    Returns:
        True if successfully revoked, False otherwise
    """
    try:
        key = f"{TOKEN_BLACKLIST_PREFIX}{token}"
        await redis.set(key, str(user_id), ex=_remaining_ttl_seconds(expires_at))
        return True
    except Exception as e:
        logger.warning("Error revoking token for user %s: %s", user_id, e)
        return False


async def is_token_revoked(redis, token: str) -> bool:
    """
    Check if a token has been revoked.

    If Redis is down the request is allowed; tokens still expire on their own.
    """
    try:
        key = f"{TOKEN_BLACKLIST_PREFIX}{token}"
        exists = await redis.exists(key)
        return exists > 0
    except Exception as e:
        logger.warning("Error checking token revocation: %s", e)
        return False
