"""
Audit logging service for tracking account events and trip state changes.
"""

from typing import Optional, Dict, Any, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from bunkride.app.models.audit_log import AuditLog


class AuditAction:
    """Standardized audit action constants."""
    SIGNUP = "SIGNUP"
    EMAIL_VERIFIED = "EMAIL_VERIFIED"
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    LOGOUT = "LOGOUT"
    PROFILE_UPDATED = "PROFILE_UPDATED"

    TRIP_CREATED = "TRIP_CREATED"
    TRIP_DELETED = "TRIP_DELETED"
    TRIPS_SWEPT = "TRIPS_SWEPT"

    REQUEST_CREATED = "REQUEST_CREATED"
    REQUEST_WITHDRAWN = "REQUEST_WITHDRAWN"
    REQUEST_APPROVED = "REQUEST_APPROVED"
    REQUEST_REJECTED = "REQUEST_REJECTED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    actor_email: Optional[str] = None,
    trip_id: Optional[int] = None,
    target_user_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Log an account or trip event to the audit log.

    Commits on its own; call it after the business transaction is committed.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_id: ID of user performing the action
        actor_email: Email of actor
        trip_id: Trip the action concerns (if applicable)
        target_user_id: User being acted upon (e.g. the requester on approval)
        metadata: Additional context as JSON
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        actor_email=actor_email,
        action=action,
        trip_id=trip_id,
        target_user_id=target_user_id,
        meta_data=metadata,
    )

    db.add(audit_log)
    await db.commit()

    return audit_log


async def get_trip_history(db: AsyncSession, trip_id: int, limit: int = 100) -> List[AuditLog]:
    """All recorded events for one trip, oldest first."""
    query = select(AuditLog).where(
        AuditLog.trip_id == trip_id
    ).order_by(AuditLog.id).limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())
