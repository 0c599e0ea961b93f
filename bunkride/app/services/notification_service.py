"""
Notification Service.

Writes in-app notifications. The request-created, request-approved and
email-verification rows are also the trigger records the external mailer
watches, so their ``metadata_payload`` shape is part of that contract.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import update
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from bunkride.app.core.config import settings
from bunkride.app.models.enums import RequestStatus
from bunkride.app.models.notification import Notification, NotificationType


def trip_payload(trip, request=None) -> Dict[str, Any]:
    """Fields the mail trigger needs to render a trip email."""
    payload = {
        "trip_id": trip.id,
        "creator_id": trip.creator_id,
        "creator_name": trip.creator_name,
        "route_from": trip.route_from,
        "route_to": trip.route_to,
        "trip_date": trip.date.isoformat(),
        "trip_time": trip.time.strftime("%H:%M"),
        "trip_url": f"{settings.app_url}/trip/{trip.id}",
    }
    if request is not None:
        payload.update({
            "requester_id": request.requester_id,
            "requester_name": request.requester_name,
            "requester_email": request.requester_email,
            "status": request.status.value,
        })
    return payload


class NotificationService:

    @staticmethod
    async def create_notification(
        db: AsyncSession,
        user_id: int,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
        trip_id: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Notification:
        """Create a single notification."""
        notif = Notification(
            user_id=user_id,
            trip_id=trip_id,
            type=type,
            title=title,
            message=message,
            metadata_payload=metadata
        )
        db.add(notif)
        await db.flush()  # Caller commits
        return notif

    @staticmethod
    async def notify_request_created(db: AsyncSession, trip, request) -> Notification:
        """Tell the creator someone asked to join."""
        return await NotificationService.create_notification(
            db,
            user_id=trip.creator_id,
            title="New Trip Request",
            message=f"{request.requester_name} wants to join your trip to {trip.route_to}.",
            type=NotificationType.TRIP_REQUEST_CREATED,
            trip_id=trip.id,
            metadata=trip_payload(trip, request),
        )

    @staticmethod
    async def notify_request_decided(db: AsyncSession, trip, request) -> Notification:
        """Tell the requester the creator approved or rejected them."""
        if request.status == RequestStatus.APPROVED:
            title = "Trip Request Accepted"
            message = f"Your request to join the trip to {trip.route_to} has been accepted."
            type = NotificationType.TRIP_REQUEST_APPROVED
        else:
            title = "Trip Request Declined"
            message = f"Your request to join the trip to {trip.route_to} was declined."
            type = NotificationType.TRIP_REQUEST_REJECTED
        return await NotificationService.create_notification(
            db,
            user_id=request.requester_id,
            title=title,
            message=message,
            type=type,
            trip_id=trip.id,
            metadata=trip_payload(trip, request),
        )

    @staticmethod
    async def queue_email_verification(db: AsyncSession, user, token: str) -> Notification:
        return await NotificationService.create_notification(
            db,
            user_id=user.id,
            title="Verify your email",
            message="Confirm your college email to start sharing rides.",
            type=NotificationType.EMAIL_VERIFICATION,
            metadata={
                "email": user.email,
                "name": user.name,
                "token": token,
                "verify_url": f"{settings.app_url}/verify-email?token={token}",
            },
        )

    @staticmethod
    async def mark_read(db: AsyncSession, notification_id: int, user_id: int) -> bool:
        """Mark a notification as read."""
        stmt = update(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id
        ).values(
            is_read=True,
            read_at=datetime.now(timezone.utc)
        )
        result = await db.execute(stmt)
        return result.rowcount > 0

    @staticmethod
    async def mark_all_read(db: AsyncSession, user_id: int) -> int:
        """Mark all notifications for user as read."""
        stmt = update(Notification).where(
            Notification.user_id == user_id,
            Notification.is_read == False
        ).values(
            is_read=True,
            read_at=datetime.now(timezone.utc)
        )
        result = await db.execute(stmt)
        return result.rowcount
