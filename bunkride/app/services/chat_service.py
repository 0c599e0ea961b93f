"""
Trip Chat Service.

A plain message list per trip, readable and writable by the creator and
approved riders.
"""

import logging
from typing import List

from sqlalchemy import select, desc, delete
from sqlalchemy.ext.asyncio import AsyncSession

from bunkride.app.core.config import settings
from bunkride.app.core.exceptions import NotAuthorizedError, NotFoundError, ValidationError
from bunkride.app.core.guards import trip_guard
from bunkride.app.domain.trips import rules
from bunkride.app.domain.trips.workflow import TripWorkflow
from bunkride.app.models.trip_message import TripMessage

logger = logging.getLogger("bunkride.chat")

MAX_MESSAGE_LENGTH = 1000


class ChatService:

    @staticmethod
    async def list_messages(db: AsyncSession, principal, trip_id: int) -> List[TripMessage]:
        """The latest ``chat_history_limit`` messages, oldest first."""
        trip = await TripWorkflow.get_trip_or_404(db, trip_id)
        trip_guard.enforce_member(principal, trip, resource_name="chat")

        result = await db.execute(
            select(TripMessage)
            .where(TripMessage.trip_id == trip_id)
            .order_by(desc(TripMessage.id))
            .limit(settings.chat_history_limit)
        )
        return list(reversed(result.scalars().all()))

    @staticmethod
    async def post_message(db: AsyncSession, principal, trip_id: int, text: str) -> TripMessage:
        text = (text or "").strip()
        if not text or len(text) > MAX_MESSAGE_LENGTH:
            raise ValidationError(
                f"Message must be between 1 and {MAX_MESSAGE_LENGTH} characters",
                details={"length": len(text)}
            )

        trip = await TripWorkflow.get_trip_or_404(db, trip_id)
        trip_guard.enforce_member(principal, trip, resource_name="chat")

        message = TripMessage(
            trip_id=trip_id,
            sender_id=principal.id,
            sender_name=principal.name,
            text=text,
        )
        db.add(message)
        await db.commit()
        await db.refresh(message)
        return message

    @staticmethod
    async def delete_message(db: AsyncSession, principal, trip_id: int, message_id: int) -> None:
        """Only the sender or the trip creator may remove a message."""
        trip = await TripWorkflow.get_trip_or_404(db, trip_id)
        trip_guard.enforce_member(principal, trip, resource_name="chat")

        result = await db.execute(
            select(TripMessage).where(TripMessage.id == message_id, TripMessage.trip_id == trip_id)
        )
        message = result.scalar_one_or_none()
        if message is None:
            raise NotFoundError("Message", message_id)

        if message.sender_id != principal.id and not rules.is_creator(principal, trip):
            raise NotAuthorizedError(
                "Only the sender or the trip creator can delete this message",
                details={"message_id": message_id}
            )

        await db.execute(delete(TripMessage).where(TripMessage.id == message_id))
        await db.commit()
        logger.info("Message %s on trip %s deleted by user %s", message_id, trip_id, principal.id)
