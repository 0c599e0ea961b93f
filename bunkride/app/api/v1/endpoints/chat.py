"""
Trip Chat API Endpoints.
"""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from bunkride.app.core.dependencies import get_current_principal
from bunkride.app.db.session import get_db
from bunkride.app.models.user import User
from bunkride.app.schemas.chat import MessageCreate, MessageResponse
from bunkride.app.services.chat_service import ChatService

router = APIRouter(prefix="/trips/{trip_id}/messages", tags=["Trip Chat"])


@router.get("", response_model=List[MessageResponse])
async def list_messages(
    trip_id: int = Path(..., description="Trip ID"),
    principal: User = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    return await ChatService.list_messages(db, principal, trip_id)


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def post_message(
    body: MessageCreate,
    trip_id: int = Path(..., description="Trip ID"),
    principal: User = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    return await ChatService.post_message(db, principal, trip_id, body.text)


@router.delete("/{message_id}")
async def delete_message(
    trip_id: int = Path(..., description="Trip ID"),
    message_id: int = Path(..., description="Message ID"),
    principal: User = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Sender or trip creator only."""
    await ChatService.delete_message(db, principal, trip_id, message_id)
    return {"status": "success"}
