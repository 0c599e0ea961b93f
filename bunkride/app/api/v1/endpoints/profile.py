"""
Profile API Endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bunkride.app.db.session import get_db
from bunkride.app.models.user import User
from bunkride.app.core.dependencies import get_current_principal
from bunkride.app.domain.trips.views import build_dashboard_stats
from bunkride.app.schemas.auth import UserResponse
from bunkride.app.schemas.profile import ProfileUpdate, StatsResponse
from bunkride.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("", response_model=UserResponse)
async def get_profile(principal: User = Depends(get_current_principal)):
    return UserResponse.model_validate(principal)


@router.patch("", response_model=UserResponse)
async def update_profile(
    changes: ProfileUpdate,
    principal: User = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Update name, phone, year, avatar and privacy flags."""
    updates = changes.model_dump(exclude_unset=True)
    for field, value in updates.items():
        if field in ("name", "phone") and value is not None:
            value = value.strip()
        setattr(principal, field, value)

    await db.commit()
    await db.refresh(principal)

    await log_event(
        db=db,
        action=AuditAction.PROFILE_UPDATED,
        actor_id=principal.id,
        actor_email=principal.email,
        metadata={"fields": sorted(updates)}
    )
    return UserResponse.model_validate(principal)


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    principal: User = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Dashboard counters."""
    return await build_dashboard_stats(db, principal)
