"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from bunkride.app.api.v1.endpoints import (
    auth, profile, trips, trip_requests, chat, notifications
)

router = APIRouter()

# Accounts
router.include_router(auth.router)
router.include_router(profile.router)

# Trips and the request workflow
router.include_router(trips.router)
router.include_router(trip_requests.router)
router.include_router(chat.router)

router.include_router(notifications.router)
