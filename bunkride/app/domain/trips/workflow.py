"""
Trip Workflow Service (Domain Logic).

The single entry point for every trip and request mutation. Decisions come
from ``rules``; this module turns them into atomic statements:

- request insert is keyed by the (trip, requester) unique constraint
- status transitions are compare-and-set updates guarded on PENDING
- the seat decrement happens inside the database, never from a cached count

After each commit the change is published on the trip change feed.
"""

import logging
from datetime import date as date_type, datetime, time as time_type, timezone
from typing import Iterable, List, Optional, Set

from sqlalchemy import select, update, delete, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bunkride.app.core import clock
from bunkride.app.core.config import settings
from bunkride.app.core.exceptions import (
    DuplicateRequestError,
    InvalidStateError,
    NotFoundError,
)
from bunkride.app.domain.trips import rules
from bunkride.app.models.enums import RequestDecision, RequestStatus, TransportMode, TripStatus
from bunkride.app.models.notification import Notification
from bunkride.app.models.trip import Trip
from bunkride.app.models.trip_message import TripMessage
from bunkride.app.models.trip_request import TripRequest
from bunkride.app.services.audit import log_event, AuditAction
from bunkride.app.services.notification_service import NotificationService
from bunkride.app.services.trip_events import TripChange, TripChangeKind, trip_feed

logger = logging.getLogger("bunkride.trips")


class TripWorkflow:

    @staticmethod
    async def get_trip_or_404(db: AsyncSession, trip_id: int) -> Trip:
        """
        Load a trip with its requests, always from the database.

        ``populate_existing`` overwrites anything the session already holds,
        so callers never decide on a stale seat count or request status.
        """
        result = await db.execute(
            select(Trip).where(Trip.id == trip_id).execution_options(populate_existing=True)
        )
        trip = result.scalar_one_or_none()
        if trip is None:
            raise NotFoundError("Trip", trip_id)
        return trip

    @staticmethod
    async def get_trip(db: AsyncSession, principal, trip_id: int) -> Trip:
        """A trip the principal is allowed to see; others look absent."""
        trip = await TripWorkflow.get_trip_or_404(db, trip_id)
        if not rules.can_view_trip(principal, trip):
            raise NotFoundError("Trip", trip_id)
        return trip

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    @staticmethod
    async def create_trip(
        db: AsyncSession,
        principal,
        route_from: str,
        route_to: str,
        trip_date: date_type,
        trip_time: time_type,
        transport_mode: TransportMode,
        total_seats: int,
        total_cost: Optional[int] = None,
        cost_undecided: bool = False,
        now: Optional[datetime] = None,
    ) -> Trip:
        """
        Create an active trip with every seat available.

        Raises:
            ValidationError: unverified principal, seats < 1, negative or
                missing cost, blank route, or a departure not in the future
        """
        now = now or clock.now()
        rules.validate_new_trip(
            principal, route_from, route_to, trip_date, trip_time,
            total_seats, total_cost, cost_undecided, now
        )

        trip = Trip(
            route_from=route_from.strip(),
            route_to=route_to.strip(),
            date=trip_date,
            time=trip_time,
            transport_mode=TransportMode(transport_mode),
            total_seats=total_seats,
            available_seats=total_seats,
            total_cost=None if cost_undecided else total_cost,
            cost_undecided=cost_undecided,
            price_per_person=rules.compute_price_per_person(total_cost, total_seats, cost_undecided),
            creator_id=principal.id,
            creator_name=principal.name,
            creator_college=principal.college,
            status=TripStatus.ACTIVE,
        )
        db.add(trip)
        await db.commit()

        trip = await TripWorkflow.get_trip_or_404(db, trip.id)
        trip_feed.publish(TripChange(trip.id, TripChangeKind.CREATED, trip.creator_college))
        logger.info("Trip %s created by user %s (%s -> %s)", trip.id, principal.id, trip.route_from, trip.route_to)

        await log_event(
            db=db,
            action=AuditAction.TRIP_CREATED,
            actor_id=principal.id,
            actor_email=principal.email,
            trip_id=trip.id,
            metadata={
                "total_seats": trip.total_seats,
                "price_per_person": trip.price_per_person,
                "date": trip.date.isoformat(),
            }
        )
        return trip

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    @staticmethod
    async def request_to_join(
        db: AsyncSession,
        principal,
        trip_id: int,
        now: Optional[datetime] = None,
    ) -> TripRequest:
        """
        Submit a pending request. Seats are untouched until approval.

        Raises:
            NotFoundError, SelfJoinError, TripFullError, TripInactiveError,
            DuplicateRequestError (citing the existing request's status)
        """
        now = now or clock.now()
        requester_id = principal.id
        trip = await TripWorkflow.get_trip_or_404(db, trip_id)
        rules.check_can_request(principal, trip, now)

        request = TripRequest(
            trip_id=trip.id,
            requester_id=principal.id,
            requester_name=principal.name,
            requester_email=principal.email,
            status=RequestStatus.PENDING,
        )
        db.add(request)
        try:
            await db.flush()
        except IntegrityError:
            # A concurrent submission from the same principal won the insert
            await db.rollback()
            trip = await TripWorkflow.get_trip_or_404(db, trip_id)
            existing = rules.request_of(trip, requester_id)
            raise DuplicateRequestError(existing.status.value if existing else RequestStatus.PENDING.value)

        await NotificationService.notify_request_created(db, trip, request)
        await db.commit()

        trip = await TripWorkflow.get_trip_or_404(db, trip_id)
        request = rules.request_of(trip, principal.id)
        trip_feed.publish(TripChange(trip.id, TripChangeKind.REQUESTED, trip.creator_college))
        logger.info("User %s requested to join trip %s", principal.id, trip.id)

        await log_event(
            db=db,
            action=AuditAction.REQUEST_CREATED,
            actor_id=principal.id,
            actor_email=principal.email,
            trip_id=trip.id,
            target_user_id=trip.creator_id,
        )
        return request

    @staticmethod
    async def withdraw_request(
        db: AsyncSession,
        principal,
        trip_id: int,
        requester_id: Optional[int] = None,
    ) -> Trip:
        """
        Remove the principal's own pending request.

        Raises:
            NotAuthorizedError: ``requester_id`` names someone else
            NotFoundError: no pending request (including one decided meanwhile)
        """
        requester_id = principal.id if requester_id is None else requester_id
        trip = await TripWorkflow.get_trip_or_404(db, trip_id)
        rules.check_can_withdraw(principal, trip, requester_id)

        result = await db.execute(
            delete(TripRequest).where(
                TripRequest.trip_id == trip_id,
                TripRequest.requester_id == principal.id,
                TripRequest.status == RequestStatus.PENDING,
            )
        )
        if result.rowcount == 0:
            raise NotFoundError("Pending request", requester_id)
        await db.commit()

        trip = await TripWorkflow.get_trip_or_404(db, trip_id)
        trip_feed.publish(TripChange(trip.id, TripChangeKind.WITHDRAWN, trip.creator_college))
        logger.info("User %s withdrew request on trip %s", principal.id, trip_id)

        await log_event(
            db=db,
            action=AuditAction.REQUEST_WITHDRAWN,
            actor_id=principal.id,
            actor_email=principal.email,
            trip_id=trip_id,
        )
        return trip

    @staticmethod
    async def resolve_request(
        db: AsyncSession,
        principal,
        trip_id: int,
        requester_id: int,
        decision: RequestDecision,
    ) -> Trip:
        """
        Approve or reject a pending request (creator only).

        Approval takes one seat with an in-database decrement that stops at
        zero, so two approvals racing on the same trip cannot lose an update.

        Raises:
            NotAuthorizedError: principal is not the creator
            InvalidStateError: no pending request from ``requester_id``
        """
        decision = RequestDecision(decision)
        trip = await TripWorkflow.get_trip_or_404(db, trip_id)
        rules.check_can_resolve(principal, trip, requester_id)

        new_status = RequestStatus.APPROVED if decision == RequestDecision.APPROVE else RequestStatus.REJECTED
        transition = await db.execute(
            update(TripRequest).where(
                TripRequest.trip_id == trip_id,
                TripRequest.requester_id == requester_id,
                TripRequest.status == RequestStatus.PENDING,
            ).values(
                status=new_status,
                decided_at=datetime.now(timezone.utc),
            ).execution_options(synchronize_session=False)
        )
        if transition.rowcount == 0:
            raise InvalidStateError(
                "Request is no longer pending",
                details={"trip_id": trip_id, "requester_id": requester_id}
            )

        if new_status == RequestStatus.APPROVED:
            seats = await db.execute(
                update(Trip).where(
                    Trip.id == trip_id,
                    Trip.available_seats > 0,
                ).values(
                    available_seats=Trip.available_seats - 1
                ).execution_options(synchronize_session=False)
            )
            if seats.rowcount == 0:
                logger.warning("Trip %s approved request from %s with no seats left", trip_id, requester_id)

        trip = await TripWorkflow.get_trip_or_404(db, trip_id)
        request = rules.request_of(trip, requester_id)
        await NotificationService.notify_request_decided(db, trip, request)
        await db.commit()

        kind = TripChangeKind.APPROVED if new_status == RequestStatus.APPROVED else TripChangeKind.REJECTED
        trip_feed.publish(TripChange(trip.id, kind, trip.creator_college))
        logger.info(
            "Trip %s: request from %s %s, %d/%d seats available",
            trip_id, requester_id, new_status.value, trip.available_seats, trip.total_seats
        )

        await log_event(
            db=db,
            action=AuditAction.REQUEST_APPROVED if new_status == RequestStatus.APPROVED else AuditAction.REQUEST_REJECTED,
            actor_id=principal.id,
            actor_email=principal.email,
            trip_id=trip_id,
            target_user_id=requester_id,
            metadata={"available_seats": trip.available_seats},
        )
        return trip

    # ------------------------------------------------------------------
    # Deletion and expiry
    # ------------------------------------------------------------------

    @staticmethod
    async def _purge_trips(db: AsyncSession, trip_ids: Iterable[int]) -> None:
        """Delete trips with their requests, messages and notifications."""
        trip_ids = list(trip_ids)
        await db.execute(delete(Notification).where(Notification.trip_id.in_(trip_ids)))
        await db.execute(delete(TripMessage).where(TripMessage.trip_id.in_(trip_ids)))
        await db.execute(delete(TripRequest).where(TripRequest.trip_id.in_(trip_ids)))
        await db.execute(delete(Trip).where(Trip.id.in_(trip_ids)))

    @staticmethod
    async def delete_trip(
        db: AsyncSession,
        principal,
        trip_id: int,
        now: Optional[datetime] = None,
    ) -> None:
        """
        Raises:
            NotAuthorizedError: principal is not the creator
            TooLateError: departure is within the deletion window
        """
        now = now or clock.now()
        trip = await TripWorkflow.get_trip_or_404(db, trip_id)
        rules.check_can_delete(principal, trip, now, settings.deletion_window_hours)

        college = trip.creator_college
        await TripWorkflow._purge_trips(db, [trip_id])
        await db.commit()

        trip_feed.publish(TripChange(trip_id, TripChangeKind.DELETED, college))
        logger.info("Trip %s deleted by creator %s", trip_id, principal.id)

        await log_event(
            db=db,
            action=AuditAction.TRIP_DELETED,
            actor_id=principal.id,
            actor_email=principal.email,
            trip_id=trip_id,
        )

    @staticmethod
    async def sweep_expired_trips(db: AsyncSession, now: Optional[datetime] = None) -> Set[int]:
        """
        Delete every trip whose departure is before ``now``.

        Housekeeping only: listings filter past trips on their own.

        Returns:
            IDs of the deleted trips
        """
        now = now or clock.now()
        result = await db.execute(
            select(Trip.id, Trip.date, Trip.time, Trip.creator_college).where(Trip.date <= now.date())
        )
        expired = {row.id: row.creator_college for row in result if rules.is_expired(row, now)}
        if not expired:
            return set()

        await TripWorkflow._purge_trips(db, expired.keys())
        await db.commit()

        for trip_id, college in expired.items():
            trip_feed.publish(TripChange(trip_id, TripChangeKind.EXPIRED, college))
        logger.info("Swept %d expired trips", len(expired))

        await log_event(
            db=db,
            action=AuditAction.TRIPS_SWEPT,
            metadata={"trip_ids": sorted(expired), "now": now.isoformat()},
        )
        return set(expired)

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    @staticmethod
    async def list_joinable_trips(
        db: AsyncSession,
        principal,
        destination: Optional[str] = None,
        on_date: Optional[date_type] = None,
        min_seats: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[Trip]:
        """Trips from the principal's college they could still join, soonest first."""
        today = (now or clock.now()).date()
        query = select(Trip).where(
            Trip.creator_college == principal.college,
            Trip.status == TripStatus.ACTIVE,
            Trip.date >= today,
            Trip.creator_id != principal.id,
            Trip.available_seats > 0,
        ).order_by(Trip.date, Trip.time, Trip.id).execution_options(populate_existing=True)

        result = await db.execute(query)
        return list(rules.filter_joinable(
            result.scalars(), principal, today,
            destination=destination, on_date=on_date, min_seats=min_seats
        ))

    @staticmethod
    async def list_my_created_trips(db: AsyncSession, principal) -> List[Trip]:
        query = select(Trip).where(
            Trip.creator_id == principal.id
        ).order_by(Trip.id).execution_options(populate_existing=True)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def list_upcoming_relevant_trips(
        db: AsyncSession,
        principal,
        now: Optional[datetime] = None,
    ) -> List[Trip]:
        """
        Trips the principal created or asked to join, own trips first, then
        approved ones, then the rest, each group by departure.
        """
        now = now or clock.now()
        today = now.date()
        requested = select(TripRequest.trip_id).where(TripRequest.requester_id == principal.id)
        query = select(Trip).where(
            or_(Trip.creator_id == principal.id, Trip.id.in_(requested)),
            Trip.status == TripStatus.ACTIVE,
            Trip.date >= today,
        ).execution_options(populate_existing=True)

        result = await db.execute(query)
        trips = [trip for trip in result.scalars() if rules.is_upcoming_relevant(principal, trip, now)]
        return rules.sort_upcoming(principal, trips)
