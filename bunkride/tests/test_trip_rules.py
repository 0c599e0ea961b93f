"""
Unit tests for the pure trip rules (no database).
"""

import pytest
from datetime import date, datetime, time, timedelta
from types import SimpleNamespace

from bunkride.app.core.exceptions import (
    DuplicateRequestError,
    InvalidStateError,
    NotAuthorizedError,
    NotFoundError,
    SelfJoinError,
    TooLateError,
    TripFullError,
    TripInactiveError,
    ValidationError,
)
from bunkride.app.domain.trips import rules
from bunkride.app.models.enums import RequestStatus, TripStatus

NOW = datetime(2030, 3, 1, 10, 0)


def principal(id, college="thapar", verified=True):
    return SimpleNamespace(id=id, college=college, email_verified=verified, name=f"user{id}")


def request(requester_id, status=RequestStatus.PENDING):
    return SimpleNamespace(requester_id=requester_id, status=status)


def trip(
    id=1,
    creator_id=1,
    college="thapar",
    when=NOW + timedelta(days=3),
    total_seats=4,
    available_seats=None,
    status=TripStatus.ACTIVE,
    requests=(),
    route_from="Patiala",
    route_to="Delhi",
):
    return SimpleNamespace(
        id=id,
        creator_id=creator_id,
        creator_college=college,
        date=when.date(),
        time=when.time(),
        total_seats=total_seats,
        available_seats=total_seats if available_seats is None else available_seats,
        status=status,
        requests=list(requests),
        route_from=route_from,
        route_to=route_to,
    )


# --- creation ---

def test_price_per_person_is_floored():
    assert rules.compute_price_per_person(1000, 4) == 250
    assert rules.compute_price_per_person(1000, 3) == 333
    assert rules.compute_price_per_person(0, 2) == 0


def test_price_per_person_undecided():
    assert rules.compute_price_per_person(None, 4, cost_undecided=True) is None
    assert rules.compute_price_per_person(1000, 4, cost_undecided=True) is None


@pytest.mark.parametrize("kwargs", [
    {"total_seats": 0},
    {"total_seats": -2},
    {"total_cost": -1},
    {"total_cost": None},
    {"route_from": "   "},
    {"route_to": ""},
    {"trip_date": NOW.date() - timedelta(days=1)},
    {"trip_time": (NOW - timedelta(minutes=5)).time()},
])
def test_validate_new_trip_rejects_bad_input(kwargs):
    args = dict(
        route_from="Patiala",
        route_to="Delhi",
        trip_date=NOW.date(),
        trip_time=time(18, 0),
        total_seats=4,
        total_cost=1000,
        cost_undecided=False,
    )
    args.update(kwargs)
    with pytest.raises(ValidationError):
        rules.validate_new_trip(principal(1), now=NOW, **args)


def test_validate_new_trip_requires_verified_principal():
    with pytest.raises(ValidationError):
        rules.validate_new_trip(
            principal(1, verified=False), "Patiala", "Delhi",
            NOW.date(), time(18, 0), 4, 1000, False, NOW
        )


def test_validate_new_trip_accepts_undecided_cost():
    rules.validate_new_trip(
        principal(1), "Patiala", "Delhi",
        NOW.date() + timedelta(days=1), time(8, 0), 3, None, True, NOW
    )


# --- time ---

def test_can_delete_boundary_at_48_hours():
    assert rules.can_delete(trip(when=NOW + timedelta(hours=49)), NOW) is True
    assert rules.can_delete(trip(when=NOW + timedelta(hours=47)), NOW) is False
    assert rules.can_delete(trip(when=NOW + timedelta(hours=48)), NOW) is False


def test_check_can_delete_orders_checks():
    soon = trip(when=NOW + timedelta(hours=5))
    with pytest.raises(NotAuthorizedError):
        rules.check_can_delete(principal(2), soon, NOW)
    with pytest.raises(TooLateError):
        rules.check_can_delete(principal(1), soon, NOW)


def test_is_expired_uses_date_and_time():
    assert rules.is_expired(trip(when=NOW - timedelta(minutes=1)), NOW)
    assert not rules.is_expired(trip(when=NOW + timedelta(minutes=1)), NOW)


# --- requests ---

def test_check_can_request_self_join():
    with pytest.raises(SelfJoinError):
        rules.check_can_request(principal(1), trip(), NOW)


def test_check_can_request_other_college_is_not_found():
    with pytest.raises(NotFoundError):
        rules.check_can_request(principal(9, college="pec"), trip(), NOW)


def test_check_can_request_full_before_inactive():
    t = trip(available_seats=0, status=TripStatus.CANCELLED)
    with pytest.raises(TripFullError):
        rules.check_can_request(principal(2), t, NOW)


def test_check_can_request_inactive_and_expired():
    with pytest.raises(TripInactiveError):
        rules.check_can_request(principal(2), trip(status=TripStatus.COMPLETED), NOW)
    with pytest.raises(TripInactiveError) as exc:
        rules.check_can_request(principal(2), trip(when=NOW - timedelta(hours=1)), NOW)
    assert exc.value.details["status"] == "expired"


def test_check_can_request_duplicate_cites_status():
    t = trip(requests=[request(2, RequestStatus.REJECTED)])
    with pytest.raises(DuplicateRequestError) as exc:
        rules.check_can_request(principal(2), t, NOW)
    assert exc.value.details["existing_status"] == "rejected"
    assert "rejected" in exc.value.message


def test_check_can_withdraw():
    t = trip(requests=[request(2), request(3, RequestStatus.APPROVED)])
    assert rules.check_can_withdraw(principal(2), t, 2).requester_id == 2
    with pytest.raises(NotAuthorizedError):
        rules.check_can_withdraw(principal(2), t, 3)
    with pytest.raises(NotFoundError):
        rules.check_can_withdraw(principal(3), t, 3)
    with pytest.raises(NotFoundError):
        rules.check_can_withdraw(principal(4), t, 4)


def test_check_can_resolve():
    t = trip(requests=[request(2), request(3, RequestStatus.REJECTED)])
    with pytest.raises(NotAuthorizedError):
        rules.check_can_resolve(principal(2), t, 2)
    with pytest.raises(InvalidStateError):
        rules.check_can_resolve(principal(1), t, 3)
    with pytest.raises(InvalidStateError):
        rules.check_can_resolve(principal(1), t, 99)
    assert rules.check_can_resolve(principal(1), t, 2).requester_id == 2


def test_seats_after_approval_clamps_at_zero():
    assert rules.seats_after_approval(2) == 1
    assert rules.seats_after_approval(0) == 0


# --- listing ---

def test_filter_joinable_applies_every_condition():
    today = NOW.date()
    me = principal(5)
    trips = [
        trip(id=1, creator_id=1),
        trip(id=2, creator_id=5),
        trip(id=3, creator_id=1, college="pec"),
        trip(id=4, creator_id=1, available_seats=0),
        trip(id=5, creator_id=1, when=NOW - timedelta(days=1)),
        trip(id=6, creator_id=1, status=TripStatus.CANCELLED),
    ]
    assert [t.id for t in rules.filter_joinable(trips, me, today)] == [1]


def test_filter_joinable_refinements():
    today = NOW.date()
    me = principal(5)
    trips = [
        trip(id=1, route_to="New Delhi", total_seats=2),
        trip(id=2, route_from="Chandigarh", route_to="Shimla", total_seats=4),
        trip(id=3, route_to="Delhi", when=NOW + timedelta(days=7), total_seats=4),
    ]
    assert [t.id for t in rules.filter_joinable(trips, me, today, destination="delhi")] == [1, 3]
    assert [t.id for t in rules.filter_joinable(trips, me, today, min_seats=3)] == [2, 3]
    on = (NOW + timedelta(days=7)).date()
    assert [t.id for t in rules.filter_joinable(trips, me, today, on_date=on)] == [3]


def test_sort_upcoming_ranks_creator_then_approved_then_others():
    me = principal(5)
    early = NOW + timedelta(days=1)
    late = NOW + timedelta(days=9)
    trips = [
        trip(id=1, creator_id=1, when=early, requests=[request(5)]),
        trip(id=2, creator_id=5, when=late),
        trip(id=3, creator_id=1, when=late, requests=[request(5, RequestStatus.APPROVED)]),
        trip(id=4, creator_id=5, when=early),
    ]
    assert [t.id for t in rules.sort_upcoming(me, trips)] == [4, 2, 3, 1]


def test_upcoming_hides_full_trips_from_pending_requesters_only():
    me = principal(5)
    pending_full = trip(available_seats=0, requests=[request(5)])
    approved_full = trip(available_seats=0, requests=[request(5, RequestStatus.APPROVED)])
    own_full = trip(creator_id=5, available_seats=0)
    assert not rules.is_upcoming_relevant(me, pending_full, NOW)
    assert rules.is_upcoming_relevant(me, approved_full, NOW)
    assert rules.is_upcoming_relevant(me, own_full, NOW)


def test_upcoming_drops_trips_that_left_earlier_today():
    me = principal(5)
    left_this_morning = trip(creator_id=5, when=NOW - timedelta(hours=2))
    leaves_tonight = trip(creator_id=5, when=NOW + timedelta(hours=8))
    assert left_this_morning.date == NOW.date()
    assert not rules.is_upcoming_relevant(me, left_this_morning, NOW)
    assert rules.is_upcoming_relevant(me, leaves_tonight, NOW)


def test_can_view_trip():
    t = trip(requests=[request(9)])
    assert rules.can_view_trip(principal(1, college="other"), t)
    assert rules.can_view_trip(principal(2), t)
    assert rules.can_view_trip(principal(9, college="pec"), t)
    assert not rules.can_view_trip(principal(8, college="pec"), t)
