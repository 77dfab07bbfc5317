"""
Service-level tests for TripService and AuthService against a temporary SQLite database
"""

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from tripplanner.api.schemas import TripAggregateCreate, TripAggregateReplace, TripUpdate
from tripplanner.core.errors import (
    AuthError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from tripplanner.services.auth import AuthService
from tripplanner.services.trips import TripService, trip_is_complete

ACTIVITY_AT = "2030-06-01T12:00:00Z"


def _clock(year):
    return lambda: datetime(year, 1, 1, tzinfo=timezone.utc)


def _payload(**overrides):
    data = {
        "trip": {"destination": "OSLO", "start_date": "2030-05-30", "end_date": "2030-06-03"},
        "hotels": [{"hotel_name": "Fjord Inn"}],
        "transports": [{"transport_type": "train", "transport_name": "F4", "departure_city": "Bergen"}],
        "activities": [
            {"activity_name": "Museum", "activity_datetime": ACTIVITY_AT},
            {"activity_name": "Boat", "activity_datetime": ACTIVITY_AT, "is_completed": True},
        ],
    }
    data.update(overrides)
    return TripAggregateCreate.model_validate(data)


async def _user(db, email="ana@example.com"):
    async with db.get_session() as session:
        return await AuthService(session).register_user("Ana", email, "pw")


def test_trip_is_complete_rule():
    now = datetime(2031, 1, 1, tzinfo=timezone.utc)
    done_past = SimpleNamespace(is_completed=True, activity_datetime=datetime(2030, 1, 1))
    done_future = SimpleNamespace(is_completed=True, activity_datetime=datetime(2032, 1, 1, tzinfo=timezone.utc))
    open_past = SimpleNamespace(is_completed=False, activity_datetime=datetime(2030, 1, 1, tzinfo=timezone.utc))

    assert trip_is_complete([done_past], now)
    assert not trip_is_complete([], now)
    assert not trip_is_complete([done_past, done_future], now)
    assert not trip_is_complete([done_past, open_past], now)


@pytest.mark.asyncio
async def test_register_conflict_and_authenticate(db):
    user = await _user(db)

    async with db.get_session() as session:
        service = AuthService(session)
        with pytest.raises(ConflictError):
            await service.register_user("Other", "ana@example.com", "pw2")
        assert (await service.authenticate_user("ana@example.com", "pw")).user_id == user.user_id
        with pytest.raises(AuthError):
            await service.authenticate_user("ana@example.com", "wrong")
        with pytest.raises(AuthError):
            await service.authenticate_user("nobody@example.com", "pw")


@pytest.mark.asyncio
async def test_create_aggregate_for_unknown_user(db):
    async with db.get_session() as session:
        with pytest.raises(NotFoundError):
            await TripService(session).create_aggregate(12345, _payload())


@pytest.mark.asyncio
async def test_create_and_get_latest(db):
    user = await _user(db)
    async with db.get_session() as session:
        service = TripService(session)
        trip = await service.create_aggregate(user.user_id, _payload())
        aggregate = await service.get_latest(user.user_id)

    assert aggregate.trip.trip_id == trip.trip_id
    assert [h.hotel_name for h in aggregate.hotels] == ["Fjord Inn"]
    assert aggregate.transports[0].transport_name == "F4"
    assert [a.is_completed for a in aggregate.activities] == [False, True]


@pytest.mark.asyncio
async def test_completion_depends_on_clock(db):
    user = await _user(db)
    async with db.get_session() as session:
        await TripService(session).create_aggregate(user.user_id, _payload())
        museum = (await TripService(session).get_latest(user.user_id)).activities[0]

    # activities are in 2030: not yet in the past
    async with db.get_session() as session:
        result = await TripService(session, clock=_clock(2029)).toggle_activity_completion(user.user_id, museum.activity_id)
    assert result.activity.is_completed is True
    assert result.trip_completed is False

    # off and on again once the activities are behind us
    async with db.get_session() as session:
        service = TripService(session, clock=_clock(2031))
        assert (await service.toggle_activity_completion(user.user_id, museum.activity_id)).trip_completed is False
        result = await service.toggle_activity_completion(user.user_id, museum.activity_id)
    assert result.trip_completed is True


@pytest.mark.asyncio
async def test_replace_is_atomic(db):
    user = await _user(db)
    async with db.get_session() as session:
        trip = await TripService(session).create_aggregate(user.user_id, _payload())

    # the old hotels are deleted before the second new one violates NOT NULL on hotel_name
    bad = TripAggregateReplace.model_construct(
        trip=None,
        hotels=[
            SimpleNamespace(to_record=lambda: {"hotel_name": "New"}),
            SimpleNamespace(to_record=lambda: {"hotel_name": None}),
        ],
        transports=None,
        activities=None,
    )
    async with db.get_session() as session:
        with pytest.raises(PersistenceError):
            await TripService(session).replace_aggregate(user.user_id, trip.trip_id, bad)

    async with db.get_session() as session:
        aggregate = await TripService(session).get_latest(user.user_id)
    assert [h.hotel_name for h in aggregate.hotels] == ["Fjord Inn"]


@pytest.mark.asyncio
async def test_ownership_checks(db):
    ana = await _user(db, "ana@example.com")
    bob = await _user(db, "bob@example.com")
    async with db.get_session() as session:
        trip = await TripService(session).create_aggregate(ana.user_id, _payload())
        hotel = (await TripService(session).get_latest(ana.user_id)).hotels[0]

    async with db.get_session() as session:
        service = TripService(session)
        with pytest.raises(ForbiddenError):
            await service.update_trip(bob.user_id, trip.trip_id, TripUpdate(group_size=3))
        with pytest.raises(ForbiddenError):
            await service.update_trip(ana.user_id, 999, TripUpdate(group_size=3))
        with pytest.raises(NotFoundError):
            await service.update_hotel(bob.user_id, 999, None)
        with pytest.raises(ValidationError):
            await service.update_trip(ana.user_id, trip.trip_id, TripUpdate(start_date="2031-01-01"))
        with pytest.raises(ForbiddenError):
            await service.replace_aggregate(bob.user_id, trip.trip_id, TripAggregateReplace(hotels=[]))

    async with db.get_session() as session:
        aggregate = await TripService(session).get_latest(ana.user_id)
    assert [h.hotel_id for h in aggregate.hotels] == [hotel.hotel_id]
    assert aggregate.trip.group_size is None
