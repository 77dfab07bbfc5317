"""
Trip aggregate operations.

Every public method runs as exactly one transaction on the injected session,
so an aggregate write either lands completely or not at all. Ownership is
checked by walking child -> trip -> user before anything is changed.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Type

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel
import structlog

from tripplanner.api.schemas import (
    ActivityUpdate,
    HotelUpdate,
    TransportUpdate,
    TripAggregateCreate,
    TripAggregateReplace,
    TripUpdate,
    transport_fields_for,
)
from tripplanner.core.errors import (
    ForbiddenError,
    NotFoundError,
    PersistenceError,
    TripPlannerError,
    ValidationError,
)
from tripplanner.db import crud
from tripplanner.db.models import Activity, Hotel, Transport, Trip, as_utc

logger = structlog.get_logger(__name__)

FORBIDDEN_OR_MISSING = "Forbidden or trip not found."


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def trip_is_complete(activities: Iterable[Activity], now: datetime) -> bool:
    """True when there is at least one activity and every one is done and in the past"""
    activities = list(activities)
    return bool(activities) and all(
        a.is_completed and as_utc(a.activity_datetime) <= now
        for a in activities
    )


@dataclass
class TripAggregate:
    trip: Trip
    hotels: List[Hotel]
    transports: List[Transport]
    activities: List[Activity]


@dataclass
class ToggleResult:
    activity: Activity
    trip_completed: bool


class TripService:
    """Service class for trip aggregates owned by one authenticated user"""

    def __init__(self, session: AsyncSession, clock: Callable[[], datetime] = utcnow):
        self.session = session
        self.clock = clock

    # ----- helpers -----

    async def _owned_trip(self, trip_id: int, user_id: int) -> Trip:
        trip = await crud.get_trip(self.session, trip_id)
        if trip is None or trip.user_id != user_id:
            logger.warning("trip_access_denied", trip_id=trip_id, user_id=user_id, exists=trip is not None)
            raise ForbiddenError(FORBIDDEN_OR_MISSING)
        return trip

    async def _owned_child(self, model: Type[SQLModel], row_id: int, user_id: int, label: str):
        row = await crud.get_child(self.session, model, row_id)
        if row is None:
            raise NotFoundError(f"{label} not found.")
        trip = await crud.get_trip(self.session, row.trip_id)
        if trip is None or trip.user_id != user_id:
            logger.warning("child_access_denied", kind=model.__tablename__, row_id=row_id, user_id=user_id)
            raise ForbiddenError("Forbidden.")
        return row, trip

    async def _run(self, operation: str, work):
        """Run work() inside one transaction, mapping store failures to PersistenceError"""
        try:
            async with self.session.begin():
                return await work()
        except TripPlannerError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"{operation}_failed", error=str(e), error_type=type(e).__name__)
            raise PersistenceError(f"Failed to {operation.replace('_', ' ')}.") from e

    # ----- operations -----

    async def create_aggregate(self, user_id: int, payload: TripAggregateCreate) -> Trip:
        if payload.trip is None:
            raise ValidationError("Trip data is required.")

        async def work():
            if await crud.get_user_by_id(self.session, user_id) is None:
                raise NotFoundError("User not found.")
            # Owner always comes from the session token, never from the body
            trip = await crud.create_trip(self.session, user_id, payload.trip.model_dump())
            await crud.create_children(self.session, Hotel, trip.trip_id, [h.to_record() for h in payload.hotels or []])
            await crud.create_children(self.session, Transport, trip.trip_id, [t.to_record() for t in payload.transports or []])
            await crud.create_children(self.session, Activity, trip.trip_id, [a.to_record() for a in payload.activities or []])
            return trip

        trip = await self._run("create_trip", work)
        logger.info(
            "trip_created",
            trip_id=trip.trip_id,
            user_id=user_id,
            hotels=len(payload.hotels or []),
            transports=len(payload.transports or []),
            activities=len(payload.activities or []),
        )
        return trip

    async def get_latest(self, user_id: int) -> TripAggregate:
        async def work():
            trip = await crud.get_latest_trip(self.session, user_id)
            if trip is None:
                raise NotFoundError("No trips found for this user.")
            return TripAggregate(
                trip=trip,
                hotels=await crud.list_children(self.session, Hotel, trip.trip_id),
                transports=await crud.list_children(self.session, Transport, trip.trip_id),
                activities=await crud.list_children(self.session, Activity, trip.trip_id),
            )

        return await self._run("fetch_trip_data", work)

    async def toggle_activity_completion(self, user_id: int, activity_id: int) -> ToggleResult:
        async def work():
            activity, trip = await self._owned_child(Activity, activity_id, user_id, "Activity")
            activity.is_completed = not activity.is_completed
            self.session.add(activity)
            await self.session.flush()

            siblings = await crud.list_children(self.session, Activity, trip.trip_id)
            if not trip.is_completed and trip_is_complete(siblings, self.clock()):
                trip.is_completed = True
                self.session.add(trip)
                await self.session.flush()
                logger.info("trip_completed", trip_id=trip.trip_id, user_id=user_id)
            return ToggleResult(activity=activity, trip_completed=trip.is_completed)

        result = await self._run("toggle_activity_completion", work)
        logger.info(
            "activity_toggled",
            activity_id=activity_id,
            is_completed=result.activity.is_completed,
            trip_completed=result.trip_completed,
        )
        return result

    async def replace_aggregate(self, user_id: int, trip_id: int, payload: TripAggregateReplace) -> Trip:
        async def work():
            trip = await self._owned_trip(trip_id, user_id)
            if payload.trip is not None:
                changes = payload.trip.changes()
                _check_date_range(trip, changes)
                await crud.update_fields(self.session, trip, changes)

            if payload.hotels is not None:
                await crud.replace_children(self.session, Hotel, trip_id, [h.to_record() for h in payload.hotels])
            if payload.transports is not None:
                await crud.replace_children(self.session, Transport, trip_id, [t.to_record() for t in payload.transports])
            if payload.activities is not None:
                await crud.replace_children(self.session, Activity, trip_id, [a.to_record() for a in payload.activities])
            return trip

        trip = await self._run("update_trip", work)
        logger.info(
            "trip_replaced",
            trip_id=trip_id,
            user_id=user_id,
            replaced=[
                kind for kind in ("hotels", "transports", "activities")
                if getattr(payload, kind) is not None
            ],
        )
        return trip

    async def update_trip(self, user_id: int, trip_id: int, fields: TripUpdate) -> Trip:
        async def work():
            trip = await self._owned_trip(trip_id, user_id)
            changes = fields.changes()
            _check_date_range(trip, changes)
            return await crud.update_fields(self.session, trip, changes)

        trip = await self._run("update_trip", work)
        logger.info("trip_updated", trip_id=trip_id, fields=sorted(fields.changes()))
        return trip

    async def update_hotel(self, user_id: int, hotel_id: int, fields: HotelUpdate) -> Hotel:
        async def work():
            hotel, _ = await self._owned_child(Hotel, hotel_id, user_id, "Hotel")
            return await crud.update_fields(self.session, hotel, fields.changes())

        hotel = await self._run("update_hotel", work)
        logger.info("hotel_updated", hotel_id=hotel_id, fields=sorted(fields.changes()))
        return hotel

    async def update_transport(self, user_id: int, transport_id: int, fields: TransportUpdate) -> Transport:
        async def work():
            transport, _ = await self._owned_child(Transport, transport_id, user_id, "Transport")
            changes = fields.changes()
            _check_transport_fields(transport, changes)
            return await crud.update_fields(self.session, transport, changes)

        transport = await self._run("update_transport", work)
        logger.info("transport_updated", transport_id=transport_id, fields=sorted(fields.changes()))
        return transport

    async def update_activity(self, user_id: int, activity_id: int, fields: ActivityUpdate) -> Activity:
        async def work():
            activity, _ = await self._owned_child(Activity, activity_id, user_id, "Activity")
            return await crud.update_fields(self.session, activity, fields.changes())

        activity = await self._run("update_activity", work)
        logger.info("activity_updated", activity_id=activity_id, fields=sorted(fields.changes()))
        return activity


def _check_date_range(trip: Trip, changes: Dict[str, Any]) -> None:
    start = changes.get("start_date", trip.start_date)
    end = changes.get("end_date", trip.end_date)
    if start and end and end < start:
        raise ValidationError("end_date must not be before start_date.")


def _check_transport_fields(transport: Transport, changes: Dict[str, Any]) -> None:
    """After the merge, only columns of the resulting transport type may hold values"""
    new_type = changes.get("transport_type") or transport.transport_type
    allowed = transport_fields_for(new_type)
    merged: Dict[str, Optional[Any]] = {
        column: changes.get(column, getattr(transport, column))
        for column in (
            "service_provider", "vehicle_type", "booking_ref", "transport_name",
            "seat", "boarding_time",
        )
    }
    stray = sorted(column for column, value in merged.items() if value is not None and column not in allowed)
    if stray:
        raise ValidationError(
            f"Fields {', '.join(stray)} do not apply to {getattr(new_type, 'value', new_type)} transport."
        )
