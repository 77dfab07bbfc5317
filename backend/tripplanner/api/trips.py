from typing import Annotated

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from tripplanner.api.schemas import (
    ActivityPatchRequest,
    ActivityRead,
    ActivityUpdatedResponse,
    HotelPatchRequest,
    HotelRead,
    HotelUpdatedResponse,
    MessageResponse,
    ToggleCompletionResponse,
    TokenIdentity,
    TransportPatchRequest,
    TransportRead,
    TransportUpdatedResponse,
    TripAggregateCreate,
    TripAggregateRead,
    TripAggregateReplace,
    TripCreatedResponse,
    TripPatchRequest,
    TripRead,
    TripUpdatedResponse,
)
from tripplanner.core.security import get_current_identity
from tripplanner.db.session import get_session
from tripplanner.services.trips import TripService

router = APIRouter(prefix="/trips", tags=["trips"])

# Primary keys are 32-bit INTEGER columns
MAX_ROW_ID = 2**31 - 1
RowId = Annotated[int, Path(ge=1, le=MAX_ROW_ID)]


def get_trip_service(session: AsyncSession = Depends(get_session)) -> TripService:
    return TripService(session)


@router.post("/test-save",
    response_model=TripCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Trip data missing or invalid"},
        401: {"description": "Not logged in"},
        404: {"description": "User not found"},
        500: {"description": "Failed to create trip"},
    },
    summary="Save a trip with its hotels, transports and activities",
)
async def save_trip_aggregate(
    payload: TripAggregateCreate,
    identity: TokenIdentity = Depends(get_current_identity),
    service: TripService = Depends(get_trip_service),
):
    trip = await service.create_aggregate(identity.user_id, payload)
    return TripCreatedResponse(
        message="Trip and related data created successfully.",
        trip_id=trip.trip_id,
    )


@router.get("/latest",
    response_model=TripAggregateRead,
    responses={404: {"description": "No trips found for this user"}},
    summary="Most recent trip with all related data",
)
async def get_latest_trip(
    identity: TokenIdentity = Depends(get_current_identity),
    service: TripService = Depends(get_trip_service),
):
    aggregate = await service.get_latest(identity.user_id)
    return TripAggregateRead(
        trip=TripRead.model_validate(aggregate.trip),
        hotels=[HotelRead.model_validate(h) for h in aggregate.hotels],
        transports=[TransportRead.model_validate(t) for t in aggregate.transports],
        activities=[ActivityRead.model_validate(a) for a in aggregate.activities],
    )


@router.patch("/activities/{activity_id}/toggle-completed",
    response_model=ToggleCompletionResponse,
    responses={
        403: {"description": "Activity belongs to another user's trip"},
        404: {"description": "Activity not found"},
    },
    summary="Toggle activity completion and maybe complete the trip",
)
async def toggle_activity_completed(
    activity_id: RowId,
    identity: TokenIdentity = Depends(get_current_identity),
    service: TripService = Depends(get_trip_service),
):
    result = await service.toggle_activity_completion(identity.user_id, activity_id)
    return ToggleCompletionResponse(
        message="Activity completion toggled.",
        activity=ActivityRead.model_validate(result.activity),
        trip_completed=result.trip_completed,
    )


@router.patch("/hotels/{hotel_id}",
    response_model=HotelUpdatedResponse,
    responses={403: {"description": "Forbidden"}, 404: {"description": "Hotel not found"}},
)
async def partial_update_hotel(
    hotel_id: RowId,
    body: HotelPatchRequest,
    identity: TokenIdentity = Depends(get_current_identity),
    service: TripService = Depends(get_trip_service),
):
    hotel = await service.update_hotel(identity.user_id, hotel_id, body.hotel)
    return HotelUpdatedResponse(message="Hotel updated successfully.", hotel=HotelRead.model_validate(hotel))


@router.patch("/transports/{transport_id}",
    response_model=TransportUpdatedResponse,
    responses={403: {"description": "Forbidden"}, 404: {"description": "Transport not found"}},
)
async def partial_update_transport(
    transport_id: RowId,
    body: TransportPatchRequest,
    identity: TokenIdentity = Depends(get_current_identity),
    service: TripService = Depends(get_trip_service),
):
    transport = await service.update_transport(identity.user_id, transport_id, body.transport)
    return TransportUpdatedResponse(
        message="Transport updated successfully.",
        transport=TransportRead.model_validate(transport),
    )


@router.patch("/activities/{activity_id}",
    response_model=ActivityUpdatedResponse,
    responses={403: {"description": "Forbidden"}, 404: {"description": "Activity not found"}},
)
async def partial_update_activity(
    activity_id: RowId,
    body: ActivityPatchRequest,
    identity: TokenIdentity = Depends(get_current_identity),
    service: TripService = Depends(get_trip_service),
):
    activity = await service.update_activity(identity.user_id, activity_id, body.activity)
    return ActivityUpdatedResponse(
        message="Activity updated successfully.",
        activity=ActivityRead.model_validate(activity),
    )


@router.put("/{trip_id}",
    response_model=MessageResponse,
    responses={403: {"description": "Forbidden or trip not found"}},
    summary="Replace a trip and, per supplied list, all of its related rows",
)
async def replace_trip_aggregate(
    trip_id: RowId,
    payload: TripAggregateReplace,
    identity: TokenIdentity = Depends(get_current_identity),
    service: TripService = Depends(get_trip_service),
):
    await service.replace_aggregate(identity.user_id, trip_id, payload)
    return MessageResponse(message="Trip and related data updated successfully.")


@router.patch("/{trip_id}",
    response_model=TripUpdatedResponse,
    responses={403: {"description": "Forbidden or trip not found"}},
)
async def partial_update_trip(
    trip_id: RowId,
    body: TripPatchRequest,
    identity: TokenIdentity = Depends(get_current_identity),
    service: TripService = Depends(get_trip_service),
):
    trip = await service.update_trip(identity.user_id, trip_id, body.trip)
    return TripUpdatedResponse(message="Trip updated successfully.", trip=TripRead.model_validate(trip))
