"""
Request schema behaviour: transport variants, blank-to-null and partial updates
"""

from datetime import time, timezone

import pytest
from pydantic import ValidationError

from tripplanner.api.schemas import (
    ActivityCreate,
    HotelUpdate,
    PlaneTransport,
    ToggleCompletionResponse,
    TripAggregateCreate,
    TripCreate,
    TripUpdate,
    transport_fields_for,
)
from tripplanner.db.models import TransportType


def test_transport_variants_are_selected_by_type():
    payload = TripAggregateCreate.model_validate({
        "trip": {"destination": "X", "start_date": "2024-01-01", "end_date": "2024-01-02"},
        "transports": [
            {"transport_type": "car", "vehicle_type": "SUV", "seat": "1A"},
            {"transport_type": "plane", "transport_name": "LH1", "boarding_time": "07:15"},
        ],
    })
    car, plane = payload.transports

    # seat is not a car field and is dropped
    assert car.to_record()["transport_type"] is TransportType.CAR
    assert "seat" not in car.to_record()
    assert isinstance(plane, PlaneTransport)
    assert plane.boarding_time == time(7, 15)


def test_unknown_transport_type_is_rejected():
    with pytest.raises(ValidationError):
        TripAggregateCreate.model_validate({"transports": [{"transport_type": "flight"}]})


def test_transport_fields_per_type():
    assert "vehicle_type" in transport_fields_for("car")
    assert "boarding_time" not in transport_fields_for("train")
    assert "boarding_time" in transport_fields_for(TransportType.PLANE)


def test_blank_strings_become_null():
    hotel = HotelUpdate.model_validate({"city": "  ", "booking_ref": ""})
    assert hotel.changes() == {"city": None, "booking_ref": None}


def test_required_field_blank_is_rejected():
    with pytest.raises(ValidationError):
        TripCreate.model_validate({"destination": "", "start_date": "2024-01-01", "end_date": "2024-01-02"})


def test_trip_end_before_start_is_rejected():
    with pytest.raises(ValidationError):
        TripCreate.model_validate({"destination": "X", "start_date": "2024-01-05", "end_date": "2024-01-02"})


def test_partial_update_only_reports_supplied_fields():
    assert TripUpdate.model_validate({"group_size": 3}).changes() == {"group_size": 3}
    with pytest.raises(ValidationError):
        TripUpdate.model_validate({"destination": None})


def test_activity_defaults_and_utc():
    activity = ActivityCreate.model_validate({
        "activity_name": "Walk",
        "activity_datetime": "2024-03-01T10:00:00+02:00",
        "is_completed": None,
    })
    assert activity.is_completed is False
    assert activity.activity_datetime.tzinfo == timezone.utc
    assert activity.activity_datetime.hour == 8


def test_naive_datetimes_are_taken_as_utc():
    activity = ActivityCreate.model_validate({"activity_name": "Walk", "activity_datetime": "2024-03-01T10:00:00"})
    assert activity.activity_datetime.tzinfo == timezone.utc
    assert activity.activity_datetime.hour == 10


def test_toggle_response_uses_camel_case_flag():
    response = ToggleCompletionResponse.model_validate({
        "message": "ok",
        "activity": {
            "activity_id": 1,
            "trip_id": 1,
            "activity_name": "Walk",
            "activity_datetime": "2024-03-01T10:00:00Z",
            "is_completed": True,
            "created_at": "2024-03-01T10:00:00Z",
        },
        "tripCompleted": True,
    })
    assert response.trip_completed is True
    assert response.model_dump(by_alias=True)["tripCompleted"] is True
