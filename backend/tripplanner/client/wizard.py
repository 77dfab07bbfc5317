"""
Step-by-step collection of a trip and its conversion to the aggregate payload
accepted by POST /api/trips/test-save.

The steps mirror the web form: basics, transports, hotels, activities. Form
values are kept as entered (blank strings allowed); build_payload() collapses
transport fields per type and turns every blank into null.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from tripplanner.api.schemas import transport_fields_for

# Family trips default to a group of four, everything else to two
FAMILY_GROUP_SIZE = 4
DEFAULT_GROUP_SIZE = 2

TRANSPORT_TYPE_ALIASES = {"flight": "plane"}


class WizardError(Exception):
    """Raised when a step is submitted out of order"""


@dataclass
class TransportForm:
    transport_type: str = "car"
    service_provider: str = ""
    vehicle_type: str = ""
    booking_id: str = ""
    bus_company: str = ""
    bus_number: str = ""
    bus_name: str = ""
    pnr: str = ""
    train_company: str = ""
    train_number: str = ""
    train_name: str = ""
    airline: str = ""
    flight_number: str = ""
    booking_reference: str = ""
    seat_number: str = ""
    boarding_time: str = ""
    departure_city: str = ""
    arrival_city: str = ""
    departure_date: str = ""
    arrival_date: str = ""


@dataclass
class HotelForm:
    hotel_name: str = ""
    city: str = ""
    address: str = ""
    check_in_date: str = ""
    check_out_date: str = ""
    booking_reference: str = ""


@dataclass
class ActivityForm:
    activity_name: str = ""
    description: str = ""
    date: str = ""
    pickup: str = ""
    completed: bool = False


def empty_to_null(obj: Any) -> Any:
    """Recursively replace empty strings and missing values with None"""
    if isinstance(obj, list):
        return [empty_to_null(item) for item in obj]
    if isinstance(obj, dict):
        return {key: None if value == "" else empty_to_null(value) for key, value in obj.items()}
    return obj


def _parse_datetime(value: str) -> datetime:
    # trailing Z means UTC
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def _iso_date(value: str) -> str:
    if not value:
        return ""
    return _parse_datetime(value).date().isoformat()


def _iso_datetime(value: str) -> str:
    if not value:
        return ""
    return _parse_datetime(value).isoformat()


def _first(*values: str) -> str:
    return next((v for v in values if v), "")


def format_transport(form: TransportForm) -> Dict[str, Any]:
    transport_type = TRANSPORT_TYPE_ALIASES.get(form.transport_type, form.transport_type)
    collapsed = {
        "transport_type": transport_type,
        "service_provider": _first(form.service_provider, form.bus_company, form.train_company, form.airline),
        "vehicle_type": form.vehicle_type,
        "booking_ref": _first(form.booking_id, form.pnr, form.booking_reference),
        "transport_name": _first(form.bus_name, form.bus_number, form.train_name, form.train_number, form.flight_number),
        "seat": form.seat_number,
        "boarding_time": form.boarding_time,
        "departure_city": form.departure_city,
        "arrival_city": form.arrival_city,
        "departure_date": _iso_datetime(form.departure_date),
        "arrival_date": _iso_datetime(form.arrival_date),
    }
    allowed = transport_fields_for(transport_type)
    return {key: value for key, value in collapsed.items() if key in allowed}


def format_hotel(form: HotelForm) -> Dict[str, Any]:
    return {
        "hotel_name": form.hotel_name,
        "city": form.city,
        "address": form.address,
        "checkin_date": _iso_date(form.check_in_date),
        "checkout_date": _iso_date(form.check_out_date),
        "booking_ref": form.booking_reference,
    }


def format_activity(form: ActivityForm) -> Dict[str, Any]:
    return {
        "activity_name": form.activity_name,
        "activity_description": form.description,
        "activity_datetime": _iso_datetime(form.date),
        "pickup_location": form.pickup,
        "is_completed": form.completed,
    }


@dataclass
class TripWizard:
    destination: str = ""
    travel_type: str = "solo"
    transports: List[TransportForm] = field(default_factory=list)
    hotels: List[HotelForm] = field(default_factory=list)
    activities: List[ActivityForm] = field(default_factory=list)
    step: int = 1

    def _expect(self, step: int) -> None:
        if self.step != step:
            raise WizardError(f"Expected step {self.step}, got step {step}")

    def submit_basics(self, destination: str, travel_type: str = "solo") -> None:
        self._expect(1)
        self.destination = destination
        self.travel_type = travel_type
        self.step = 2

    def submit_transports(self, transports: List[TransportForm]) -> None:
        self._expect(2)
        self.transports = list(transports)
        self.step = 3

    def submit_hotels(self, hotels: List[HotelForm]) -> None:
        self._expect(3)
        self.hotels = list(hotels)
        self.step = 4

    def submit_activities(self, activities: List[ActivityForm]) -> Dict[str, Any]:
        """Last step: returns the payload ready to post"""
        self._expect(4)
        self.activities = list(activities)
        self.step = 5
        return self.build_payload()

    def _trip_dates(self):
        first_transport: Optional[TransportForm] = self.transports[0] if self.transports else None
        first_hotel: Optional[HotelForm] = self.hotels[0] if self.hotels else None
        last_hotel: Optional[HotelForm] = self.hotels[-1] if self.hotels else None

        start = _first(
            first_hotel.check_in_date if first_hotel else "",
            first_transport.departure_date if first_transport else "",
        )
        end = _first(
            last_hotel.check_out_date if last_hotel else "",
            first_transport.arrival_date if first_transport else "",
        )
        return _iso_date(start), _iso_date(end)

    def build_payload(self) -> Dict[str, Any]:
        start_date, end_date = self._trip_dates()
        payload = {
            "trip": {
                "destination": self.destination.strip().upper(),
                "start_date": start_date,
                "end_date": end_date,
                "group_size": FAMILY_GROUP_SIZE if self.travel_type == "family" else DEFAULT_GROUP_SIZE,
            },
            "hotels": [format_hotel(h) for h in self.hotels],
            "transports": [format_transport(t) for t in self.transports],
            "activities": [format_activity(a) for a in self.activities],
        }
        return empty_to_null(payload)
