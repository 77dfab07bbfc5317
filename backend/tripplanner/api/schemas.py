from datetime import date, datetime, time
from typing import Annotated, Any, ClassVar, Dict, List, Literal, Optional, Type, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)

from tripplanner.db.models import TransportType, as_utc


class PayloadModel(BaseModel):
    """Request body base: unknown keys are dropped and blank strings become null"""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    @model_validator(mode="before")
    @classmethod
    def blank_strings_to_none(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                key: None if isinstance(value, str) and not value.strip() else value
                for key, value in data.items()
            }
        return data


class PartialPayloadModel(PayloadModel):
    """Patch body: only supplied keys are applied; required columns may not be nulled"""

    non_nullable: ClassVar[tuple] = ()

    @model_validator(mode="after")
    def reject_null_required(self):
        for name in self.non_nullable:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class ReadModel(BaseModel):
    """Response base: built from ORM rows, datetimes always reported in UTC"""

    model_config = ConfigDict(from_attributes=True)

    @field_validator('*')
    @classmethod
    def datetimes_in_utc(cls, v):
        return as_utc(v) if isinstance(v, datetime) else v


# ===== AUTH SCHEMAS =====

class RegisterRequest(PayloadModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class LoginRequest(PayloadModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class TokenIdentity(BaseModel):
    """Decoded session token attached to the request"""
    user_id: int
    email: str


class UserRead(ReadModel):
    user_id: int
    name: str
    email: str


class UserResponse(BaseModel):
    user: UserRead


class MessageResponse(BaseModel):
    message: str


# ===== TRIP SCHEMAS =====

class TripCreate(PayloadModel):
    destination: str = Field(..., min_length=1, max_length=255)
    start_date: date
    end_date: date
    group_size: Optional[int] = Field(default=None, ge=1)

    @model_validator(mode="after")
    def check_date_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class TripUpdate(PartialPayloadModel):
    non_nullable: ClassVar[tuple] = ("destination", "start_date", "end_date")

    destination: Optional[str] = Field(default=None, min_length=1, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    group_size: Optional[int] = Field(default=None, ge=1)


class TripRead(ReadModel):
    trip_id: int
    user_id: int
    destination: str
    start_date: date
    end_date: date
    group_size: Optional[int] = None
    is_completed: bool
    created_at: datetime


# ===== HOTEL SCHEMAS =====

class HotelCreate(PayloadModel):
    hotel_name: str = Field(..., min_length=1, max_length=255)
    city: Optional[str] = Field(default=None, max_length=100)
    address: Optional[str] = None
    checkin_date: Optional[date] = None
    checkout_date: Optional[date] = None
    booking_ref: Optional[str] = Field(default=None, max_length=100)

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump()


class HotelUpdate(PartialPayloadModel):
    non_nullable: ClassVar[tuple] = ("hotel_name",)

    hotel_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    city: Optional[str] = Field(default=None, max_length=100)
    address: Optional[str] = None
    checkin_date: Optional[date] = None
    checkout_date: Optional[date] = None
    booking_ref: Optional[str] = Field(default=None, max_length=100)


class HotelRead(ReadModel):
    hotel_id: int
    trip_id: int
    hotel_name: str
    city: Optional[str] = None
    address: Optional[str] = None
    checkin_date: Optional[date] = None
    checkout_date: Optional[date] = None
    booking_ref: Optional[str] = None
    created_at: datetime


# ===== TRANSPORT SCHEMAS =====
# One variant per transport type; all of them collapse into the transports table.

class TransportLeg(PayloadModel):
    departure_city: Optional[str] = Field(default=None, max_length=100)
    arrival_city: Optional[str] = Field(default=None, max_length=100)
    departure_date: Optional[datetime] = None
    arrival_date: Optional[datetime] = None

    @field_validator('departure_date', 'arrival_date')
    @classmethod
    def normalize_to_utc(cls, v):
        return as_utc(v)

    def to_record(self) -> Dict[str, Any]:
        record = self.model_dump()
        record["transport_type"] = TransportType(record["transport_type"])
        return record


class CarTransport(TransportLeg):
    transport_type: Literal["car"]
    service_provider: Optional[str] = Field(default=None, max_length=100)
    vehicle_type: Optional[str] = Field(default=None, max_length=100)
    booking_ref: Optional[str] = Field(default=None, max_length=100)


class BusTransport(TransportLeg):
    transport_type: Literal["bus"]
    service_provider: Optional[str] = Field(default=None, max_length=100)
    transport_name: Optional[str] = Field(default=None, max_length=100)
    booking_ref: Optional[str] = Field(default=None, max_length=100)
    seat: Optional[str] = Field(default=None, max_length=20)


class TrainTransport(TransportLeg):
    transport_type: Literal["train"]
    service_provider: Optional[str] = Field(default=None, max_length=100)
    transport_name: Optional[str] = Field(default=None, max_length=100)
    booking_ref: Optional[str] = Field(default=None, max_length=100)  # PNR
    seat: Optional[str] = Field(default=None, max_length=20)


class PlaneTransport(TransportLeg):
    transport_type: Literal["plane"]
    service_provider: Optional[str] = Field(default=None, max_length=100)  # airline
    transport_name: Optional[str] = Field(default=None, max_length=100)  # flight number
    booking_ref: Optional[str] = Field(default=None, max_length=100)
    seat: Optional[str] = Field(default=None, max_length=20)
    boarding_time: Optional[time] = None


TransportCreate = Annotated[
    Union[CarTransport, BusTransport, TrainTransport, PlaneTransport],
    Field(discriminator="transport_type"),
]

TRANSPORT_VARIANTS: Dict[str, Type[TransportLeg]] = {
    "car": CarTransport,
    "bus": BusTransport,
    "train": TrainTransport,
    "plane": PlaneTransport,
}


def transport_fields_for(transport_type: Union[str, TransportType]) -> set:
    """Columns a transport of this type may populate"""
    key = TransportType(transport_type).value
    return set(TRANSPORT_VARIANTS[key].model_fields)


class TransportUpdate(PartialPayloadModel):
    non_nullable: ClassVar[tuple] = ("transport_type",)

    transport_type: Optional[TransportType] = None
    service_provider: Optional[str] = Field(default=None, max_length=100)
    vehicle_type: Optional[str] = Field(default=None, max_length=100)
    booking_ref: Optional[str] = Field(default=None, max_length=100)
    transport_name: Optional[str] = Field(default=None, max_length=100)
    seat: Optional[str] = Field(default=None, max_length=20)
    boarding_time: Optional[time] = None
    departure_city: Optional[str] = Field(default=None, max_length=100)
    arrival_city: Optional[str] = Field(default=None, max_length=100)
    departure_date: Optional[datetime] = None
    arrival_date: Optional[datetime] = None

    @field_validator('departure_date', 'arrival_date')
    @classmethod
    def normalize_to_utc(cls, v):
        return as_utc(v)


class TransportRead(ReadModel):
    transport_id: int
    trip_id: int
    transport_type: TransportType
    service_provider: Optional[str] = None
    vehicle_type: Optional[str] = None
    booking_ref: Optional[str] = None
    transport_name: Optional[str] = None
    seat: Optional[str] = None
    boarding_time: Optional[time] = None
    departure_city: Optional[str] = None
    arrival_city: Optional[str] = None
    departure_date: Optional[datetime] = None
    arrival_date: Optional[datetime] = None
    created_at: datetime


# ===== ACTIVITY SCHEMAS =====

class ActivityCreate(PayloadModel):
    activity_name: str = Field(..., min_length=1, max_length=255)
    activity_description: Optional[str] = None
    activity_datetime: datetime
    pickup_location: Optional[str] = Field(default=None, max_length=255)
    is_completed: bool = False

    @field_validator('activity_datetime')
    @classmethod
    def normalize_to_utc(cls, v):
        return as_utc(v)

    @field_validator('is_completed', mode='before')
    @classmethod
    def default_completion(cls, v):
        return False if v is None else v

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump()


class ActivityUpdate(PartialPayloadModel):
    """Completion is not patchable here; it only changes through the toggle endpoint"""
    non_nullable: ClassVar[tuple] = ("activity_name", "activity_datetime")

    activity_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    activity_description: Optional[str] = None
    activity_datetime: Optional[datetime] = None
    pickup_location: Optional[str] = Field(default=None, max_length=255)

    @field_validator('activity_datetime')
    @classmethod
    def normalize_to_utc(cls, v):
        return as_utc(v)


class ActivityRead(ReadModel):
    activity_id: int
    trip_id: int
    activity_name: str
    activity_description: Optional[str] = None
    activity_datetime: datetime
    pickup_location: Optional[str] = None
    is_completed: bool
    created_at: datetime


# ===== AGGREGATE SCHEMAS =====

class TripAggregateCreate(PayloadModel):
    trip: Optional[TripCreate] = None
    hotels: Optional[List[HotelCreate]] = None
    transports: Optional[List[TransportCreate]] = None
    activities: Optional[List[ActivityCreate]] = None


class TripAggregateReplace(PayloadModel):
    """Full replace body; a child list that is present (even empty) replaces that kind"""
    trip: Optional[TripUpdate] = None
    hotels: Optional[List[HotelCreate]] = None
    transports: Optional[List[TransportCreate]] = None
    activities: Optional[List[ActivityCreate]] = None


class TripAggregateRead(BaseModel):
    trip: TripRead
    hotels: List[HotelRead]
    transports: List[TransportRead]
    activities: List[ActivityRead]


class TripPatchRequest(PayloadModel):
    trip: TripUpdate


class HotelPatchRequest(PayloadModel):
    hotel: HotelUpdate


class TransportPatchRequest(PayloadModel):
    transport: TransportUpdate


class ActivityPatchRequest(PayloadModel):
    activity: ActivityUpdate


class TripCreatedResponse(BaseModel):
    message: str
    trip_id: int


class TripUpdatedResponse(BaseModel):
    message: str
    trip: TripRead


class HotelUpdatedResponse(BaseModel):
    message: str
    hotel: HotelRead


class TransportUpdatedResponse(BaseModel):
    message: str
    transport: TransportRead


class ActivityUpdatedResponse(BaseModel):
    message: str
    activity: ActivityRead


class ToggleCompletionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    activity: ActivityRead
    trip_completed: bool = Field(alias="tripCompleted")
