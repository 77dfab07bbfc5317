from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Optional

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, Enum as SAEnum, Index, CheckConstraint, Text


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo) and convert aware ones"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# Enums
class TransportType(str, Enum):
    CAR = "car"
    BUS = "bus"
    TRAIN = "train"
    PLANE = "plane"


def _created_at_column() -> Column:
    return Column(DateTime(timezone=True), nullable=False, default=utcnow)


# Models
class User(SQLModel, table=True):
    __tablename__ = "users"

    __table_args__ = (
        CheckConstraint('length(email) > 0', name='check_email_not_empty'),
    )

    user_id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, nullable=False)
    email: str = Field(
        max_length=255,
        unique=True,
        index=True,
        nullable=False,
        description="Login identifier, stored lower-cased"
    )
    password_hash: str = Field(
        max_length=255,
        nullable=False,
        description="Salted bcrypt hash"
    )
    created_at: datetime = Field(default_factory=utcnow, sa_column=_created_at_column())


class Trip(SQLModel, table=True):
    __tablename__ = "trips"

    __table_args__ = (
        Index('idx_trips_user_created', 'user_id', 'created_at'),
        CheckConstraint('start_date <= end_date', name='check_valid_date_range'),
        CheckConstraint('group_size IS NULL OR group_size >= 1', name='check_group_size'),
    )

    trip_id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(
        foreign_key="users.user_id",
        nullable=False,
        description="Owner of this trip"
    )
    destination: str = Field(max_length=255, nullable=False)
    start_date: date = Field(nullable=False)
    end_date: date = Field(nullable=False)
    group_size: Optional[int] = Field(default=None)
    is_completed: bool = Field(default=False, nullable=False)
    created_at: datetime = Field(default_factory=utcnow, sa_column=_created_at_column())


class Hotel(SQLModel, table=True):
    __tablename__ = "hotels"

    hotel_id: Optional[int] = Field(default=None, primary_key=True)
    trip_id: int = Field(foreign_key="trips.trip_id", index=True, nullable=False)
    hotel_name: str = Field(max_length=255, nullable=False)
    city: Optional[str] = Field(default=None, max_length=100)
    address: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    checkin_date: Optional[date] = Field(default=None)
    checkout_date: Optional[date] = Field(default=None)
    booking_ref: Optional[str] = Field(default=None, max_length=100)
    created_at: datetime = Field(default_factory=utcnow, sa_column=_created_at_column())


class Transport(SQLModel, table=True):
    __tablename__ = "transports"

    transport_id: Optional[int] = Field(default=None, primary_key=True)
    trip_id: int = Field(foreign_key="trips.trip_id", index=True, nullable=False)
    transport_type: TransportType = Field(
        sa_column=Column(
            SAEnum(
                TransportType,
                name="transporttype",
                values_callable=lambda enum: [member.value for member in enum],
            ),
            nullable=False,
        )
    )
    service_provider: Optional[str] = Field(default=None, max_length=100)
    vehicle_type: Optional[str] = Field(default=None, max_length=100)
    booking_ref: Optional[str] = Field(default=None, max_length=100)
    # bus name, train name or flight number
    transport_name: Optional[str] = Field(default=None, max_length=100)
    seat: Optional[str] = Field(default=None, max_length=20)
    boarding_time: Optional[time] = Field(default=None)
    departure_city: Optional[str] = Field(default=None, max_length=100)
    arrival_city: Optional[str] = Field(default=None, max_length=100)
    departure_date: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    arrival_date: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    created_at: datetime = Field(default_factory=utcnow, sa_column=_created_at_column())


class Activity(SQLModel, table=True):
    __tablename__ = "activities"

    activity_id: Optional[int] = Field(default=None, primary_key=True)
    trip_id: int = Field(foreign_key="trips.trip_id", index=True, nullable=False)
    activity_name: str = Field(max_length=255, nullable=False)
    activity_description: Optional[str] = Field(
        default=None, sa_column=Column(Text, nullable=True)
    )
    activity_datetime: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    pickup_location: Optional[str] = Field(default=None, max_length=255)
    is_completed: bool = Field(default=False, nullable=False)
    created_at: datetime = Field(default_factory=utcnow, sa_column=_created_at_column())
