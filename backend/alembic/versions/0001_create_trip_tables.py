"""create users, trips, hotels, transports and activities

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

transport_type = sa.Enum("car", "bus", "train", "plane", name="transporttype")


def _created_at():
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())


def upgrade():
    op.create_table(
        "users",
        sa.Column("user_id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        _created_at(),
        sa.CheckConstraint("length(email) > 0", name="check_email_not_empty"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "trips",
        sa.Column("trip_id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("destination", sa.String(length=255), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("group_size", sa.Integer(), nullable=True),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
        sa.CheckConstraint("start_date <= end_date", name="check_valid_date_range"),
        sa.CheckConstraint("group_size IS NULL OR group_size >= 1", name="check_group_size"),
    )
    op.create_index("idx_trips_user_created", "trips", ["user_id", "created_at"])

    op.create_table(
        "hotels",
        sa.Column("hotel_id", sa.Integer(), primary_key=True),
        sa.Column("trip_id", sa.Integer(), sa.ForeignKey("trips.trip_id"), nullable=False),
        sa.Column("hotel_name", sa.String(length=255), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("checkin_date", sa.Date(), nullable=True),
        sa.Column("checkout_date", sa.Date(), nullable=True),
        sa.Column("booking_ref", sa.String(length=100), nullable=True),
        _created_at(),
    )
    op.create_index("ix_hotels_trip_id", "hotels", ["trip_id"])

    op.create_table(
        "transports",
        sa.Column("transport_id", sa.Integer(), primary_key=True),
        sa.Column("trip_id", sa.Integer(), sa.ForeignKey("trips.trip_id"), nullable=False),
        sa.Column("transport_type", transport_type, nullable=False),
        sa.Column("service_provider", sa.String(length=100), nullable=True),
        sa.Column("vehicle_type", sa.String(length=100), nullable=True),
        sa.Column("booking_ref", sa.String(length=100), nullable=True),
        sa.Column("transport_name", sa.String(length=100), nullable=True),
        sa.Column("seat", sa.String(length=20), nullable=True),
        sa.Column("boarding_time", sa.Time(), nullable=True),
        sa.Column("departure_city", sa.String(length=100), nullable=True),
        sa.Column("arrival_city", sa.String(length=100), nullable=True),
        sa.Column("departure_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("arrival_date", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index("ix_transports_trip_id", "transports", ["trip_id"])

    op.create_table(
        "activities",
        sa.Column("activity_id", sa.Integer(), primary_key=True),
        sa.Column("trip_id", sa.Integer(), sa.ForeignKey("trips.trip_id"), nullable=False),
        sa.Column("activity_name", sa.String(length=255), nullable=False),
        sa.Column("activity_description", sa.Text(), nullable=True),
        sa.Column("activity_datetime", sa.DateTime(timezone=True), nullable=False),
        sa.Column("pickup_location", sa.String(length=255), nullable=True),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
    )
    op.create_index("ix_activities_trip_id", "activities", ["trip_id"])


def downgrade():
    op.drop_index("ix_activities_trip_id", table_name="activities")
    op.drop_table("activities")
    op.drop_index("ix_transports_trip_id", table_name="transports")
    op.drop_table("transports")
    transport_type.drop(op.get_bind(), checkfirst=True)
    op.drop_index("ix_hotels_trip_id", table_name="hotels")
    op.drop_table("hotels")
    op.drop_index("idx_trips_user_created", table_name="trips")
    op.drop_table("trips")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
