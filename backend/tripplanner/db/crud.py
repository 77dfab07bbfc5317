"""
Repository functions over an injected AsyncSession.

None of these commit: callers own the transaction (see services/). They only
flush so generated keys are available to the rest of the unit of work.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from tripplanner.db.models import User, Trip, Hotel, Transport, Activity

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)

# ===== USER OPERATIONS =====

async def create_user(
    session: AsyncSession,
    name: str,
    email: str,
    password_hash: str,
) -> User:
    """Create a new user"""
    user = User(name=name, email=email, password_hash=password_hash)
    session.add(user)
    await session.flush()
    logger.info(f"Created user {user.user_id}")
    return user

async def get_user_by_id(session: AsyncSession, user_id: int) -> Optional[User]:
    return await session.get(User, user_id)

async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    result = await session.execute(
        select(User).where(User.email == email)
    )
    return result.scalar_one_or_none()

# ===== TRIP OPERATIONS =====

async def create_trip(
    session: AsyncSession,
    user_id: int,
    fields: Dict[str, Any],
) -> Trip:
    """Create a trip owned by user_id; any owner in fields is overridden"""
    values = {k: v for k, v in fields.items() if k not in ("trip_id", "user_id", "is_completed")}
    trip = Trip(user_id=user_id, **values)
    session.add(trip)
    await session.flush()
    logger.info(f"Created trip {trip.trip_id} for user {user_id}")
    return trip

async def get_trip(session: AsyncSession, trip_id: int) -> Optional[Trip]:
    return await session.get(Trip, trip_id)

async def get_latest_trip(session: AsyncSession, user_id: int) -> Optional[Trip]:
    """Most recently created trip for a user"""
    result = await session.execute(
        select(Trip)
        .where(Trip.user_id == user_id)
        .order_by(Trip.created_at.desc(), Trip.trip_id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()

# ===== CHILD ROW OPERATIONS (hotels, transports, activities) =====

def _primary_key(model: Type[SQLModel]):
    return model.__table__.primary_key.columns.values()[0]

async def get_child(session: AsyncSession, model: Type[ModelT], row_id: int) -> Optional[ModelT]:
    return await session.get(model, row_id)

async def list_children(session: AsyncSession, model: Type[ModelT], trip_id: int) -> List[ModelT]:
    """All rows of one child kind for a trip, in insertion order"""
    result = await session.execute(
        select(model)
        .where(model.trip_id == trip_id)
        .order_by(_primary_key(model))
    )
    return list(result.scalars().all())

async def create_children(
    session: AsyncSession,
    model: Type[ModelT],
    trip_id: int,
    rows: Iterable[Dict[str, Any]],
) -> List[ModelT]:
    created = []
    for values in rows:
        values = {k: v for k, v in values.items() if k != "trip_id"}
        obj = model(trip_id=trip_id, **values)
        session.add(obj)
        created.append(obj)
    await session.flush()
    if created:
        logger.info(f"Created {len(created)} {model.__tablename__} rows for trip {trip_id}")
    return created

async def delete_children(session: AsyncSession, model: Type[SQLModel], trip_id: int) -> int:
    result = await session.execute(
        delete(model).where(model.trip_id == trip_id)
    )
    logger.info(f"Deleted {result.rowcount} {model.__tablename__} rows for trip {trip_id}")
    return result.rowcount

async def replace_children(
    session: AsyncSession,
    model: Type[ModelT],
    trip_id: int,
    rows: Iterable[Dict[str, Any]],
) -> List[ModelT]:
    """Full replace: drop every existing row of this kind, then insert rows"""
    await delete_children(session, model, trip_id)
    return await create_children(session, model, trip_id, rows)

# ===== GENERIC UPDATE =====

async def update_fields(session: AsyncSession, obj: ModelT, fields: Dict[str, Any]) -> ModelT:
    """Shallow merge of fields into a loaded row"""
    for key, value in fields.items():
        setattr(obj, key, value)
    session.add(obj)
    await session.flush()
    await session.refresh(obj)
    return obj
