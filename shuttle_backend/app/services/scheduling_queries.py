"""
Store queries for schedules, overrides, trips and rosters.

Module-level async functions over an ``AsyncSession``; the domain
modules never touch the database themselves.
"""

from datetime import date
from typing import Iterable, List, Set

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from shuttle_backend.app.core.exceptions import ResourceNotFoundError
from shuttle_backend.app.models.driver_assignment import DriverAssignment
from shuttle_backend.app.models.enums import ScheduleStatus, UserRole
from shuttle_backend.app.models.passenger import Passenger
from shuttle_backend.app.models.schedule import Schedule
from shuttle_backend.app.models.trip import Trip
from shuttle_backend.app.models.user import User
from shuttle_backend.app.models.vehicle import Vehicle


async def list_schedule_candidates_for_date(db: AsyncSession, on_date: date) -> List[Schedule]:
    """
    Schedules that may run on ``on_date``.
    
    Filters on status, soft delete and validity window; the weekday check
    is left to the calendar matcher.
    """
    result = await db.execute(
        select(Schedule).where(
            Schedule.status == ScheduleStatus.ACTIVE,
            Schedule.deleted_at.is_(None),
            or_(Schedule.valid_from.is_(None), Schedule.valid_from <= on_date),
            or_(Schedule.valid_to.is_(None), Schedule.valid_to >= on_date),
        ).order_by(Schedule.id)
    )
    return list(result.scalars().all())


async def get_schedule(db: AsyncSession, schedule_id: int, include_deleted: bool = False) -> Schedule:
    """
    Raises:
        ResourceNotFoundError: no such schedule (or soft-deleted)
    """
    query = select(Schedule).where(Schedule.id == schedule_id)
    if not include_deleted:
        query = query.where(Schedule.deleted_at.is_(None))
    result = await db.execute(query)
    schedule = result.scalar_one_or_none()
    if not schedule:
        raise ResourceNotFoundError("Schedule", schedule_id)
    return schedule


async def list_overrides_for_schedule(
    db: AsyncSession,
    schedule_id: int,
    include_deleted: bool = False
) -> List[DriverAssignment]:
    query = select(DriverAssignment).where(DriverAssignment.schedule_id == schedule_id)
    if not include_deleted:
        query = query.where(DriverAssignment.deleted_at.is_(None))
    result = await db.execute(query.order_by(DriverAssignment.start_date, DriverAssignment.id))
    return list(result.scalars().all())


async def list_overrides_covering(
    db: AsyncSession,
    schedule_ids: Iterable[int],
    on_date: date
) -> List[DriverAssignment]:
    """Live overrides of the given schedules whose range contains ``on_date``."""
    ids = list(schedule_ids)
    if not ids:
        return []
    result = await db.execute(
        select(DriverAssignment).where(
            DriverAssignment.schedule_id.in_(ids),
            DriverAssignment.deleted_at.is_(None),
            DriverAssignment.start_date <= on_date,
            DriverAssignment.end_date >= on_date,
        )
    )
    return list(result.scalars().all())


async def get_override(db: AsyncSession, override_id: int) -> DriverAssignment:
    result = await db.execute(
        select(DriverAssignment).where(
            DriverAssignment.id == override_id,
            DriverAssignment.deleted_at.is_(None),
        )
    )
    assignment = result.scalar_one_or_none()
    if not assignment:
        raise ResourceNotFoundError("Driver assignment", override_id)
    return assignment


async def existing_trip_keys_for_date(db: AsyncSession, on_date: date) -> Set[int]:
    """Schedule ids that already have a live trip on ``on_date``."""
    result = await db.execute(
        select(Trip.schedule_id).where(
            Trip.trip_date == on_date,
            Trip.deleted_at.is_(None),
        )
    )
    return set(result.scalars().all())


async def trip_exists(db: AsyncSession, schedule_id: int, on_date: date) -> bool:
    result = await db.execute(
        select(Trip.id).where(
            Trip.schedule_id == schedule_id,
            Trip.trip_date == on_date,
            Trip.deleted_at.is_(None),
        )
    )
    return result.scalar_one_or_none() is not None


async def get_trip(db: AsyncSession, trip_id: int) -> Trip:
    """
    Raises:
        ResourceNotFoundError: no such trip (or soft-deleted)
    """
    result = await db.execute(
        select(Trip).where(Trip.id == trip_id, Trip.deleted_at.is_(None))
    )
    trip = result.scalar_one_or_none()
    if not trip:
        raise ResourceNotFoundError("Trip", trip_id)
    return trip


async def list_trips_for_crew_member(db: AsyncSession, user_id: int, on_date: date) -> List[Trip]:
    result = await db.execute(
        select(Trip).where(
            Trip.trip_date == on_date,
            Trip.deleted_at.is_(None),
            or_(Trip.assigned_driver_id == user_id, Trip.assigned_attendant_id == user_id),
        ).order_by(Trip.id)
    )
    return list(result.scalars().all())


async def list_passengers_for_routes(db: AsyncSession, route_ids: Iterable[int]) -> List[Passenger]:
    """Active passengers currently assigned to any of ``route_ids``."""
    ids = [route_id for route_id in set(route_ids) if route_id is not None]
    if not ids:
        return []
    result = await db.execute(
        select(Passenger).where(
            Passenger.route_id.in_(ids),
            Passenger.is_active.is_(True),
            Passenger.deleted_at.is_(None),
        ).order_by(Passenger.id)
    )
    return list(result.scalars().all())


async def list_available_vehicle_ids(db: AsyncSession) -> Set[int]:
    result = await db.execute(
        select(Vehicle.id).where(
            Vehicle.is_active.is_(True),
            Vehicle.deleted_at.is_(None),
        )
    )
    return set(result.scalars().all())


async def list_available_crew_ids(db: AsyncSession) -> Set[int]:
    """Active driver and attendant accounts; trips are only assigned to these."""
    result = await db.execute(
        select(User.id).where(
            User.is_active.is_(True),
            User.role.in_([UserRole.DRIVER, UserRole.ATTENDANT]),
        )
    )
    return set(result.scalars().all())
