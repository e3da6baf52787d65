"""
Schedule Administration API Endpoints.

Admins create and maintain the recurring templates trips are generated from.
Schedules are never physically removed; DELETE soft-deletes.
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from shuttle_backend.app.db.session import get_db
from shuttle_backend.app.core.clock import Clock, get_clock
from shuttle_backend.app.core.guards import require_role
from shuttle_backend.app.domain.scheduling.assignment_resolver import resolve_crew
from shuttle_backend.app.domain.scheduling.calendar_matcher import is_active_on, iso_weekday
from shuttle_backend.app.models.enums import ScheduleStatus, UserRole
from shuttle_backend.app.models.route import Route
from shuttle_backend.app.models.schedule import Schedule
from shuttle_backend.app.models.user import User
from shuttle_backend.app.models.vehicle import Vehicle
from shuttle_backend.app.schemas.schedule import (
    ScheduleCreate, ScheduleUpdate, ScheduleResponse, ScheduleListResponse, TripPreviewResponse
)
from shuttle_backend.app.services import scheduling_queries
from shuttle_backend.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/admin/schedules", tags=["Admin - Schedules"])


async def ensure_user_with_role(db: AsyncSession, user_id: int, role: UserRole, label: str) -> User:
    """Referenced crew member must exist, be active and hold ``role``."""
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{label} not found"
        )
    if user.role != role:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"User {user_id} is not a {role.value.lower()}"
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{label} is not active"
        )
    return user


async def _validate_references(db: AsyncSession, values: dict) -> None:
    if values.get("route_id") is not None:
        route = await db.get(Route, values["route_id"])
        if not route or route.deleted_at is not None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Route not found")
    
    if values.get("vehicle_id") is not None:
        vehicle = await db.get(Vehicle, values["vehicle_id"])
        if not vehicle or not vehicle.is_available:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vehicle not found")
    
    if values.get("default_driver_id") is not None:
        await ensure_user_with_role(db, values["default_driver_id"], UserRole.DRIVER, "Driver")
    
    if values.get("default_attendant_id") is not None:
        await ensure_user_with_role(db, values["default_attendant_id"], UserRole.ATTENDANT, "Attendant")


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ScheduleResponse)
async def create_schedule(
    payload: ScheduleCreate,
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a schedule (Admin only).
    
    Validates route, vehicle and crew references. New schedules are active.
    """
    values = payload.model_dump()
    await _validate_references(db, values)
    
    schedule = Schedule(status=ScheduleStatus.ACTIVE, **values)
    db.add(schedule)
    await db.commit()
    await db.refresh(schedule)
    
    await log_event(
        db=db,
        action=AuditAction.SCHEDULE_CREATED,
        actor_id=current_user["user_id"],
        actor_username=current_user.get("sub"),
        entity="schedule",
        entity_id=schedule.id,
        metadata={"name": schedule.name, "days_of_week": schedule.days_of_week}
    )
    
    return schedule


@router.get("", response_model=ScheduleListResponse)
async def list_schedules(
    include_inactive: bool = Query(False, description="Include inactive schedules"),
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """List schedules that are not soft-deleted."""
    query = select(Schedule).where(Schedule.deleted_at.is_(None))
    if not include_inactive:
        query = query.where(Schedule.status == ScheduleStatus.ACTIVE)
    
    result = await db.execute(query.order_by(Schedule.start_time, Schedule.id))
    schedules = result.scalars().all()
    
    return ScheduleListResponse(
        schedules=[ScheduleResponse.model_validate(s) for s in schedules],
        total=len(schedules)
    )


@router.get("/{schedule_id}", response_model=ScheduleResponse)
async def get_schedule(
    schedule_id: int = Path(..., description="Schedule ID"),
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    return await scheduling_queries.get_schedule(db, schedule_id)


@router.patch("/{schedule_id}", response_model=ScheduleResponse)
async def update_schedule(
    payload: ScheduleUpdate,
    schedule_id: int = Path(..., description="Schedule ID"),
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """
    Update a schedule (Admin only).
    
    Covers activate/deactivate, crew and vehicle reassignment, recurrence
    and validity window changes. Existing trips are not touched.
    """
    schedule = await scheduling_queries.get_schedule(db, schedule_id)
    changes = payload.model_dump(exclude_unset=True)
    
    for required in ("name", "start_time", "time_slot", "days_of_week", "status"):
        if required in changes and changes[required] is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{required} cannot be cleared"
            )
    
    await _validate_references(db, changes)
    
    valid_from = changes.get("valid_from", schedule.valid_from)
    valid_to = changes.get("valid_to", schedule.valid_to)
    if valid_from and valid_to and valid_from > valid_to:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="valid_from must not be after valid_to"
        )
    
    for field, value in changes.items():
        setattr(schedule, field, value)
    
    await db.commit()
    await db.refresh(schedule)
    
    await log_event(
        db=db,
        action=AuditAction.SCHEDULE_UPDATED,
        actor_id=current_user["user_id"],
        actor_username=current_user.get("sub"),
        entity="schedule",
        entity_id=schedule.id,
        metadata={"changes": sorted(changes)}
    )
    
    return schedule


@router.delete("/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_schedule(
    schedule_id: int = Path(..., description="Schedule ID"),
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Soft-delete a schedule. Already generated trips are kept."""
    schedule = await scheduling_queries.get_schedule(db, schedule_id)
    schedule.deleted_at = clock.now()
    await db.commit()
    
    await log_event(
        db=db,
        action=AuditAction.SCHEDULE_DELETED,
        actor_id=current_user["user_id"],
        actor_username=current_user.get("sub"),
        entity="schedule",
        entity_id=schedule_id
    )


@router.get("/{schedule_id}/trip-preview", response_model=TripPreviewResponse)
async def preview_trip(
    schedule_id: int = Path(..., description="Schedule ID"),
    trip_date: date = Query(..., description="Date to resolve"),
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """
    Show whether the schedule runs on a date and who would drive it.
    
    Read-only: nothing is generated.
    """
    schedule = await scheduling_queries.get_schedule(db, schedule_id)
    overrides = await scheduling_queries.list_overrides_for_schedule(db, schedule_id)
    crew = resolve_crew(schedule, trip_date, overrides)
    existing = await scheduling_queries.existing_trip_keys_for_date(db, trip_date)
    
    return TripPreviewResponse(
        schedule_id=schedule.id,
        trip_date=trip_date,
        weekday=iso_weekday(trip_date),
        is_active=is_active_on(schedule, trip_date),
        already_generated=schedule.id in existing,
        driver_id=crew.driver_id,
        attendant_id=crew.attendant_id,
        driver_override_id=crew.driver_override_id,
        conflicting_override_ids=list(crew.conflicting_override_ids)
    )
