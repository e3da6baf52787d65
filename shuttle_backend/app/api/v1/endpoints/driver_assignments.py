"""
Driver Assignment (Override) API Endpoints.

Admins substitute a schedule's driver (and optionally attendant) for a
date range without touching the schedule itself.
"""

from datetime import date

from fastapi import APIRouter, Depends, status, Path
from sqlalchemy.ext.asyncio import AsyncSession

from shuttle_backend.app.db.session import get_db
from shuttle_backend.app.core.clock import Clock, get_clock
from shuttle_backend.app.core.exceptions import OverlappingAssignmentError
from shuttle_backend.app.core.guards import require_role
from shuttle_backend.app.domain.scheduling import overrides as override_commands
from shuttle_backend.app.models.driver_assignment import DriverAssignment
from shuttle_backend.app.models.enums import UserRole
from shuttle_backend.app.schemas.driver_assignment import (
    DriverAssignmentCreate, DriverAssignmentResponse, DriverAssignmentListResponse, PeriodChange
)
from shuttle_backend.app.services import scheduling_queries
from shuttle_backend.app.services.audit import log_event, AuditAction
from shuttle_backend.app.api.v1.endpoints.schedules import ensure_user_with_role

router = APIRouter(prefix="/admin", tags=["Admin - Driver Assignments"])


def to_response(assignment: DriverAssignment, today: date) -> DriverAssignmentResponse:
    return DriverAssignmentResponse(
        id=assignment.id,
        schedule_id=assignment.schedule_id,
        driver_id=assignment.driver_id,
        attendant_id=assignment.attendant_id,
        start_date=assignment.start_date,
        end_date=assignment.end_date,
        reason=assignment.reason,
        approved_by=assignment.approved_by,
        approved_at=assignment.approved_at,
        created_by=assignment.created_by,
        period_days=override_commands.period_days(assignment),
        is_approved=override_commands.is_approved(assignment),
        is_current=override_commands.is_current(assignment, today)
    )


async def _ensure_no_overlap(db: AsyncSession, schedule_id: int, start_date, end_date, exclude_id: int = None):
    existing = await scheduling_queries.list_overrides_for_schedule(db, schedule_id)
    overlapping = override_commands.find_overlaps(existing, start_date, end_date, exclude_id=exclude_id)
    if overlapping:
        raise OverlappingAssignmentError(schedule_id, [a.id for a in overlapping])


async def _audit(db: AsyncSession, action: str, current_user: dict, assignment: DriverAssignment):
    await log_event(
        db=db,
        action=action,
        actor_id=current_user["user_id"],
        actor_username=current_user.get("sub"),
        entity="driver_assignment",
        entity_id=assignment.id,
        metadata={
            "schedule_id": assignment.schedule_id,
            "driver_id": assignment.driver_id,
            "start_date": str(assignment.start_date),
            "end_date": str(assignment.end_date)
        }
    )


@router.post(
    "/schedules/{schedule_id}/overrides",
    status_code=status.HTTP_201_CREATED,
    response_model=DriverAssignmentResponse
)
async def create_override(
    payload: DriverAssignmentCreate,
    schedule_id: int = Path(..., description="Schedule ID"),
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """
    Substitute the driver of a schedule for an inclusive date range.
    
    Validates:
    - Schedule exists
    - Substitute driver (and attendant) exist, are active and hold the role
    - Range does not overlap another live override of the schedule
    """
    await scheduling_queries.get_schedule(db, schedule_id)
    await ensure_user_with_role(db, payload.driver_id, UserRole.DRIVER, "Driver")
    if payload.attendant_id is not None:
        await ensure_user_with_role(db, payload.attendant_id, UserRole.ATTENDANT, "Attendant")
    
    await _ensure_no_overlap(db, schedule_id, payload.start_date, payload.end_date)
    
    assignment = DriverAssignment(
        schedule_id=schedule_id,
        created_by=current_user["user_id"],
        **payload.model_dump()
    )
    db.add(assignment)
    await db.commit()
    await db.refresh(assignment)
    
    await _audit(db, AuditAction.OVERRIDE_CREATED, current_user, assignment)
    
    return to_response(assignment, clock.today())


@router.get("/schedules/{schedule_id}/overrides", response_model=DriverAssignmentListResponse)
async def list_overrides(
    schedule_id: int = Path(..., description="Schedule ID"),
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    await scheduling_queries.get_schedule(db, schedule_id)
    assignments = await scheduling_queries.list_overrides_for_schedule(db, schedule_id)
    
    return DriverAssignmentListResponse(
        assignments=[to_response(a, clock.today()) for a in assignments],
        total=len(assignments)
    )


@router.post("/overrides/{override_id}/approve", response_model=DriverAssignmentResponse)
async def approve_override(
    override_id: int = Path(..., description="Override ID"),
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    assignment = await scheduling_queries.get_override(db, override_id)
    override_commands.approve(assignment, current_user["user_id"], clock.now())
    await db.commit()
    await db.refresh(assignment)
    
    await _audit(db, AuditAction.OVERRIDE_APPROVED, current_user, assignment)
    
    return to_response(assignment, clock.today())


@router.post("/overrides/{override_id}/extend", response_model=DriverAssignmentResponse)
async def extend_override(
    payload: PeriodChange,
    override_id: int = Path(..., description="Override ID"),
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Move the end date later; the longer range may not overlap another override."""
    assignment = await scheduling_queries.get_override(db, override_id)
    new_end = override_commands.check_extension(assignment, payload.new_end_date)
    await _ensure_no_overlap(db, assignment.schedule_id, assignment.start_date, new_end, exclude_id=assignment.id)
    override_commands.extend_period(assignment, payload.new_end_date, clock.now())
    await db.commit()
    await db.refresh(assignment)
    
    await _audit(db, AuditAction.OVERRIDE_EXTENDED, current_user, assignment)
    
    return to_response(assignment, clock.today())


@router.post("/overrides/{override_id}/shorten", response_model=DriverAssignmentResponse)
async def shorten_override(
    payload: PeriodChange,
    override_id: int = Path(..., description="Override ID"),
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Move the end date earlier. Trips already generated keep their crew."""
    assignment = await scheduling_queries.get_override(db, override_id)
    override_commands.shorten_period(assignment, payload.new_end_date, clock.now())
    await db.commit()
    await db.refresh(assignment)
    
    await _audit(db, AuditAction.OVERRIDE_SHORTENED, current_user, assignment)
    
    return to_response(assignment, clock.today())


@router.delete("/overrides/{override_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_override(
    override_id: int = Path(..., description="Override ID"),
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Soft-delete an override; the schedule default crew applies again."""
    assignment = await scheduling_queries.get_override(db, override_id)
    assignment.deleted_at = clock.now()
    await db.commit()
    
    await _audit(db, AuditAction.OVERRIDE_DELETED, current_user, assignment)
