"""
Crew Trip Execution API Endpoints.

The assigned driver or attendant starts and completes a trip; crew and
admins may cancel it. Commands on one trip are serialized with a Redis lock.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from shuttle_backend.app.db.session import get_db
from shuttle_backend.app.core.clock import Clock, get_clock
from shuttle_backend.app.core.guards import require_role, resolve_crew_role, is_admin
from shuttle_backend.app.core.redis_client import get_redis
from shuttle_backend.app.domain.trips.lifecycle import cancel_trip, complete_trip, crew_identity, start_trip
from shuttle_backend.app.models.enums import UserRole
from shuttle_backend.app.schemas.trip import (
    TripCancelRequest, TripCompleteRequest, TripListResponse, TripResponse, TripStartRequest
)
from shuttle_backend.app.services import scheduling_queries
from shuttle_backend.app.services.audit import log_event, AuditAction
from shuttle_backend.app.services.trip_locks import trip_lock

router = APIRouter(prefix="/crew/trips", tags=["Crew - Trip Execution"])

CREW_ROLES = [UserRole.DRIVER, UserRole.ATTENDANT]


async def _audit(db: AsyncSession, action: str, current_user: dict, trip, metadata: dict = None):
    await log_event(
        db=db,
        action=action,
        actor_id=current_user["user_id"],
        actor_username=current_user.get("sub"),
        entity="trip",
        entity_id=trip.id,
        metadata={"status": trip.status.value, **(metadata or {})}
    )


@router.get("", response_model=TripListResponse)
async def list_my_trips(
    trip_date: Optional[date] = Query(None, description="Defaults to today"),
    current_user: dict = Depends(require_role(CREW_ROLES)),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Trips on a date where the caller is the assigned driver or attendant."""
    trips = await scheduling_queries.list_trips_for_crew_member(
        db, current_user["user_id"], trip_date or clock.today()
    )
    return TripListResponse(trips=[TripResponse.from_trip(t) for t in trips], total=len(trips))


@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_role(CREW_ROLES + [UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    trip = await scheduling_queries.get_trip(db, trip_id)
    if not is_admin(current_user):
        resolve_crew_role(trip, current_user)
    return TripResponse.from_trip(trip)


@router.post("/{trip_id}/start", response_model=TripResponse)
async def start(
    trip_id: int = Path(..., description="Trip ID"),
    payload: Optional[TripStartRequest] = None,
    current_user: dict = Depends(require_role(CREW_ROLES)),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
    clock: Clock = Depends(get_clock)
):
    """
    Start a PENDING trip (assigned driver, or assigned attendant holding the
    start-trip permission).
    
    Records who started it as ``<role>:<id>`` and the start location.
    """
    async with trip_lock(redis, trip_id):
        trip = await scheduling_queries.get_trip(db, trip_id)
        crew_role = resolve_crew_role(trip, current_user, starting=True)
        location = payload.location.to_sample() if payload and payload.location else None
        
        start_trip(trip, crew_identity(crew_role, current_user["user_id"]), location, clock.now())
        await db.commit()
    
    await _audit(db, AuditAction.TRIP_STARTED, current_user, trip, {"started_by": trip.started_by})
    
    return TripResponse.from_trip(trip)


@router.post("/{trip_id}/complete", response_model=TripResponse)
async def complete(
    trip_id: int = Path(..., description="Trip ID"),
    payload: Optional[TripCompleteRequest] = None,
    current_user: dict = Depends(require_role(CREW_ROLES)),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
    clock: Clock = Depends(get_clock)
):
    """Complete an IN_PROGRESS trip (assigned driver or attendant only)."""
    async with trip_lock(redis, trip_id):
        trip = await scheduling_queries.get_trip(db, trip_id)
        resolve_crew_role(trip, current_user)
        location = payload.location.to_sample() if payload and payload.location else None
        
        complete_trip(trip, location, clock.now())
        await db.commit()
    
    await _audit(db, AuditAction.TRIP_COMPLETED, current_user, trip)
    
    return TripResponse.from_trip(trip)


@router.post("/{trip_id}/cancel", response_model=TripResponse)
async def cancel(
    payload: TripCancelRequest,
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_role(CREW_ROLES + [UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
    clock: Clock = Depends(get_clock)
):
    """Cancel a PENDING or IN_PROGRESS trip (crew of the trip, or admin)."""
    async with trip_lock(redis, trip_id):
        trip = await scheduling_queries.get_trip(db, trip_id)
        if not is_admin(current_user):
            resolve_crew_role(trip, current_user)
        
        cancel_trip(trip, payload.reason, clock.now())
        await db.commit()
    
    await _audit(db, AuditAction.TRIP_CANCELLED, current_user, trip, {"reason": payload.reason})
    
    return TripResponse.from_trip(trip)
