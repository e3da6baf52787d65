"""
Crew Boarding API Endpoints.

Per-passenger board / alight / no-show records on a trip. Each passenger
moves independently; the roster is frozen once the trip is completed or
cancelled.
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from shuttle_backend.app.db.session import get_db
from shuttle_backend.app.core.clock import Clock, get_clock
from shuttle_backend.app.core.guards import require_role, resolve_crew_role
from shuttle_backend.app.core.redis_client import get_redis
from shuttle_backend.app.domain.trips import boarding
from shuttle_backend.app.models.enums import UserRole
from shuttle_backend.app.schemas.trip import NoShowRequest, TripPassengerResponse
from shuttle_backend.app.services import scheduling_queries
from shuttle_backend.app.services.audit import log_event, AuditAction
from shuttle_backend.app.services.trip_locks import trip_lock

router = APIRouter(prefix="/crew/trips", tags=["Crew - Boarding"])

CREW_ROLES = [UserRole.DRIVER, UserRole.ATTENDANT]


async def _apply(db, redis, trip_id: int, passenger_id: int, current_user: dict, command):
    async with trip_lock(redis, trip_id):
        trip = await scheduling_queries.get_trip(db, trip_id)
        resolve_crew_role(trip, current_user)
        boarding.ensure_roster_open(trip)
        
        trip_passenger = boarding.find_trip_passenger(trip, passenger_id)
        command(trip_passenger)
        await db.commit()
    return trip_passenger


async def _audit(db: AsyncSession, action: str, current_user: dict, trip_passenger, metadata: dict = None):
    await log_event(
        db=db,
        action=action,
        actor_id=current_user["user_id"],
        actor_username=current_user.get("sub"),
        entity="trip_passenger",
        entity_id=trip_passenger.id,
        metadata={
            "trip_id": trip_passenger.trip_id,
            "passenger_id": trip_passenger.passenger_id,
            **(metadata or {})
        }
    )


@router.post("/{trip_id}/passengers/{passenger_id}/board", response_model=TripPassengerResponse)
async def board_passenger(
    trip_id: int = Path(..., description="Trip ID"),
    passenger_id: int = Path(..., description="Passenger ID"),
    current_user: dict = Depends(require_role(CREW_ROLES)),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
    clock: Clock = Depends(get_clock)
):
    now = clock.now()
    trip_passenger = await _apply(
        db, redis, trip_id, passenger_id, current_user, lambda tp: boarding.board(tp, now)
    )
    await _audit(db, AuditAction.PASSENGER_BOARDED, current_user, trip_passenger)
    return TripPassengerResponse.from_record(trip_passenger)


@router.post("/{trip_id}/passengers/{passenger_id}/alight", response_model=TripPassengerResponse)
async def alight_passenger(
    trip_id: int = Path(..., description="Trip ID"),
    passenger_id: int = Path(..., description="Passenger ID"),
    current_user: dict = Depends(require_role(CREW_ROLES)),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
    clock: Clock = Depends(get_clock)
):
    """Record alighting. The passenger must have boarded first."""
    now = clock.now()
    trip_passenger = await _apply(
        db, redis, trip_id, passenger_id, current_user, lambda tp: boarding.alight(tp, now)
    )
    await _audit(db, AuditAction.PASSENGER_ALIGHTED, current_user, trip_passenger)
    return TripPassengerResponse.from_record(trip_passenger)


@router.post("/{trip_id}/passengers/{passenger_id}/no-show", response_model=TripPassengerResponse)
async def mark_no_show(
    payload: NoShowRequest,
    trip_id: int = Path(..., description="Trip ID"),
    passenger_id: int = Path(..., description="Passenger ID"),
    current_user: dict = Depends(require_role(CREW_ROLES)),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
    clock: Clock = Depends(get_clock)
):
    now = clock.now()
    trip_passenger = await _apply(
        db, redis, trip_id, passenger_id, current_user,
        lambda tp: boarding.mark_no_show(tp, payload.reason, now)
    )
    await _audit(db, AuditAction.PASSENGER_NO_SHOW, current_user, trip_passenger, {"reason": payload.reason})
    return TripPassengerResponse.from_record(trip_passenger)


@router.post("/{trip_id}/passengers/{passenger_id}/reset", response_model=TripPassengerResponse)
async def reset_passenger(
    trip_id: int = Path(..., description="Trip ID"),
    passenger_id: int = Path(..., description="Passenger ID"),
    current_user: dict = Depends(require_role(CREW_ROLES)),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
    clock: Clock = Depends(get_clock)
):
    """Correction path: clear board / alight / no-show and start over."""
    now = clock.now()
    trip_passenger = await _apply(
        db, redis, trip_id, passenger_id, current_user, lambda tp: boarding.reset_boarding(tp, now)
    )
    await _audit(db, AuditAction.PASSENGER_RESET, current_user, trip_passenger)
    return TripPassengerResponse.from_record(trip_passenger)
