"""
Trip lifecycle state machine.

    pending --start--> in_progress --complete--> completed
       |                    |
       +------cancel--------+--> cancelled

completed and cancelled are terminal. Every command checks legality
first and leaves the trip untouched when it raises.

Who may issue a command is checked by the caller (see
``core.guards.resolve_crew_role``); commands are not thread-safe and
assume per-trip mutual exclusion (``services.trip_locks``).
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from shuttle_backend.app.core.clock import as_utc
from shuttle_backend.app.core.exceptions import InvalidTransitionError
from shuttle_backend.app.models.enums import CrewRole, TripStatus

TERMINAL_STATUSES = frozenset({TripStatus.COMPLETED, TripStatus.CANCELLED})

ALLOWED_TRANSITIONS = {
    TripStatus.PENDING: frozenset({TripStatus.IN_PROGRESS, TripStatus.CANCELLED}),
    TripStatus.IN_PROGRESS: frozenset({TripStatus.COMPLETED, TripStatus.CANCELLED}),
    TripStatus.COMPLETED: frozenset(),
    TripStatus.CANCELLED: frozenset(),
}


@dataclass(frozen=True)
class LocationSample:
    latitude: float
    longitude: float
    recorded_at: Optional[datetime] = None


def crew_identity(role, user_id: int) -> str:
    """``<role>:<id>`` string recorded as Trip.started_by."""
    return f"{CrewRole(role).value}:{user_id}"


def is_terminal(trip) -> bool:
    return TripStatus(trip.status) in TERMINAL_STATUSES


def can_transition(trip, target: TripStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[TripStatus(trip.status)]


def can_start(trip) -> bool:
    return can_transition(trip, TripStatus.IN_PROGRESS)


def can_complete(trip) -> bool:
    return can_transition(trip, TripStatus.COMPLETED)


def can_cancel(trip) -> bool:
    return can_transition(trip, TripStatus.CANCELLED)


def _require(trip, target: TripStatus, action: str) -> None:
    if not can_transition(trip, target):
        raise InvalidTransitionError("trip", action, TripStatus(trip.status).value)


def start_trip(trip, started_by: str, location: Optional[LocationSample], now: datetime) -> None:
    """pending -> in_progress, recording who started it and where."""
    _require(trip, TripStatus.IN_PROGRESS, "start")
    
    trip.status = TripStatus.IN_PROGRESS
    trip.started_at = now
    trip.started_by = started_by
    if location is not None:
        trip.start_latitude = location.latitude
        trip.start_longitude = location.longitude
        trip.start_recorded_at = location.recorded_at or now
    trip.updated_at = now


def complete_trip(trip, location: Optional[LocationSample], now: datetime) -> None:
    """in_progress -> completed, recording the end location."""
    _require(trip, TripStatus.COMPLETED, "complete")
    
    trip.status = TripStatus.COMPLETED
    trip.completed_at = now
    if location is not None:
        trip.end_latitude = location.latitude
        trip.end_longitude = location.longitude
        trip.end_recorded_at = location.recorded_at or now
    trip.updated_at = now


def cancel_trip(trip, reason: str, now: datetime) -> None:
    """pending or in_progress -> cancelled."""
    _require(trip, TripStatus.CANCELLED, "cancel")
    
    trip.status = TripStatus.CANCELLED
    trip.cancelled_at = now
    trip.cancellation_reason = reason
    trip.updated_at = now


def trip_duration_minutes(trip) -> int:
    """Whole minutes from start to completion; 0 until both are recorded."""
    if trip.started_at is None or trip.completed_at is None:
        return 0
    elapsed = as_utc(trip.completed_at) - as_utc(trip.started_at)
    return max(0, int(elapsed.total_seconds() // 60))
