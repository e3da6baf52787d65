"""
Passenger boarding tracker.

Each TripPassenger moves independently of the others:

    waiting --board--> boarded --alight--> alighted
       |                  |
       +--mark_no_show----+--> no_show

``reset_boarding`` is the explicit correction path back to waiting
(e.g. a passenger marked no-show who turned up after all). Boarded and
no-show are mutually exclusive and alighted implies boarded.
"""

from datetime import datetime

from shuttle_backend.app.core.clock import as_utc
from shuttle_backend.app.core.exceptions import InvalidTransitionError, ResourceNotFoundError
from shuttle_backend.app.domain.trips.lifecycle import is_terminal
from shuttle_backend.app.models.enums import TripStatus

WAITING = "waiting"
BOARDED = "boarded"
ALIGHTED = "alighted"
NO_SHOW = "no_show"


def boarding_state(trip_passenger) -> str:
    if trip_passenger.no_show_reason is not None:
        return NO_SHOW
    if trip_passenger.is_alighted:
        return ALIGHTED
    if trip_passenger.is_boarded:
        return BOARDED
    return WAITING


def _reject(action: str, trip_passenger, message: str = None) -> None:
    raise InvalidTransitionError("passenger", action, boarding_state(trip_passenger), message=message)


def board(trip_passenger, now: datetime) -> None:
    """Record that the passenger got on."""
    state = boarding_state(trip_passenger)
    if state == NO_SHOW:
        _reject("board", trip_passenger, "Passenger is marked as no-show; reset the record before boarding")
    if state != WAITING:
        _reject("board", trip_passenger)
    
    trip_passenger.is_boarded = True
    trip_passenger.boarded_at = now
    trip_passenger.updated_at = now


def alight(trip_passenger, now: datetime) -> None:
    """Record that the passenger got off. Requires a prior board."""
    if boarding_state(trip_passenger) != BOARDED:
        _reject("alight", trip_passenger)
    
    trip_passenger.is_alighted = True
    trip_passenger.alighted_at = now
    trip_passenger.updated_at = now


def mark_no_show(trip_passenger, reason: str, now: datetime) -> None:
    """
    Record that the passenger did not ride.
    
    A boarded (not yet alighted) passenger loses the boarding record.
    """
    if not reason or not reason.strip():
        _reject("mark no-show for", trip_passenger, "A no-show reason is required")
    if boarding_state(trip_passenger) == ALIGHTED:
        _reject("mark no-show for", trip_passenger)
    
    trip_passenger.is_boarded = False
    trip_passenger.boarded_at = None
    trip_passenger.no_show_reason = reason
    trip_passenger.updated_at = now


def reset_boarding(trip_passenger, now: datetime) -> None:
    """Clear every boarding outcome and return the passenger to waiting."""
    trip_passenger.is_boarded = False
    trip_passenger.boarded_at = None
    trip_passenger.is_alighted = False
    trip_passenger.alighted_at = None
    trip_passenger.no_show_reason = None
    trip_passenger.updated_at = now


def boarding_duration_minutes(trip_passenger) -> int:
    """Whole minutes on board; 0 until both board and alight are recorded."""
    if trip_passenger.boarded_at is None or trip_passenger.alighted_at is None:
        return 0
    elapsed = as_utc(trip_passenger.alighted_at) - as_utc(trip_passenger.boarded_at)
    return max(0, int(elapsed.total_seconds() // 60))


def ensure_roster_open(trip) -> None:
    """Rosters freeze once the trip is completed or cancelled."""
    if is_terminal(trip):
        raise InvalidTransitionError(
            "trip roster", "update", TripStatus(trip.status).value,
            message=f"Trip roster is frozen: trip is {TripStatus(trip.status).value}",
        )


def find_trip_passenger(trip, passenger_id: int):
    for trip_passenger in trip.passengers:
        if trip_passenger.passenger_id == passenger_id:
            return trip_passenger
    raise ResourceNotFoundError("Trip passenger", passenger_id)
