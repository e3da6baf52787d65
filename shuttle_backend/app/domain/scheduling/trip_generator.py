"""
Trip generation.

Turns the schedules in force on a date into trip records, one per
(schedule, date), with the crew resolved for that date and a passenger
roster seeded from the schedule's route.

This module only plans: it builds unsaved ``Trip`` objects from a
snapshot supplied by the caller. Persisting them (and treating a unique
constraint violation as "already generated") is the job of
``services.trip_generation``.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Collection, Dict, Iterable, List, Mapping, Optional, Sequence

from shuttle_backend.app.domain.common import as_date
from shuttle_backend.app.domain.scheduling.assignment_resolver import CrewResolution, resolve_crew
from shuttle_backend.app.domain.scheduling.calendar_matcher import is_active_on
from shuttle_backend.app.models.enums import TripStatus
from shuttle_backend.app.models.trip import Trip, TripPassenger

logger = logging.getLogger(__name__)

SKIP_ALREADY_GENERATED = "already generated"
SKIP_NOT_SCHEDULED = "not scheduled"
SKIP_MISSING_ROUTE = "missing route"
SKIP_MISSING_VEHICLE = "missing vehicle"
SKIP_MISSING_DRIVER = "missing driver"
SKIP_MISSING_ATTENDANT = "missing attendant"
SKIP_INVALID_SCHEDULE = "invalid schedule"
SKIP_PERSISTENCE_ERROR = "persistence error"

# Reasons that mean "nothing to do" rather than "something went wrong"
BENIGN_SKIP_REASONS = frozenset({SKIP_ALREADY_GENERATED, SKIP_NOT_SCHEDULED})


class ScheduleResolutionError(Exception):
    """A schedule is due on the date but a trip cannot be built from it."""
    
    def __init__(self, reason: str, detail: str = None):
        self.reason = reason
        self.detail = detail
        super().__init__(detail or reason)


@dataclass
class SkippedSchedule:
    schedule_id: int
    reason: str
    detail: Optional[str] = None


@dataclass
class GenerationReport:
    """Outcome of one generation run for one date."""
    trip_date: date
    created: List[Trip] = field(default_factory=list)
    skipped: List[SkippedSchedule] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    
    def skip(self, schedule_id: int, reason: str, detail: str = None) -> None:
        self.skipped.append(SkippedSchedule(schedule_id=schedule_id, reason=reason, detail=detail))
    
    def skipped_for(self, reason: str) -> List[SkippedSchedule]:
        return [entry for entry in self.skipped if entry.reason == reason]
    
    @property
    def failures(self) -> List[SkippedSchedule]:
        """Skipped schedules that should have produced a trip (partial failure)."""
        return [entry for entry in self.skipped if entry.reason not in BENIGN_SKIP_REASONS]
    
    @property
    def has_failures(self) -> bool:
        return bool(self.failures)


def seed_roster(passengers: Iterable) -> List[TripPassenger]:
    """One waiting TripPassenger per passenger, at the passenger's own stop."""
    return [
        TripPassenger(
            passenger_id=passenger.id,
            stop_id=passenger.stop_id,
            is_boarded=False,
            is_alighted=False,
        )
        for passenger in passengers
    ]


def build_trip(schedule, on_date: date, crew: CrewResolution, passengers: Iterable = ()) -> Trip:
    """A new pending trip for ``schedule`` on ``on_date``."""
    return Trip(
        schedule_id=schedule.id,
        trip_date=as_date(on_date),
        status=TripStatus.PENDING,
        vehicle_id=schedule.vehicle_id,
        assigned_driver_id=crew.driver_id,
        assigned_attendant_id=crew.attendant_id,
        driver_assignment_id=crew.driver_override_id,
        passengers=seed_roster(passengers),
    )


def _check_resources(
    schedule,
    crew: CrewResolution,
    vehicle_ids: Optional[Collection[int]],
    crew_ids: Optional[Collection[int]],
) -> None:
    if schedule.route_id is None:
        raise ScheduleResolutionError(SKIP_MISSING_ROUTE, f"schedule {schedule.id} has no route")
    if schedule.vehicle_id is None:
        raise ScheduleResolutionError(SKIP_MISSING_VEHICLE, f"schedule {schedule.id} has no vehicle")
    if vehicle_ids is not None and schedule.vehicle_id not in vehicle_ids:
        raise ScheduleResolutionError(
            SKIP_MISSING_VEHICLE,
            f"vehicle {schedule.vehicle_id} is unknown or out of service",
        )
    if crew.driver_id is None:
        raise ScheduleResolutionError(SKIP_MISSING_DRIVER, f"schedule {schedule.id} has no driver for the date")
    if crew_ids is not None and crew.driver_id not in crew_ids:
        raise ScheduleResolutionError(SKIP_MISSING_DRIVER, f"driver {crew.driver_id} is unknown or inactive")
    if crew_ids is not None and crew.attendant_id is not None and crew.attendant_id not in crew_ids:
        raise ScheduleResolutionError(SKIP_MISSING_ATTENDANT, f"attendant {crew.attendant_id} is unknown or inactive")


def generate_trips_for_date(
    on_date: date,
    schedules: Sequence,
    overrides_by_schedule: Mapping[int, Sequence],
    existing_trip_keys: Collection[int],
    passengers_by_route: Optional[Mapping[int, Sequence]] = None,
    vehicle_ids: Optional[Collection[int]] = None,
    crew_ids: Optional[Collection[int]] = None,
) -> GenerationReport:
    """
    Plan the trips for ``on_date``.
    
    Args:
        on_date: calendar day to generate for
        schedules: candidate schedules (may over-approximate)
        overrides_by_schedule: driver assignments keyed by schedule id
        existing_trip_keys: ids of schedules that already have a trip on the date
        passengers_by_route: passengers assigned to each route, for roster seeding
        vehicle_ids: vehicles in service; None skips the vehicle check
        crew_ids: active drivers and attendants; None skips the crew check
    
    Returns:
        GenerationReport whose ``created`` trips are not yet persisted
    
    Per schedule, in order: an existing trip skips it as "already
    generated", a calendar miss skips it as "not scheduled", and a
    failure building the trip skips it with the failure reason. One
    schedule never aborts the rest of the batch.
    """
    day = as_date(on_date)
    report = GenerationReport(trip_date=day)
    passengers_by_route = passengers_by_route or {}
    seen = set(existing_trip_keys)
    
    for schedule in schedules:
        if schedule.id in seen:
            report.skip(schedule.id, SKIP_ALREADY_GENERATED)
            continue
        
        try:
            if not is_active_on(schedule, day):
                report.skip(schedule.id, SKIP_NOT_SCHEDULED)
                continue
            
            crew = resolve_crew(schedule, day, overrides_by_schedule.get(schedule.id, ()))
            if crew.has_conflict:
                report.warnings.append(
                    f"schedule {schedule.id}: overlapping overrides {list(crew.conflicting_override_ids)}, "
                    f"using override {crew.driver_override_id}"
                )
            
            _check_resources(schedule, crew, vehicle_ids, crew_ids)
            trip = build_trip(schedule, day, crew, passengers_by_route.get(schedule.route_id, ()))
        except ScheduleResolutionError as exc:
            logger.warning("Skipping schedule %s for %s: %s", schedule.id, day, exc)
            report.skip(schedule.id, exc.reason, exc.detail)
            continue
        except (TypeError, ValueError) as exc:
            logger.warning("Skipping malformed schedule %s for %s", schedule.id, day, exc_info=True)
            report.skip(schedule.id, SKIP_INVALID_SCHEDULE, str(exc))
            continue
        
        seen.add(schedule.id)
        report.created.append(trip)
    
    return report


def group_by_schedule(overrides: Iterable) -> Dict[int, List]:
    grouped: Dict[int, List] = {}
    for assignment in overrides:
        grouped.setdefault(assignment.schedule_id, []).append(assignment)
    return grouped


def group_by_route(passengers: Iterable) -> Dict[int, List]:
    grouped: Dict[int, List] = {}
    for passenger in passengers:
        grouped.setdefault(passenger.route_id, []).append(passenger)
    return grouped
