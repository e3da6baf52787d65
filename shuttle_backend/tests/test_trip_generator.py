"""
Trip planning from schedules, overrides and rosters (no database).
"""

from datetime import date
from types import SimpleNamespace

from shuttle_backend.app.domain.scheduling.trip_generator import (
    SKIP_ALREADY_GENERATED,
    SKIP_INVALID_SCHEDULE,
    SKIP_MISSING_ATTENDANT,
    SKIP_MISSING_DRIVER,
    SKIP_MISSING_ROUTE,
    SKIP_MISSING_VEHICLE,
    SKIP_NOT_SCHEDULED,
    generate_trips_for_date,
    group_by_route,
    group_by_schedule,
)
from shuttle_backend.app.models.enums import ScheduleStatus, TripStatus

MONDAY = date(2025, 1, 20)
SATURDAY = date(2025, 1, 18)
DRIVER_A = 10
DRIVER_G = 20
ATTENDANT = 30
VEHICLE = 5
ROUTE = 3


def schedule(id=1, **overrides):
    values = dict(
        id=id,
        status=ScheduleStatus.ACTIVE,
        days_of_week=[1, 2, 3, 4, 5],
        valid_from=None,
        valid_to=None,
        deleted_at=None,
        route_id=ROUTE,
        vehicle_id=VEHICLE,
        default_driver_id=DRIVER_A,
        default_attendant_id=ATTENDANT,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def override(id, schedule_id, start, end, driver_id):
    return SimpleNamespace(
        id=id, schedule_id=schedule_id, driver_id=driver_id, attendant_id=None,
        start_date=start, end_date=end, deleted_at=None,
    )


PASSENGERS = [
    SimpleNamespace(id=101, route_id=ROUTE, stop_id=1001),
    SimpleNamespace(id=102, route_id=ROUTE, stop_id=1002),
]


def test_override_week_generates_trip_with_substitute():
    schedules = [schedule()]
    overrides = group_by_schedule([override(9, 1, date(2025, 1, 20), date(2025, 1, 24), DRIVER_G)])
    
    report = generate_trips_for_date(
        MONDAY, schedules, overrides, set(), passengers_by_route=group_by_route(PASSENGERS)
    )
    
    assert len(report.created) == 1
    trip = report.created[0]
    assert trip.schedule_id == 1
    assert trip.trip_date == MONDAY
    assert trip.status == TripStatus.PENDING
    assert trip.assigned_driver_id == DRIVER_G
    assert trip.assigned_attendant_id == ATTENDANT
    assert trip.driver_assignment_id == 9
    assert trip.vehicle_id == VEHICLE
    assert [(tp.passenger_id, tp.stop_id) for tp in trip.passengers] == [(101, 1001), (102, 1002)]
    assert all(not tp.is_boarded and not tp.is_alighted for tp in trip.passengers)
    assert report.skipped == []


def test_saturday_generates_nothing_for_weekday_schedule():
    report = generate_trips_for_date(SATURDAY, [schedule()], {}, set())
    
    assert report.created == []
    assert [s.reason for s in report.skipped] == [SKIP_NOT_SCHEDULED]
    assert not report.has_failures


def test_existing_trip_is_already_generated():
    report = generate_trips_for_date(MONDAY, [schedule()], {}, {1})
    
    assert report.created == []
    assert report.skipped_for(SKIP_ALREADY_GENERATED)[0].schedule_id == 1
    assert not report.has_failures


def test_duplicate_schedule_in_batch_yields_one_trip():
    report = generate_trips_for_date(MONDAY, [schedule(), schedule()], {}, set())
    
    assert len(report.created) == 1
    assert [s.reason for s in report.skipped] == [SKIP_ALREADY_GENERATED]


def test_one_bad_schedule_does_not_abort_the_batch():
    schedules = [
        schedule(id=1),
        schedule(id=2, vehicle_id=None),
        schedule(id=3, default_driver_id=None),
        schedule(id=4, route_id=None),
        schedule(id=5, days_of_week=5),
        schedule(id=6),
    ]
    
    report = generate_trips_for_date(MONDAY, schedules, {}, set())
    
    assert [trip.schedule_id for trip in report.created] == [1, 6]
    reasons = {s.schedule_id: s.reason for s in report.skipped}
    assert reasons == {
        2: SKIP_MISSING_VEHICLE,
        3: SKIP_MISSING_DRIVER,
        4: SKIP_MISSING_ROUTE,
        5: SKIP_INVALID_SCHEDULE,
    }
    assert len(report.failures) == 4


def test_override_supplies_driver_when_schedule_has_none():
    overrides = group_by_schedule([override(9, 1, MONDAY, MONDAY, DRIVER_G)])
    report = generate_trips_for_date(MONDAY, [schedule(default_driver_id=None)], overrides, set())
    
    assert report.created[0].assigned_driver_id == DRIVER_G


def test_out_of_service_vehicle_is_reported():
    report = generate_trips_for_date(MONDAY, [schedule()], {}, set(), vehicle_ids={99})
    
    assert report.created == []
    assert report.skipped[0].reason == SKIP_MISSING_VEHICLE


def test_inactive_crew_is_reported():
    no_driver = generate_trips_for_date(MONDAY, [schedule()], {}, set(), crew_ids={ATTENDANT})
    no_attendant = generate_trips_for_date(MONDAY, [schedule()], {}, set(), crew_ids={DRIVER_A})
    
    assert no_driver.created == []
    assert no_driver.skipped[0].reason == SKIP_MISSING_DRIVER
    assert no_attendant.skipped[0].reason == SKIP_MISSING_ATTENDANT


def test_schedule_without_attendant_needs_only_an_active_driver():
    report = generate_trips_for_date(
        MONDAY, [schedule(default_attendant_id=None)], {}, set(), crew_ids={DRIVER_A}
    )
    
    assert report.created[0].assigned_attendant_id is None


def test_overlapping_overrides_produce_warning():
    overrides = group_by_schedule([
        override(1, 1, date(2025, 1, 13), date(2025, 1, 24), 21),
        override(2, 1, date(2025, 1, 20), date(2025, 1, 21), 22),
    ])
    report = generate_trips_for_date(MONDAY, [schedule()], overrides, set())
    
    assert report.created[0].assigned_driver_id == 22
    assert len(report.warnings) == 1
    assert "overlapping overrides [1, 2]" in report.warnings[0]


def test_route_without_passengers_gets_empty_roster():
    report = generate_trips_for_date(MONDAY, [schedule()], {}, set(), passengers_by_route={})
    
    assert report.created[0].passengers == []
