"""
Assignment resolution: override precedence over the schedule default crew.
"""

from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

from shuttle_backend.app.domain.scheduling.assignment_resolver import (
    resolve_attendant,
    resolve_crew,
    resolve_driver,
)

DAY = date(2025, 1, 20)
DEFAULT_DRIVER = 10
SUBSTITUTE = 20
DEFAULT_ATTENDANT = 30
RELIEF_ATTENDANT = 40


def schedule(**overrides):
    values = dict(id=1, default_driver_id=DEFAULT_DRIVER, default_attendant_id=DEFAULT_ATTENDANT)
    values.update(overrides)
    return SimpleNamespace(**values)


def override(id, start, end, driver_id=SUBSTITUTE, attendant_id=None, schedule_id=1, deleted_at=None):
    return SimpleNamespace(
        id=id,
        schedule_id=schedule_id,
        driver_id=driver_id,
        attendant_id=attendant_id,
        start_date=start,
        end_date=end,
        deleted_at=deleted_at,
    )


def test_no_override_uses_default_crew():
    crew = resolve_crew(schedule(), DAY, [])
    assert crew.driver_id == DEFAULT_DRIVER
    assert crew.attendant_id == DEFAULT_ATTENDANT
    assert not crew.is_overridden


def test_override_applies_for_inclusive_range():
    overrides = [override(1, DAY, DAY + timedelta(days=4))]
    
    assert resolve_driver(schedule(), DAY - timedelta(days=1), overrides) == DEFAULT_DRIVER
    for offset in range(5):
        assert resolve_driver(schedule(), DAY + timedelta(days=offset), overrides) == SUBSTITUTE
    assert resolve_driver(schedule(), DAY + timedelta(days=5), overrides) == DEFAULT_DRIVER


def test_override_of_other_schedule_is_ignored():
    overrides = [override(1, DAY, DAY, schedule_id=2)]
    assert resolve_driver(schedule(), DAY, overrides) == DEFAULT_DRIVER


def test_deleted_override_is_ignored():
    overrides = [override(1, DAY, DAY, deleted_at=datetime(2025, 1, 1, tzinfo=timezone.utc))]
    assert resolve_driver(schedule(), DAY, overrides) == DEFAULT_DRIVER


def test_override_keeps_default_attendant_unless_named():
    overrides = [override(1, DAY, DAY)]
    assert resolve_attendant(schedule(), DAY, overrides) == DEFAULT_ATTENDANT
    
    overrides = [override(1, DAY, DAY, attendant_id=RELIEF_ATTENDANT)]
    crew = resolve_crew(schedule(), DAY, overrides)
    assert crew.attendant_id == RELIEF_ATTENDANT
    assert crew.attendant_override_id == 1


def test_schedule_without_attendant_resolves_none():
    assert resolve_attendant(schedule(default_attendant_id=None), DAY, []) is None


def test_overlapping_overrides_latest_start_wins():
    overrides = [
        override(1, DAY - timedelta(days=3), DAY + timedelta(days=3), driver_id=21),
        override(2, DAY - timedelta(days=1), DAY + timedelta(days=1), driver_id=22),
    ]
    crew = resolve_crew(schedule(), DAY, overrides)
    assert crew.driver_id == 22
    assert crew.driver_override_id == 2
    assert crew.has_conflict
    assert crew.conflicting_override_ids == (1, 2)


def test_overlapping_overrides_same_start_highest_id_wins():
    overrides = [
        override(7, DAY, DAY + timedelta(days=2), driver_id=27),
        override(3, DAY, DAY + timedelta(days=5), driver_id=23),
    ]
    assert resolve_driver(schedule(), DAY, overrides) == 27


def test_datetime_inputs_compare_by_day():
    overrides = [override(1, DAY, DAY)]
    evening = datetime(2025, 1, 20, 22, 0, tzinfo=timezone.utc)
    assert resolve_driver(schedule(), evening, overrides) == SUBSTITUTE
