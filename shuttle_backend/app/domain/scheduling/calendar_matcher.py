"""
Calendar matching for schedules.

Decides whether a recurring schedule runs on a given calendar day.
Weekdays use ISO numbering: 1=Monday ... 7=Sunday.
"""

from datetime import date, datetime
from typing import Iterable, List, Union

from shuttle_backend.app.domain.common import as_date, is_live
from shuttle_backend.app.models.enums import ScheduleStatus

ALL_DAYS = frozenset(range(1, 8))


def iso_weekday(on_date: Union[date, datetime]) -> int:
    """Weekday of ``on_date`` with Sunday as 7, never 0."""
    return as_date(on_date).isoweekday()


def is_in_force(schedule) -> bool:
    """Active status and not soft-deleted."""
    return schedule.status == ScheduleStatus.ACTIVE and is_live(schedule)


def is_within_validity(schedule, on_date: Union[date, datetime]) -> bool:
    day = as_date(on_date)
    if schedule.valid_from is not None and day < as_date(schedule.valid_from):
        return False
    if schedule.valid_to is not None and day > as_date(schedule.valid_to):
        return False
    return True


def is_active_on(schedule, on_date: Union[date, datetime]) -> bool:
    """
    Whether ``schedule`` runs on ``on_date``.
    
    The schedule must be active, not soft-deleted, inside its validity
    window (bounds inclusive, compared by day) and list the date's ISO
    weekday in ``days_of_week``.
    """
    if not is_in_force(schedule):
        return False
    if not is_within_validity(schedule, on_date):
        return False
    return iso_weekday(on_date) in set(schedule.days_of_week or ())


def normalize_days(days: Iterable[int]) -> List[int]:
    """
    Validate and canonicalize a recurrence set: unique, sorted, 1..7.
    
    Raises:
        ValueError: a day is outside 1..7 or the set is empty
    """
    normalized = set()
    for day in days:
        if isinstance(day, bool) or not isinstance(day, int) or day not in ALL_DAYS:
            raise ValueError(f"invalid day of week: {day!r} (must be 1=Monday .. 7=Sunday)")
        normalized.add(day)
    if not normalized:
        raise ValueError("days_of_week must contain at least one day")
    return sorted(normalized)
