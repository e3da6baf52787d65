"""
Assignment resolution.

Works out who actually runs a schedule on a date: the schedule's default
crew, or the substitute named by a driver assignment override covering
that date.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Optional, Tuple, Union

from shuttle_backend.app.domain.common import as_date, is_live

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CrewResolution:
    """Effective crew of a schedule for one date."""
    driver_id: Optional[int]
    attendant_id: Optional[int]
    driver_override_id: Optional[int] = None
    attendant_override_id: Optional[int] = None
    # ids of every override covering the date when more than one does
    conflicting_override_ids: Tuple[int, ...] = ()
    
    @property
    def has_conflict(self) -> bool:
        return len(self.conflicting_override_ids) > 1
    
    @property
    def is_overridden(self) -> bool:
        return self.driver_override_id is not None or self.attendant_override_id is not None


def is_override_active_on(assignment, on_date: Union[date, datetime]) -> bool:
    """Not soft-deleted and ``on_date`` inside [start_date, end_date], by day."""
    if not is_live(assignment):
        return False
    day = as_date(on_date)
    return as_date(assignment.start_date) <= day <= as_date(assignment.end_date)


def active_overrides_on(schedule_id: int, on_date, overrides: Iterable) -> List:
    """Overrides belonging to ``schedule_id`` that cover ``on_date``."""
    return [
        assignment for assignment in overrides
        if assignment.schedule_id == schedule_id and is_override_active_on(assignment, on_date)
    ]


def pick_override(candidates: List):
    """
    Choose one override among several covering the same date.
    
    Latest start_date wins; on equal start dates the most recently
    created record (highest id) wins.
    """
    if not candidates:
        return None
    return max(candidates, key=lambda a: (as_date(a.start_date), a.id or 0))


def resolve_crew(schedule, on_date, overrides: Iterable) -> CrewResolution:
    """
    Resolve the effective driver and attendant of ``schedule`` on ``on_date``.
    
    Overlapping overrides are a data-integrity problem rather than a
    failure: one is picked deterministically and the conflict is logged
    and reported through ``conflicting_override_ids``.
    """
    matching = active_overrides_on(schedule.id, on_date, overrides)
    
    conflicting: Tuple[int, ...] = ()
    if len(matching) > 1:
        conflicting = tuple(sorted(a.id for a in matching if a.id is not None))
        logger.warning(
            "Overlapping driver assignments for schedule %s on %s: %s",
            schedule.id, as_date(on_date), list(conflicting),
        )
    
    driver_override = pick_override(matching)
    attendant_override = pick_override([a for a in matching if a.attendant_id is not None])
    
    driver_id = driver_override.driver_id if driver_override else schedule.default_driver_id
    attendant_id = attendant_override.attendant_id if attendant_override else schedule.default_attendant_id
    
    return CrewResolution(
        driver_id=driver_id,
        attendant_id=attendant_id,
        driver_override_id=driver_override.id if driver_override else None,
        attendant_override_id=attendant_override.id if attendant_override else None,
        conflicting_override_ids=conflicting,
    )


def resolve_driver(schedule, on_date, overrides: Iterable) -> Optional[int]:
    """Effective driver id; the schedule default when no override applies."""
    return resolve_crew(schedule, on_date, overrides).driver_id


def resolve_attendant(schedule, on_date, overrides: Iterable) -> Optional[int]:
    """Effective attendant id, or None when neither default nor override names one."""
    return resolve_crew(schedule, on_date, overrides).attendant_id
