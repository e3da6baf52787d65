"""
Driver assignment (override) period commands.
"""

from datetime import date, datetime
from typing import Iterable, List, Optional

from shuttle_backend.app.core.exceptions import InvalidAssignmentPeriodError
from shuttle_backend.app.domain.common import as_date, is_live


def validate_period(start_date: date, end_date: date) -> None:
    if as_date(end_date) < as_date(start_date):
        raise InvalidAssignmentPeriodError(
            "end date cannot be before start date",
            details={"start_date": str(start_date), "end_date": str(end_date)},
        )


def approve(assignment, approver_id: int, now: datetime) -> None:
    assignment.approved_by = approver_id
    assignment.approved_at = now
    assignment.updated_at = now


def is_approved(assignment) -> bool:
    return assignment.approved_at is not None


def check_extension(assignment, new_end_date: date) -> date:
    """The validated new end date; it may not precede the start or the current end."""
    new_end = as_date(new_end_date)
    validate_period(assignment.start_date, new_end)
    if new_end < as_date(assignment.end_date):
        raise InvalidAssignmentPeriodError(
            "new end date must be after current end date",
            details={"current_end_date": str(assignment.end_date), "new_end_date": str(new_end)},
        )
    return new_end


def extend_period(assignment, new_end_date: date, now: datetime) -> None:
    """Move the end date later."""
    assignment.end_date = check_extension(assignment, new_end_date)
    assignment.updated_at = now


def shorten_period(assignment, new_end_date: date, now: datetime) -> None:
    """Move the end date earlier. It may not precede the start or exceed the current end."""
    new_end = as_date(new_end_date)
    validate_period(assignment.start_date, new_end)
    if new_end > as_date(assignment.end_date):
        raise InvalidAssignmentPeriodError(
            "new end date must be before current end date",
            details={"current_end_date": str(assignment.end_date), "new_end_date": str(new_end)},
        )
    assignment.end_date = new_end
    assignment.updated_at = now


def period_days(assignment) -> int:
    """Number of days covered, both ends included."""
    return (as_date(assignment.end_date) - as_date(assignment.start_date)).days + 1


def is_expired(assignment, today: date) -> bool:
    return as_date(assignment.end_date) < as_date(today)


def is_upcoming(assignment, today: date) -> bool:
    return as_date(assignment.start_date) > as_date(today)


def is_current(assignment, today: date) -> bool:
    return is_live(assignment) and not is_expired(assignment, today) and not is_upcoming(assignment, today)


def find_overlaps(
    assignments: Iterable,
    start_date: date,
    end_date: date,
    exclude_id: Optional[int] = None,
) -> List:
    """Live assignments whose inclusive range intersects [start_date, end_date]."""
    start, end = as_date(start_date), as_date(end_date)
    return [
        a for a in assignments
        if is_live(a)
        and (exclude_id is None or a.id != exclude_id)
        and as_date(a.start_date) <= end
        and start <= as_date(a.end_date)
    ]
