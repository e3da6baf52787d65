"""
Helpers shared by the scheduling and trip domain modules.
"""

from datetime import date, datetime
from typing import Union


def as_date(value: Union[date, datetime]) -> date:
    """Day-granularity view of a date or datetime; time-of-day is dropped."""
    if isinstance(value, datetime):
        return value.date()
    return value


def is_live(entity) -> bool:
    """True unless the entity carries a soft-delete marker."""
    return getattr(entity, "deleted_at", None) is None
