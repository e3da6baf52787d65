"""
Clock abstraction.

Lifecycle and boarding commands take an explicit ``now``; request handlers
obtain it from the clock dependency so tests can pin time.
"""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from shuttle_backend.app.core.config import settings


class Clock:
    """Wall clock in UTC, with "today" in the service timezone."""
    
    def __init__(self, tz_name: str = None):
        self.tz = ZoneInfo(tz_name or settings.service_timezone)
    
    def now(self) -> datetime:
        return datetime.now(timezone.utc)
    
    def today(self) -> date:
        return self.now().astimezone(self.tz).date()


class FixedClock(Clock):
    """Clock pinned to a given instant. Used by tests and replays."""
    
    def __init__(self, instant: datetime, tz_name: str = "UTC"):
        super().__init__(tz_name)
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self.instant = instant
    
    def now(self) -> datetime:
        return self.instant
    
    def advance(self, **delta) -> datetime:
        self.instant = self.instant + timedelta(**delta)
        return self.instant


system_clock = Clock()


def get_clock() -> Clock:
    """FastAPI dependency for the current clock."""
    return system_clock


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (e.g. read back from SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
