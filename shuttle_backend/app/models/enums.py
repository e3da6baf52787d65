"""
Enumerations for users, schedules and trips.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.
    
    Roles:
        ADMIN: Operator who manages schedules, overrides and generation
        DRIVER: Drives scheduled runs
        ATTENDANT: Rides along to look after passengers
    """
    ADMIN = "ADMIN"
    DRIVER = "DRIVER"
    ATTENDANT = "ATTENDANT"


class ScheduleStatus(str, enum.Enum):
    """Schedule status enumeration."""
    ACTIVE = "active"
    INACTIVE = "inactive"


class TimeSlot(str, enum.Enum):
    """Part of the day a schedule runs in."""
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


class TripStatus(str, enum.Enum):
    """Trip status enumeration."""
    PENDING = "pending"  # Generated, not started
    IN_PROGRESS = "in_progress"  # Crew has started the run
    COMPLETED = "completed"  # Run finished (terminal)
    CANCELLED = "cancelled"  # Run called off (terminal)


class CrewRole(str, enum.Enum):
    """Role prefix recorded in Trip.started_by ("driver:12")."""
    DRIVER = "driver"
    ATTENDANT = "attendant"
