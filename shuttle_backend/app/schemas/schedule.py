"""
Schedule schemas.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from shuttle_backend.app.domain.scheduling.calendar_matcher import normalize_days
from shuttle_backend.app.models.enums import ScheduleStatus, TimeSlot

START_TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class ScheduleCreate(BaseModel):
    """Schema for creating a schedule."""
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    start_time: str = Field(..., pattern=START_TIME_PATTERN)
    time_slot: TimeSlot
    days_of_week: List[int] = Field(..., description="ISO weekdays, 1=Monday .. 7=Sunday")
    route_id: int
    vehicle_id: int
    default_driver_id: int
    default_attendant_id: Optional[int] = None
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None
    
    @field_validator("days_of_week")
    @classmethod
    def validate_days(cls, value: List[int]) -> List[int]:
        return normalize_days(value)
    
    @model_validator(mode="after")
    def validate_window(self):
        if self.valid_from and self.valid_to and self.valid_from > self.valid_to:
            raise ValueError("valid_from must not be after valid_to")
        return self


class ScheduleUpdate(BaseModel):
    """
    Partial schedule update.
    
    Only fields present in the request are applied; an explicit null
    clears an optional field (attendant, validity bounds).
    """
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    status: Optional[ScheduleStatus] = None
    start_time: Optional[str] = Field(None, pattern=START_TIME_PATTERN)
    time_slot: Optional[TimeSlot] = None
    days_of_week: Optional[List[int]] = None
    route_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    default_driver_id: Optional[int] = None
    default_attendant_id: Optional[int] = None
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None
    
    @field_validator("days_of_week")
    @classmethod
    def validate_days(cls, value: Optional[List[int]]) -> Optional[List[int]]:
        if value is None:
            return value
        return normalize_days(value)


class ScheduleResponse(BaseModel):
    """Schema for schedule response."""
    id: int
    name: str
    description: Optional[str]
    status: ScheduleStatus
    start_time: str
    time_slot: TimeSlot
    days_of_week: List[int]
    route_id: Optional[int]
    vehicle_id: Optional[int]
    default_driver_id: Optional[int]
    default_attendant_id: Optional[int]
    valid_from: Optional[date]
    valid_to: Optional[date]
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True


class ScheduleListResponse(BaseModel):
    schedules: List[ScheduleResponse]
    total: int


class TripPreviewResponse(BaseModel):
    """What generation would do for one schedule on one date."""
    schedule_id: int
    trip_date: date
    weekday: int
    is_active: bool
    already_generated: bool
    driver_id: Optional[int]
    attendant_id: Optional[int]
    driver_override_id: Optional[int]
    conflicting_override_ids: List[int] = []
