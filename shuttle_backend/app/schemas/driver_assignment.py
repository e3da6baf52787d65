"""
Driver assignment (override) schemas.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class DriverAssignmentCreate(BaseModel):
    """Schema for substituting a schedule's driver over a date range."""
    driver_id: int
    attendant_id: Optional[int] = None
    start_date: date
    end_date: date
    reason: str = Field(..., min_length=1, max_length=255)
    
    @model_validator(mode="after")
    def validate_range(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class PeriodChange(BaseModel):
    """New end date for extend / shorten."""
    new_end_date: date


class DriverAssignmentResponse(BaseModel):
    """Response for a driver assignment."""
    id: int
    schedule_id: int
    driver_id: int
    attendant_id: Optional[int]
    start_date: date
    end_date: date
    reason: str
    approved_by: Optional[int]
    approved_at: Optional[datetime]
    created_by: Optional[int]
    period_days: int
    is_approved: bool
    is_current: bool
    
    class Config:
        from_attributes = True


class DriverAssignmentListResponse(BaseModel):
    assignments: List[DriverAssignmentResponse]
    total: int
