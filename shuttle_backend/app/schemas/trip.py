"""
Trip, boarding and generation schemas.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from shuttle_backend.app.domain.trips.boarding import boarding_duration_minutes, boarding_state
from shuttle_backend.app.domain.trips.lifecycle import LocationSample, trip_duration_minutes
from shuttle_backend.app.models.enums import TripStatus


class LocationPayload(BaseModel):
    """GPS sample taken at start or end of a run."""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    recorded_at: Optional[datetime] = None
    
    def to_sample(self) -> LocationSample:
        return LocationSample(self.latitude, self.longitude, self.recorded_at)


class TripStartRequest(BaseModel):
    location: Optional[LocationPayload] = None


class TripCompleteRequest(BaseModel):
    location: Optional[LocationPayload] = None


class TripCancelRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


class NoShowRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=255)


class TripPassengerResponse(BaseModel):
    """Boarding record of one passenger."""
    id: int
    trip_id: int
    passenger_id: int
    stop_id: Optional[int]
    is_boarded: bool
    boarded_at: Optional[datetime]
    is_alighted: bool
    alighted_at: Optional[datetime]
    no_show_reason: Optional[str]
    boarding_state: str
    boarding_duration_minutes: int
    
    @classmethod
    def from_record(cls, trip_passenger) -> "TripPassengerResponse":
        return cls(
            id=trip_passenger.id,
            trip_id=trip_passenger.trip_id,
            passenger_id=trip_passenger.passenger_id,
            stop_id=trip_passenger.stop_id,
            is_boarded=trip_passenger.is_boarded,
            boarded_at=trip_passenger.boarded_at,
            is_alighted=trip_passenger.is_alighted,
            alighted_at=trip_passenger.alighted_at,
            no_show_reason=trip_passenger.no_show_reason,
            boarding_state=boarding_state(trip_passenger),
            boarding_duration_minutes=boarding_duration_minutes(trip_passenger),
        )


class TripResponse(BaseModel):
    """Schema for trip response."""
    id: int
    schedule_id: int
    trip_date: date
    status: TripStatus
    vehicle_id: int
    assigned_driver_id: int
    assigned_attendant_id: Optional[int]
    driver_assignment_id: Optional[int]
    started_at: Optional[datetime]
    started_by: Optional[str]
    completed_at: Optional[datetime]
    cancelled_at: Optional[datetime]
    cancellation_reason: Optional[str]
    duration_minutes: int
    passengers: List[TripPassengerResponse] = []
    
    @classmethod
    def from_trip(cls, trip) -> "TripResponse":
        return cls(
            id=trip.id,
            schedule_id=trip.schedule_id,
            trip_date=trip.trip_date,
            status=trip.status,
            vehicle_id=trip.vehicle_id,
            assigned_driver_id=trip.assigned_driver_id,
            assigned_attendant_id=trip.assigned_attendant_id,
            driver_assignment_id=trip.driver_assignment_id,
            started_at=trip.started_at,
            started_by=trip.started_by,
            completed_at=trip.completed_at,
            cancelled_at=trip.cancelled_at,
            cancellation_reason=trip.cancellation_reason,
            duration_minutes=trip_duration_minutes(trip),
            passengers=[TripPassengerResponse.from_record(tp) for tp in trip.passengers],
        )


class TripListResponse(BaseModel):
    trips: List[TripResponse]
    total: int


class SkippedScheduleResponse(BaseModel):
    schedule_id: int
    reason: str
    detail: Optional[str] = None


class GenerationReportResponse(BaseModel):
    """Outcome of a generation run."""
    trip_date: date
    created_count: int
    created: List[TripResponse]
    skipped: List[SkippedScheduleResponse]
    failure_count: int
    warnings: List[str]
    
    @classmethod
    def from_report(cls, report) -> "GenerationReportResponse":
        return cls(
            trip_date=report.trip_date,
            created_count=len(report.created),
            created=[TripResponse.from_trip(trip) for trip in report.created],
            skipped=[
                SkippedScheduleResponse(schedule_id=s.schedule_id, reason=s.reason, detail=s.detail)
                for s in report.skipped
            ],
            failure_count=len(report.failures),
            warnings=report.warnings,
        )
