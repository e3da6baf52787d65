"""
Trip Generation API Endpoint.

Manual trigger for generating the trips of one date. A scheduled job can
call the same service; repeated or concurrent calls never duplicate trips.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from shuttle_backend.app.db.session import get_db
from shuttle_backend.app.core.clock import Clock, get_clock
from shuttle_backend.app.core.guards import require_role
from shuttle_backend.app.models.enums import UserRole
from shuttle_backend.app.schemas.trip import GenerationReportResponse
from shuttle_backend.app.services.audit import log_event, AuditAction
from shuttle_backend.app.services.trip_generation import TripGenerationService

router = APIRouter(prefix="/admin/trips", tags=["Admin - Trip Generation"])


@router.post("/generate", response_model=GenerationReportResponse)
async def generate_trips(
    trip_date: Optional[date] = Query(None, description="Date to generate (defaults to today)"),
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """
    Generate trips for a date (Admin only).
    
    Always answers 200 with a report: schedules that already have a trip,
    do not run that day or could not be generated appear under ``skipped``.
    """
    target_date = trip_date or clock.today()
    report = await TripGenerationService.generate_for_date(db, target_date)
    response = GenerationReportResponse.from_report(report)
    
    await log_event(
        db=db,
        action=AuditAction.TRIPS_GENERATED,
        actor_id=current_user["user_id"],
        actor_username=current_user.get("sub"),
        entity="trip_date",
        metadata={
            "trip_date": str(target_date),
            "created": [trip.id for trip in report.created],
            "skipped": len(report.skipped),
            "failures": len(report.failures),
            "warnings": report.warnings
        }
    )
    
    return response
