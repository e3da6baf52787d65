"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from shuttle_backend.app.api.v1.endpoints import (
    schedules, driver_assignments, crew_members,
    trip_generation, trip_execution, boarding
)

router = APIRouter()

# Admin - schedules and driver overrides
router.include_router(schedules.router)
router.include_router(driver_assignments.router)

# Admin - crew permissions
router.include_router(crew_members.router)

# Admin - daily trip generation
router.include_router(trip_generation.router)

# Crew - trip execution and boarding
router.include_router(trip_execution.router)
router.include_router(boarding.router)
