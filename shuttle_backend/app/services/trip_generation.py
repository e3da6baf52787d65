"""
Trip Generation Service.

Loads a consistent snapshot for one date, plans the trips with the pure
generator and persists them one by one. Safe to re-run and to run
concurrently for the same date: the partial unique index on
(schedule_id, trip_date) is the arbiter, and losing that race is reported
as "already generated".
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Set

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shuttle_backend.app.domain.scheduling.trip_generator import (
    GenerationReport,
    SKIP_ALREADY_GENERATED,
    SKIP_PERSISTENCE_ERROR,
    generate_trips_for_date,
    group_by_route,
    group_by_schedule,
)
from shuttle_backend.app.models.trip import Trip
from shuttle_backend.app.services import scheduling_queries

logger = logging.getLogger(__name__)


@dataclass
class GenerationSnapshot:
    """Read-only inputs of one generation run."""
    schedules: List = field(default_factory=list)
    overrides_by_schedule: Dict[int, List] = field(default_factory=dict)
    existing_trip_keys: Set[int] = field(default_factory=set)
    passengers_by_route: Dict[int, List] = field(default_factory=dict)
    vehicle_ids: Set[int] = field(default_factory=set)
    crew_ids: Set[int] = field(default_factory=set)


class TripGenerationService:

    @staticmethod
    async def load_snapshot(db: AsyncSession, on_date: date) -> GenerationSnapshot:
        schedules = await scheduling_queries.list_schedule_candidates_for_date(db, on_date)
        schedule_ids = [schedule.id for schedule in schedules]
        overrides = await scheduling_queries.list_overrides_covering(db, schedule_ids, on_date)
        passengers = await scheduling_queries.list_passengers_for_routes(
            db, [schedule.route_id for schedule in schedules]
        )
        return GenerationSnapshot(
            schedules=schedules,
            overrides_by_schedule=group_by_schedule(overrides),
            existing_trip_keys=await scheduling_queries.existing_trip_keys_for_date(db, on_date),
            passengers_by_route=group_by_route(passengers),
            vehicle_ids=await scheduling_queries.list_available_vehicle_ids(db),
            crew_ids=await scheduling_queries.list_available_crew_ids(db),
        )
    
    @staticmethod
    async def generate_for_date(db: AsyncSession, on_date: date) -> GenerationReport:
        """
        Generate the trips for ``on_date``.
        
        Flow:
        1. Load snapshot (schedules, overrides, existing trips, rosters, vehicles, crew)
        2. Plan trips (pure, per-schedule failures become skips)
        3. Commit each trip on its own so one failure cannot undo the others
        
        Returns:
            GenerationReport with the persisted trips (detached from the session)
        """
        snapshot = await TripGenerationService.load_snapshot(db, on_date)
        
        report = generate_trips_for_date(
            on_date,
            snapshot.schedules,
            snapshot.overrides_by_schedule,
            snapshot.existing_trip_keys,
            passengers_by_route=snapshot.passengers_by_route,
            vehicle_ids=snapshot.vehicle_ids,
            crew_ids=snapshot.crew_ids,
        )
        
        planned = report.created
        report.created = []
        for trip in planned:
            await TripGenerationService._persist(db, trip, report)
        
        logger.info(
            "Generated trips for %s: created=%d skipped=%d failures=%d warnings=%d",
            on_date, len(report.created), len(report.skipped),
            len(report.failures), len(report.warnings),
        )
        return report
    
    @staticmethod
    async def _persist(db: AsyncSession, trip: Trip, report: GenerationReport) -> bool:
        schedule_id, trip_date = trip.schedule_id, trip.trip_date
        
        db.add(trip)
        try:
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            # Another generator got there first, or a reference is broken
            if await scheduling_queries.trip_exists(db, schedule_id, trip_date):
                logger.info("Trip for schedule %s on %s created concurrently", schedule_id, trip_date)
                report.skip(schedule_id, SKIP_ALREADY_GENERATED, "created by a concurrent run")
            else:
                logger.error("Could not persist trip for schedule %s on %s: %s", schedule_id, trip_date, exc.orig)
                report.skip(schedule_id, SKIP_PERSISTENCE_ERROR, str(exc.orig))
            return False
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.exception("Could not persist trip for schedule %s on %s", schedule_id, trip_date)
            report.skip(schedule_id, SKIP_PERSISTENCE_ERROR, str(exc))
            return False
        
        # Keep the persisted trip usable after later rollbacks in this batch
        db.expunge(trip)
        report.created.append(trip)
        return True
