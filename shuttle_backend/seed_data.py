"""
Database seeding script for a demo shuttle operation.

Creates one admin, two drivers, one attendant, a vehicle, route "Course A"
with three stops and passengers, and a weekday morning schedule.
Run this script after the database is up and before first use:

    python -m shuttle_backend.seed_data
"""

import asyncio

from sqlalchemy import select

from shuttle_backend.app.core.jwt import create_user_token
from shuttle_backend.app.db.session import AsyncSessionLocal, Base, engine
from shuttle_backend.app.models.enums import ScheduleStatus, TimeSlot, UserRole
from shuttle_backend.app.models.passenger import Passenger
from shuttle_backend.app.models.route import Route, Stop
from shuttle_backend.app.models.schedule import Schedule
from shuttle_backend.app.models.user import User
from shuttle_backend.app.models.vehicle import Vehicle

# Registered with Base for create_all
from shuttle_backend.app.models.driver_assignment import DriverAssignment  # noqa: F401
from shuttle_backend.app.models.trip import Trip, TripPassenger  # noqa: F401
from shuttle_backend.app.models.audit_log import AuditLog  # noqa: F401

STOPS = [
    ("Riverside Apartments Gate 2", 37.5172, 127.0473),
    ("Central Park North", 37.5219, 127.0411),
    ("Hanbit Day Care Center", 37.5250, 127.0380),
]


async def seed():
    """
    Seed the demo data.
    
    Does nothing if the admin user already exists.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    
    async with AsyncSessionLocal() as db:
        print("🌱 Starting seeding...")
        
        result = await db.execute(select(User).where(User.username == "admin"))
        if result.scalar_one_or_none():
            print("ℹ️  admin user already exists, skipping seeding")
            return
        
        admin = User(email="admin@shuttle.local", username="admin", role=UserRole.ADMIN)
        driver = User(email="kim@shuttle.local", username="kim.driver", full_name="Kim", role=UserRole.DRIVER)
        substitute = User(email="lee@shuttle.local", username="lee.driver", full_name="Lee", role=UserRole.DRIVER)
        attendant = User(
            email="park@shuttle.local", username="park.attendant", full_name="Park",
            role=UserRole.ATTENDANT, can_start_trip=True
        )
        vehicle = Vehicle(plate_number="12A3456", model_name="Starex", capacity=12)
        route = Route(name="Course A", description="Morning pick-up loop", estimated_minutes=40)
        db.add_all([admin, driver, substitute, attendant, vehicle, route])
        await db.flush()
        
        stops = [
            Stop(route_id=route.id, name=name, sequence=sequence, latitude=lat, longitude=lng,
                 estimated_arrival_offset=(sequence - 1) * 12)
            for sequence, (name, lat, lng) in enumerate(STOPS, start=1)
        ]
        db.add_all(stops)
        await db.flush()
        
        db.add_all([
            Passenger(name=f"Passenger {index}", route_id=route.id, stop_id=stop.id)
            for index, stop in enumerate(stops[:-1] * 2, start=1)
        ])
        db.add(Schedule(
            name="08:00 Course A",
            start_time="08:00",
            time_slot=TimeSlot.MORNING,
            days_of_week=[1, 2, 3, 4, 5],
            status=ScheduleStatus.ACTIVE,
            route_id=route.id,
            vehicle_id=vehicle.id,
            default_driver_id=driver.id,
            default_attendant_id=attendant.id,
        ))
        
        await db.commit()
        
        print("\n🎉 Seeding completed successfully!")
        print("\nBearer tokens:")
        for user in (admin, driver, substitute, attendant):
            token = create_user_token(user)
            print(f"  - {user.role.value:<9} {user.username}: {token}")


if __name__ == "__main__":
    asyncio.run(seed())
