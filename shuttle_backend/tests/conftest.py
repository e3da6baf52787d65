"""
Centralized Test Configuration.
"""

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from shuttle_backend.app.main import app
from shuttle_backend.app.db.session import get_db, Base
from shuttle_backend.app.core.clock import FixedClock, get_clock
from shuttle_backend.app.core.jwt import create_user_token
from shuttle_backend.app.core.redis_client import get_redis
from shuttle_backend.app.models.enums import ScheduleStatus, TimeSlot, UserRole
from shuttle_backend.app.models.passenger import Passenger
from shuttle_backend.app.models.route import Route, Stop
from shuttle_backend.app.models.schedule import Schedule
from shuttle_backend.app.models.user import User
from shuttle_backend.app.models.vehicle import Vehicle

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Monday
CLOCK_START = datetime(2025, 1, 20, 7, 30, tzinfo=timezone.utc)


def _enable_foreign_keys(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False
    
    async def ping(self):
        if self._closed:
            return False
        return True
    
    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)
    
    async def set(self, key, value, ex=None, px=None, nx=False):
        if self._closed:
            return False
        if nx and key in self.store:
            return None
        self.store[key] = value
        return True
    
    async def delete(self, key):
        if self._closed:
            return 0
        if key in self.store:
            del self.store[key]
            return 1
        return 0
    
    async def exists(self, key):
        if self._closed:
            return 0
        return 1 if key in self.store else 0
    
    async def flushdb(self):
        if not self._closed:
            self.store = {}
    
    async def aclose(self):
        self._closed = True
        self.store = {}


@pytest.fixture
def mock_redis():
    return MockRedis()


@pytest.fixture
def clock():
    """Pinned clock; tests may ``advance`` it."""
    return FixedClock(CLOCK_START)


@pytest.fixture
async def session_factory():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine.sync_engine, "connect", _enable_foreign_keys)
    
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture(autouse=True)
def apply_overrides(session_factory, mock_redis, clock):
    """Point the app at the test database, Redis and clock."""
    
    async def override_get_db():
        async with session_factory() as session:
            yield session
    
    async def override_get_redis():
        return mock_redis
    
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_clock] = lambda: clock
    yield
    
    app.dependency_overrides = {}


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


def auth_headers(user: User) -> dict:
    token = create_user_token(user)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth():
    """``auth(user)`` -> Authorization header for that user."""
    return auth_headers


@pytest.fixture
async def fleet(db_session):
    """
    Baseline data: one admin, two drivers, two attendants (only the first
    may start trips), a vehicle and route "Course A" with three stops and
    one passenger per stop.
    """
    admin = User(email="admin@shuttle.test", username="admin", role=UserRole.ADMIN)
    driver = User(email="kim@shuttle.test", username="kim.driver", full_name="Kim", role=UserRole.DRIVER)
    substitute = User(email="lee@shuttle.test", username="lee.driver", full_name="Lee", role=UserRole.DRIVER)
    attendant = User(
        email="park@shuttle.test", username="park.attendant", role=UserRole.ATTENDANT, can_start_trip=True
    )
    relief_attendant = User(email="choi@shuttle.test", username="choi.attendant", role=UserRole.ATTENDANT)
    vehicle = Vehicle(plate_number="12A3456", model_name="Starex", capacity=12)
    route = Route(name="Course A", estimated_minutes=40)
    db_session.add_all([admin, driver, substitute, attendant, relief_attendant, vehicle, route])
    await db_session.flush()
    
    stops = [
        Stop(route_id=route.id, name=f"Stop {sequence}", sequence=sequence, estimated_arrival_offset=sequence * 10)
        for sequence in (1, 2, 3)
    ]
    db_session.add_all(stops)
    await db_session.flush()
    
    passengers = [
        Passenger(name=f"Passenger {index}", route_id=route.id, stop_id=stop.id)
        for index, stop in enumerate(stops, start=1)
    ]
    db_session.add_all(passengers)
    await db_session.commit()
    
    return SimpleNamespace(
        admin=admin,
        driver=driver,
        substitute=substitute,
        attendant=attendant,
        relief_attendant=relief_attendant,
        vehicle=vehicle,
        route=route,
        stops=stops,
        passengers=passengers,
    )


@pytest.fixture
def make_schedule(db_session, fleet):
    """Factory for weekday morning schedules on Course A."""
    
    async def _make(**overrides) -> Schedule:
        values = dict(
            name="08:00 Course A",
            start_time="08:00",
            time_slot=TimeSlot.MORNING,
            days_of_week=[1, 2, 3, 4, 5],
            status=ScheduleStatus.ACTIVE,
            route_id=fleet.route.id,
            vehicle_id=fleet.vehicle.id,
            default_driver_id=fleet.driver.id,
            default_attendant_id=fleet.attendant.id,
        )
        values.update(overrides)
        schedule = Schedule(**values)
        db_session.add(schedule)
        await db_session.commit()
        return schedule
    
    return _make
