"""
FastAPI Application Entry Point.

This is the main application file for the Shuttle Operations Backend.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shuttle_backend.app.core.config import settings
from shuttle_backend.app.core.logging_setup import setup_logging
from shuttle_backend.app.core.observability import ObservabilityMiddleware
from shuttle_backend.app.core.redis_client import close_redis, get_redis, ping_redis
from shuttle_backend.app.api.v1.router import router as api_v1_router
from shuttle_backend.app.db.session import engine, Base, get_db
from shuttle_backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from shuttle_backend.app.models.user import User  # noqa: F401
from shuttle_backend.app.models.vehicle import Vehicle  # noqa: F401
from shuttle_backend.app.models.route import Route, Stop  # noqa: F401
from shuttle_backend.app.models.passenger import Passenger  # noqa: F401
from shuttle_backend.app.models.schedule import Schedule  # noqa: F401
from shuttle_backend.app.models.driver_assignment import DriverAssignment  # noqa: F401
from shuttle_backend.app.models.trip import Trip, TripPassenger  # noqa: F401
from shuttle_backend.app.models.audit_log import AuditLog  # noqa: F401

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.
    
    1. Configures logging.
    2. Creates database tables on startup.
    """
    setup_logging(settings.log_level, settings.log_json, settings.environment)
    
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    
    logger.info("%s started (environment=%s)", settings.app_name, settings.environment)
    yield
    await close_redis()
    await engine.dispose()

# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug and not settings.is_production,
    description="Shuttle schedules, daily trip generation and crew trip execution",
    lifespan=lifespan,
)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ObservabilityMiddleware)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.
    
    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


@app.get("/health/live", tags=["Health"])
async def liveness():
    return {"status": "alive"}


@app.get("/health/ready", tags=["Health"])
async def readiness(db: AsyncSession = Depends(get_db), redis=Depends(get_redis)):
    """
    Readiness probe: database and Redis must both answer.
    
    Returns 503 with per-dependency status when either is down.
    """
    checks = {"database": "ok", "redis": "ok"}
    
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.warning("Readiness check: database unavailable", exc_info=True)
        checks["database"] = "unavailable"
    
    if not await ping_redis(redis):
        logger.warning("Readiness check: redis unavailable")
        checks["redis"] = "unavailable"
    
    if all(value == "ok" for value in checks.values()):
        return {"status": "ready", "checks": checks}
    return JSONResponse(status_code=503, content={"status": "not_ready", "checks": checks})


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.
    
    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to Shuttle Operations Backend API",
        "docs": "/docs",
        "health": "/health",
    }
