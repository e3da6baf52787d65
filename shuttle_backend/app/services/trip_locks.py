"""
Per-trip request locks.

Lifecycle and boarding commands must not race on the same trip. A short
Redis lock (SET NX PX) keyed by trip id serializes them across workers.
"""

import uuid
from contextlib import asynccontextmanager

from shuttle_backend.app.core.config import settings
from shuttle_backend.app.core.exceptions import TripBusyError


def lock_key(trip_id: int) -> str:
    return f"trip-lock:{trip_id}"


@asynccontextmanager
async def trip_lock(redis, trip_id: int, ttl_ms: int = None):
    """
    Hold the lock for ``trip_id`` for the duration of the block.
    
    Raises:
        TripBusyError: another request holds the lock
    """
    key = lock_key(trip_id)
    token = str(uuid.uuid4())
    acquired = await redis.set(key, token, nx=True, px=ttl_ms or settings.trip_lock_ttl_ms)
    if not acquired:
        raise TripBusyError(trip_id)
    try:
        yield
    finally:
        # Only release our own lock; it may have expired and been re-taken
        current = await redis.get(key)
        if current in (token, token.encode()):
            await redis.delete(key)
