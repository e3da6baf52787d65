"""
Bearer token encoding and decoding.

Tokens carry ``sub`` (username), ``user_id`` and ``role``. The role claim
is informational only: ``get_current_user`` replaces it with the role
stored on the user.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from shuttle_backend.app.core.config import settings


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Sign ``data`` with an ``exp`` claim (default lifetime from settings)."""
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {**data, "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def create_user_token(user, expires_delta: Optional[timedelta] = None) -> str:
    """Token for an admin, driver or attendant record."""
    return create_access_token(
        {"sub": user.username, "user_id": user.id, "role": user.role.value},
        expires_delta=expires_delta,
    )


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Claims of a valid, unexpired token; None otherwise."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
