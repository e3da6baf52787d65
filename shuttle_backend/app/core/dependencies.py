"""
Authentication dependency.

Resolves the bearer token to the acting user. Handlers receive a plain
dict (``sub``, ``user_id``, ``role``, ``can_start_trip``) rather than the
ORM row.
"""

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from shuttle_backend.app.core.exceptions import AuthenticationError, InsufficientPermissionsError
from shuttle_backend.app.core.jwt import decode_access_token
from shuttle_backend.app.db.session import get_db
from shuttle_backend.app.models.user import User

security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    Decode the token and check the user against the database.
    
    Deactivated crew lose access immediately, and role changes apply
    without re-issuing tokens.
    
    Raises:
        AuthenticationError: bad or expired token, or unknown user (401)
        InsufficientPermissionsError: user is deactivated (403)
    """
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise AuthenticationError("Could not validate credentials")
    
    user_id = payload.get("user_id")
    if not user_id:
        raise AuthenticationError("Invalid token payload")
    
    user = await db.get(User, user_id)
    if not user:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise InsufficientPermissionsError("User account is inactive")
    
    return {
        "sub": user.username,
        "user_id": user.id,
        "role": user.role.value,
        "can_start_trip": bool(user.can_start_trip),
    }
