"""
Security guards for role-based and crew-based access control.

Provides dependencies for protecting endpoints and the crew check
that runs before any trip lifecycle or boarding command.
"""

from typing import List
from fastapi import Depends, HTTPException, status
from shuttle_backend.app.models.enums import UserRole
from shuttle_backend.app.core.dependencies import get_current_user
from shuttle_backend.app.core.exceptions import InsufficientPermissionsError


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.
    
    Usage:
        @router.post("/admin/trips/generate")
        async def generate(current_user: dict = Depends(require_role([UserRole.ADMIN]))):
            ...
    
    Args:
        allowed_roles: List of UserRole enums that are allowed to access the endpoint
    
    Returns:
        FastAPI dependency function that validates user role
    
    Raises:
        HTTPException 403 if user role is not in allowed_roles
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        user_role_str = current_user.get("role")
        
        if not user_role_str:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Role information missing from token"
            )
        
        # Convert string role to UserRole enum
        try:
            user_role = UserRole(user_role_str)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid role in token"
            )
        
        # Check if user role is in allowed roles
        if user_role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )
        
        return current_user
    
    return role_checker


def resolve_crew_role(trip, current_user: dict, starting: bool = False) -> str:
    """
    Return the crew role ("driver" or "attendant") the caller holds on a trip.
    
    The caller must be the trip's assigned driver (role DRIVER) or its
    assigned attendant (role ATTENDANT). With ``starting`` an attendant also
    needs the start-trip permission an admin grants per attendant.
    
    Raises:
        InsufficientPermissionsError: caller is not on the trip's crew, or
            is an attendant without the start-trip permission
    """
    user_id = current_user.get("user_id")
    role = current_user.get("role")
    
    if role == UserRole.DRIVER.value and trip.assigned_driver_id == user_id:
        return "driver"
    if role == UserRole.ATTENDANT.value and trip.assigned_attendant_id is not None \
            and trip.assigned_attendant_id == user_id:
        if starting and not current_user.get("can_start_trip"):
            raise InsufficientPermissionsError(
                message="Attendant is not allowed to start trips",
                details={"trip_id": trip.id, "user_id": user_id}
            )
        return "attendant"
    
    raise InsufficientPermissionsError(
        message="This trip is not assigned to you",
        details={"trip_id": trip.id, "user_id": user_id}
    )


def is_admin(current_user: dict) -> bool:
    return current_user.get("role") == UserRole.ADMIN.value
