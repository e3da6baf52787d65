"""
Crew member schemas.
"""

from typing import Optional

from pydantic import BaseModel

from shuttle_backend.app.models.enums import UserRole


class StartPermissionChange(BaseModel):
    """Grant (true) or revoke (false) an attendant's start-trip permission."""
    can_start_trip: bool


class CrewMemberResponse(BaseModel):
    id: int
    username: str
    full_name: Optional[str]
    role: UserRole
    is_active: bool
    can_start_trip: bool
    
    class Config:
        from_attributes = True
