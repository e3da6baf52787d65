"""
Crew Member Administration API Endpoints.

Admins grant or revoke an attendant's permission to start trips. Drivers
always may start their own trips.
"""

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from shuttle_backend.app.db.session import get_db
from shuttle_backend.app.core.guards import require_role
from shuttle_backend.app.models.enums import UserRole
from shuttle_backend.app.models.user import User
from shuttle_backend.app.schemas.crew import CrewMemberResponse, StartPermissionChange
from shuttle_backend.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/admin/attendants", tags=["Admin - Crew"])


@router.put("/{user_id}/start-permission", response_model=CrewMemberResponse)
async def set_start_permission(
    payload: StartPermissionChange,
    user_id: int = Path(..., description="Attendant user ID"),
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """
    Set whether an attendant may start the trips they are assigned to.
    
    Takes effect on the attendant's next request; tokens are not re-issued.
    """
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Attendant not found"
        )
    if user.role != UserRole.ATTENDANT:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"User {user_id} is not an attendant"
        )
    
    user.can_start_trip = payload.can_start_trip
    await db.commit()
    await db.refresh(user)
    
    await log_event(
        db=db,
        action=AuditAction.START_PERMISSION_GRANTED if user.can_start_trip else AuditAction.START_PERMISSION_REVOKED,
        actor_id=current_user["user_id"],
        actor_username=current_user.get("sub"),
        entity="user",
        entity_id=user.id,
        metadata={"can_start_trip": user.can_start_trip}
    )
    
    return CrewMemberResponse.model_validate(user)
