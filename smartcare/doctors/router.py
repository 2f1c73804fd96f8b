"""
Doctor Router - API endpoints for the signed-in doctor's profile.
"""
from fastapi import APIRouter, Depends, HTTPException, status

from ..auth.dependencies import get_session_manager, require_protected_view
from ..auth.schemas import Authenticated, SessionState
from ..auth.service import SessionManager
from .schemas import DoctorProfile, DoctorProfileFields

router = APIRouter()

@router.get("/me", response_model=DoctorProfile)
async def get_my_doctor_profile(state: SessionState = Depends(require_protected_view)):
    """
    Get the current doctor's profile

    Returns 404 while the signed-in account has no linked profile.
    """
    if not isinstance(state, Authenticated):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No doctor profile is linked to this account"
        )
    return state.profile

@router.post("/me", response_model=DoctorProfile, status_code=status.HTTP_201_CREATED)
async def create_my_doctor_profile(
    profile_fields: DoctorProfileFields,
    manager: SessionManager = Depends(get_session_manager),
    _: SessionState = Depends(require_protected_view)
):
    """
    Create the missing profile for the signed-in account

    This is the retry path after a signup whose profile could not be saved.
    """
    state = await manager.complete_profile(profile_fields)
    if not isinstance(state, Authenticated):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="The session changed while the profile was being created"
        )
    return state.profile
