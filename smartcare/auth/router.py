"""
Session Router - API endpoints for signing in, signing up and signing out.
"""
from fastapi import APIRouter, Depends, status

from .dependencies import get_session_manager, require_protected_view, require_public_view
from .schemas import SessionResponse, SessionState, SignInRequest, SignUpRequest
from .service import SessionManager

router = APIRouter()

@router.get("/session", response_model=SessionResponse)
async def get_session(manager: SessionManager = Depends(get_session_manager)):
    """
    Get the current session state

    Any client may read the session, whatever its status.
    """
    return SessionResponse.from_state(manager.get_state())

@router.post("/signin", response_model=SessionResponse)
async def sign_in(
    credentials: SignInRequest,
    manager: SessionManager = Depends(get_session_manager),
    _: SessionState = Depends(require_public_view)
):
    """
    Sign in with email and password

    The session lands on `authenticated` or, when no profile is linked to
    the account, on `authenticated_no_profile`.
    """
    state = await manager.sign_in(credentials.email, credentials.password)
    return SessionResponse.from_state(state)

@router.post("/signup", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(
    registration: SignUpRequest,
    manager: SessionManager = Depends(get_session_manager),
    _: SessionState = Depends(require_public_view)
):
    """
    Register a clinician account and its doctor profile

    If the account is created but the profile is not, the response is an
    error with code `profile_creation_error`; signing in then leads to
    `authenticated_no_profile` and the profile can be created with
    `POST /api/v1/doctors/me`.
    """
    state = await manager.sign_up(
        registration.email,
        registration.password,
        registration.confirm_password,
        registration.profile_fields()
    )
    return SessionResponse.from_state(state)

@router.post("/signout", response_model=SessionResponse)
async def sign_out(
    manager: SessionManager = Depends(get_session_manager),
    _: SessionState = Depends(require_protected_view)
):
    """
    Sign out

    The local session is cleared even if the identity provider fails to
    confirm the sign-out.
    """
    state = await manager.sign_out()
    return SessionResponse.from_state(state)
