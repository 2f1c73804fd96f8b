"""
FastAPI dependencies for the session manager and the access gate.
"""
from fastapi import Depends, Request, status

from ..core.access_gate import GateDecision, ViewKind, evaluate_access, redirect_target
from .exceptions import AccessDeniedException, IdentityUnavailableException, SessionLoadingException
from .schemas import SessionState
from .service import SessionManager

def get_session_manager(request: Request) -> SessionManager:
    """
    Get the process-wide session manager.

    Raises:
        IdentityUnavailableException: If the identity provider is not configured
    """
    manager = getattr(request.app.state, "session_manager", None)
    if manager is None:
        raise IdentityUnavailableException("Identity provider is not configured")
    return manager

def _view_gate(view: ViewKind):
    def gate(manager: SessionManager = Depends(get_session_manager)) -> SessionState:
        state = manager.get_state()
        decision = evaluate_access(state.status, view)
        if decision == GateDecision.PLACEHOLDER:
            raise SessionLoadingException()
        if decision == GateDecision.DENY:
            if view == ViewKind.PROTECTED:
                raise AccessDeniedException(status.HTTP_401_UNAUTHORIZED, "Sign in required", redirect_target(view))
            raise AccessDeniedException(status.HTTP_409_CONFLICT, "Already signed in", redirect_target(view))
        return state
    return gate

# Sign-in and signup screens
require_public_view = _view_gate(ViewKind.PUBLIC)

# Dashboard screens
require_protected_view = _view_gate(ViewKind.PROTECTED)
