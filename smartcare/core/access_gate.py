"""
Access gate for dashboard views.

The gate is a pure function of the session status and the kind of view being
requested. It holds no state of its own; consumers re-evaluate it on every
session change.
"""
from enum import Enum
from typing import Callable, Dict

from ..auth.schemas import SessionState, SessionStatus
from .notifications import Unsubscribe

class ViewKind(str, Enum):
    """
    Kinds of views for access control.
    """
    # Sign-in and signup screens, only for signed-out visitors
    PUBLIC = "public"
    # Dashboard screens, only for signed-in clinicians
    PROTECTED = "protected"

class GateDecision(str, Enum):
    """
    Outcome of evaluating the gate.
    """
    PLACEHOLDER = "placeholder"
    ALLOW = "allow"
    DENY = "deny"


# Status-based access mapping
ACCESS_RULES: Dict[SessionStatus, Dict[ViewKind, GateDecision]] = {
    SessionStatus.LOADING: {
        ViewKind.PUBLIC: GateDecision.PLACEHOLDER,
        ViewKind.PROTECTED: GateDecision.PLACEHOLDER,
    },
    SessionStatus.UNAUTHENTICATED: {
        ViewKind.PUBLIC: GateDecision.ALLOW,
        ViewKind.PROTECTED: GateDecision.DENY,
    },
    SessionStatus.AUTHENTICATED_NO_PROFILE: {
        ViewKind.PUBLIC: GateDecision.DENY,
        ViewKind.PROTECTED: GateDecision.ALLOW,
    },
    SessionStatus.AUTHENTICATED: {
        ViewKind.PUBLIC: GateDecision.DENY,
        ViewKind.PROTECTED: GateDecision.ALLOW,
    },
}

# Where a denied view sends the visitor
REDIRECT_TARGETS: Dict[ViewKind, str] = {
    ViewKind.PUBLIC: "/",
    ViewKind.PROTECTED: "/login",
}


def evaluate_access(status: SessionStatus, view: ViewKind) -> GateDecision:
    """
    Decide whether a view may render for a session status.

    Args:
        status: Current session status
        view: Kind of view requested

    Returns:
        GateDecision: Placeholder, allow or deny
    """
    return ACCESS_RULES[status][view]


def redirect_target(view: ViewKind) -> str:
    """
    Get the path a denied view redirects to.

    Args:
        view: Kind of view that was denied

    Returns:
        str: Redirect path
    """
    return REDIRECT_TARGETS[view]


def watch_access(manager, view: ViewKind, callback: Callable[[GateDecision], None]) -> Unsubscribe:
    """
    Re-evaluate the gate for a view on every session change.

    Args:
        manager: Session manager to subscribe to
        view: Kind of view to evaluate
        callback: Called with the decision for the current state and each later state

    Returns:
        Unsubscribe: Stops watching
    """
    def on_state(state: SessionState) -> None:
        callback(evaluate_access(state.status, view))

    return manager.subscribe(on_state)
