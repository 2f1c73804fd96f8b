import logging
from sqlalchemy.orm import Session, sessionmaker
from typing import Optional, Dict, Any

from .audit_models import AuditLog
from ..auth.schemas import SessionState, SessionStatus

# Set up logging
logger = logging.getLogger(__name__)

def create_audit_log(
    db: Session,
    action: str,
    identity_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Creates an audit log entry.

    Args:
        db: The database session.
        action: A string describing the action performed (e.g., 'SESSION_AUTHENTICATED').
        identity_id: The identity the action concerns (if applicable).
        details: A dictionary containing additional context or data related to the action.

    Returns:
        The created AuditLog object.
    """
    audit_entry = AuditLog(
        identity_id=identity_id,
        action=action,
        details=details
    )
    db.add(audit_entry)
    db.commit()
    db.refresh(audit_entry)
    return audit_entry


class SessionAuditTrail:
    """
    Session state subscriber that records every settled transition.

    ``Loading`` is transient and is not recorded. A failed operation restores
    the state it started from; that republished state is not recorded again.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self._last_recorded: Optional[SessionState] = None
        self._last_identity_id: Optional[str] = None

    def __call__(self, state: SessionState) -> None:
        if state.status == SessionStatus.LOADING or state == self._last_recorded:
            return

        identity = getattr(state, "identity", None)
        profile = getattr(state, "profile", None)
        details: Dict[str, Any] = {}
        if identity is not None:
            details["email"] = identity.email
        if profile is not None:
            details["profile_id"] = profile.id
        elif self._last_identity_id and identity is None:
            details["previous_identity_id"] = self._last_identity_id

        action = f"SESSION_{state.status.value.upper()}"
        db = self._session_factory()
        try:
            create_audit_log(
                db,
                action=action,
                identity_id=identity.id if identity else None,
                details=details or None,
            )
            logger.debug(f"Audited {action} for identity {identity.id if identity else None}")
        finally:
            db.close()
        self._last_identity_id = identity.id if identity else None
        self._last_recorded = state
