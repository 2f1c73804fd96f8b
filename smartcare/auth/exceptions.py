"""
Session-specific exceptions.

Every failure of the session subsystem resolves to one of these classes. They
are HTTPExceptions so the API layer can surface them directly, and each one
carries a stable ``code`` for clients that branch on the failure kind.
"""
from fastapi import HTTPException, status
from typing import Dict, Optional

class SessionException(HTTPException):
    """Base class for session exceptions."""
    code = "session_error"

    def __init__(self, status_code: int, detail: str, headers: Optional[Dict[str, str]] = None):
        super().__init__(status_code=status_code, detail=detail, headers=headers)

class ValidationException(SessionException):
    """Exception raised when local input checks fail before any network call."""
    code = "validation_error"

    def __init__(self, detail: str = "Please fill in all fields"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

class AuthenticationException(SessionException):
    """Exception raised when the identity provider rejects the credentials."""
    code = "authentication_error"

    def __init__(self, detail: str = "Failed to sign in. Please check your credentials."):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)

class SignUpException(SessionException):
    """Exception raised when the identity provider cannot create the identity."""
    code = "sign_up_error"

    def __init__(self, detail: str = "User registration failed"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

class ProfileLookupException(SessionException):
    """Exception raised by a profile store when a lookup fails."""
    code = "profile_lookup_error"

    def __init__(self, identity_id: str, detail: str = None):
        self.identity_id = identity_id
        message = detail or f"Could not load the profile for identity {identity_id}"
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=message)

class ProfileInsertException(SessionException):
    """Exception raised by a profile store when an insert fails."""
    code = "profile_insert_error"

    def __init__(self, detail: str = "Failed to save the profile"):
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)

class ProfileCreationException(SessionException):
    """
    Exception raised when the identity exists but its profile could not be saved.

    The identity is kept. Signing in again lands on a session without a
    profile, from which profile creation can be retried.
    """
    code = "profile_creation_error"

    def __init__(self, identity_id: str, detail: str = "Failed to save doctor data. Please contact support."):
        self.identity_id = identity_id
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)

class SignOutException(SessionException):
    """Exception raised when the remote sign-out fails. Local state is cleared regardless."""
    code = "sign_out_error"

    def __init__(self, detail: str = "Sign-out could not be confirmed by the identity provider"):
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)

class IdentityUnavailableException(SessionException):
    """Exception raised when the identity provider cannot be reached or is not configured."""
    code = "identity_unavailable"

    def __init__(self, detail: str = "Identity provider is unavailable"):
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)

class SessionLoadingException(SessionException):
    """Exception raised when a view is requested while the session is settling."""
    code = "session_loading"

    def __init__(self, detail: str = "Session is loading"):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
            headers={"Retry-After": "1"},
        )

class AccessDeniedException(SessionException):
    """Exception raised when the access gate denies a view for the current session."""
    code = "access_denied"

    def __init__(self, status_code: int, detail: str, redirect_to: str):
        self.redirect_to = redirect_to
        super().__init__(status_code=status_code, detail=detail, headers={"Location": redirect_to})
