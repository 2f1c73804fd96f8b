"""
Session Schemas - Pydantic models for identities and the reconciled session state.

The session state is a tagged union: exactly one of ``Loading``,
``Unauthenticated``, ``AuthenticatedNoProfile`` or ``Authenticated`` holds at
any instant, distinguished by its ``status`` field. All variants are frozen so
that subscribers only ever hold read-only snapshots.
"""
from enum import Enum
from typing import Literal, Optional, Union
from pydantic import BaseModel, Field, model_validator

from ..doctors.schemas import DoctorProfile, DoctorProfileFields

class SessionStatus(str, Enum):
    """Status tag of the session state."""
    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED_NO_PROFILE = "authenticated_no_profile"
    AUTHENTICATED = "authenticated"

class Identity(BaseModel):
    """
    Identity Schema - Read-only copy of the identity provider's user

    Fields:
    - id: Opaque identity provider user id
    - email: Email address of the identity
    """
    id: str
    email: str

    class Config:
        frozen = True

class _SessionStateBase(BaseModel):
    class Config:
        frozen = True

class Loading(_SessionStateBase):
    """Session is being resolved; views show a neutral placeholder."""
    status: Literal[SessionStatus.LOADING] = SessionStatus.LOADING

class Unauthenticated(_SessionStateBase):
    """No identity is signed in. Carries neither identity nor profile."""
    status: Literal[SessionStatus.UNAUTHENTICATED] = SessionStatus.UNAUTHENTICATED

class AuthenticatedNoProfile(_SessionStateBase):
    """An identity is signed in but no profile is linked to it (or it could not be loaded)."""
    status: Literal[SessionStatus.AUTHENTICATED_NO_PROFILE] = SessionStatus.AUTHENTICATED_NO_PROFILE
    identity: Identity

class Authenticated(_SessionStateBase):
    """An identity is signed in together with its own profile."""
    status: Literal[SessionStatus.AUTHENTICATED] = SessionStatus.AUTHENTICATED
    identity: Identity
    profile: DoctorProfile

    @model_validator(mode="after")
    def profile_belongs_to_identity(self):
        if self.profile.identity_id != self.identity.id:
            raise ValueError(
                f"Profile {self.profile.id} belongs to identity {self.profile.identity_id}, not {self.identity.id}"
            )
        return self

SessionState = Union[Loading, Unauthenticated, AuthenticatedNoProfile, Authenticated]

class SignInRequest(BaseModel):
    """
    Sign In Schema - Used for authentication

    Fields:
    - email: User's email address
    - password: User's plain text password
    """
    email: str = Field("", description="Email address")
    password: str = Field("", description="Password")

class SignUpRequest(DoctorProfileFields):
    """
    Sign Up Schema - Used when a clinician registers

    Extends DoctorProfileFields with:
    - email: User's email address
    - password: User's plain text password
    - confirm_password: Must equal password
    """
    email: str = Field("", description="Email address")
    password: str = Field("", description="Password")
    confirm_password: str = Field("", description="Password confirmation")

    def profile_fields(self) -> DoctorProfileFields:
        """Return only the profile part of the request"""
        return DoctorProfileFields(**self.model_dump(include=set(DoctorProfileFields.model_fields)))

class SessionResponse(BaseModel):
    """
    Session Response Schema - Snapshot of the session state returned by the API

    Fields:
    - status: Session status tag
    - identity: Signed-in identity, if any
    - profile: Linked doctor profile, if any
    """
    status: SessionStatus
    identity: Optional[Identity] = None
    profile: Optional[DoctorProfile] = None

    @classmethod
    def from_state(cls, state: SessionState) -> "SessionResponse":
        return cls(
            status=state.status,
            identity=getattr(state, "identity", None),
            profile=getattr(state, "profile", None),
        )
