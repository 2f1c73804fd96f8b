"""
Test configuration for the SmartCare dashboard backend.
"""
import os

# Test database URL, set before the application settings are loaded
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ.setdefault("AUDIT_SESSION_TRANSITIONS", "true")

import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from smartcare.auth.exceptions import (
    AuthenticationException,
    IdentityUnavailableException,
    ProfileInsertException,
    ProfileLookupException,
    SignOutException,
    SignUpException
)
from smartcare.auth.schemas import Identity
from smartcare.auth.service import SessionManager
from smartcare.database import Base, SessionLocal, engine
from smartcare.doctors.schemas import DoctorProfile, DoctorProfileCreate, DoctorProfileFields
from smartcare.main import create_app


class FakeIdentityClient:
    """
    In-memory identity provider.

    Like the Supabase SDK it reports its own sign-in, sign-up and sign-out
    through the session-change listeners.
    """

    def __init__(self):
        self.accounts: Dict[str, Tuple[str, Identity]] = {}
        self.current: Optional[Identity] = None
        self.listeners: List = []
        self.unsubscribe_calls = 0
        self.sign_in_calls: List[str] = []
        self.sign_up_calls: List[Tuple[str, dict]] = []
        self.sign_out_calls = 0
        self.fail_get_session = False
        self.fail_sign_up = False
        self.fail_sign_out = False
        self._holds: Dict[str, asyncio.Event] = {}

    def register(self, email: str, password: str) -> Identity:
        identity = Identity(id=f"identity-{len(self.accounts) + 1}", email=email)
        self.accounts[email] = (password, identity)
        return identity

    def hold(self, email: str) -> asyncio.Event:
        """Make sign-in for ``email`` wait until the returned event is set."""
        event = asyncio.Event()
        self._holds[email] = event
        return event

    def emit(self, identity: Optional[Identity]) -> None:
        """Simulate a session change made outside the manager."""
        self.current = identity
        for listener in list(self.listeners):
            listener(identity)

    async def get_session(self) -> Optional[Identity]:
        if self.fail_get_session:
            raise IdentityUnavailableException()
        return self.current

    async def sign_in(self, email: str, password: str) -> Identity:
        self.sign_in_calls.append(email)
        if email in self._holds:
            await self._holds.pop(email).wait()
        else:
            await asyncio.sleep(0)
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise AuthenticationException()
        self.emit(account[1])
        return account[1]

    async def sign_up(self, email: str, password: str, metadata: dict) -> Identity:
        self.sign_up_calls.append((email, metadata))
        await asyncio.sleep(0)
        if self.fail_sign_up or email in self.accounts:
            raise SignUpException("User already registered")
        identity = self.register(email, password)
        self.emit(identity)
        return identity

    async def sign_out(self) -> None:
        self.sign_out_calls += 1
        await asyncio.sleep(0)
        if self.fail_sign_out:
            raise SignOutException()
        self.emit(None)

    def on_session_change(self, callback):
        self.listeners.append(callback)

        def unsubscribe():
            self.unsubscribe_calls += 1
            if callback in self.listeners:
                self.listeners.remove(callback)

        return unsubscribe


class FakeProfileStore:
    """In-memory profile store with switchable failures."""

    def __init__(self):
        self.profiles: Dict[str, DoctorProfile] = {}
        self.lookups: List[str] = []
        self.fail_lookup = False
        self.fail_insert = False
        self._holds: Dict[str, asyncio.Event] = {}

    def hold(self, identity_id: str) -> asyncio.Event:
        """Make the next lookup or insert for ``identity_id`` wait until the returned event is set."""
        event = asyncio.Event()
        self._holds[identity_id] = event
        return event

    async def _wait(self, identity_id: str) -> None:
        if identity_id in self._holds:
            await self._holds.pop(identity_id).wait()
        else:
            await asyncio.sleep(0)

    def add(self, identity: Identity, **fields) -> DoctorProfile:
        values = dict(full_name="Jane Doe", specialty="Cardiology", license_number="L123", phone="555-0100")
        values.update(fields)
        profile = DoctorProfile(
            id=len(self.profiles) + 1,
            identity_id=identity.id,
            email=identity.email,
            created_at=datetime.now(timezone.utc),
            **values
        )
        self.profiles[identity.id] = profile
        return profile

    async def find_profile_by_identity(self, identity_id: str) -> Optional[DoctorProfile]:
        self.lookups.append(identity_id)
        await self._wait(identity_id)
        if self.fail_lookup:
            raise ProfileLookupException(identity_id)
        return self.profiles.get(identity_id)

    async def insert_profile(self, record: DoctorProfileCreate) -> DoctorProfile:
        await self._wait(record.identity_id)
        if self.fail_insert or record.identity_id in self.profiles:
            raise ProfileInsertException()
        profile = DoctorProfile(
            id=len(self.profiles) + 1,
            created_at=datetime.now(timezone.utc),
            **record.model_dump()
        )
        self.profiles[record.identity_id] = profile
        return profile


@pytest.fixture
def identity_client():
    return FakeIdentityClient()


@pytest.fixture
def profile_store():
    return FakeProfileStore()


@pytest.fixture
def manager(identity_client, profile_store):
    return SessionManager(identity_client, profile_store, min_password_length=6)


@pytest.fixture
def profile_fields():
    return DoctorProfileFields(
        full_name="Jane Doe",
        specialty="Cardiology",
        license_number="L123",
        phone="555-0100"
    )


@pytest.fixture(scope="function")
def db():
    """
    Create a fresh database for each test.
    """
    # Create tables
    Base.metadata.create_all(bind=engine)

    # Create session
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

    # Drop tables after test
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db, identity_client, profile_store):
    """
    Create a test client wired to the fake identity provider and profile store.
    """
    app = create_app(identity_client=identity_client, profile_store=profile_store)

    with TestClient(app) as client:
        yield client
