"""
Identity client - the hosted identity provider as seen by the session manager.

``IdentityClient`` names the contract. ``SupabaseIdentityClient`` implements it
with the Supabase SDK: blocking SDK calls run in the threadpool, and the SDK's
auth-state callbacks are handed back to the event loop that subscribed.
"""
import asyncio
import logging
from typing import Any, Callable, Dict, Optional, Protocol

from fastapi.concurrency import run_in_threadpool
from supabase import Client, create_client

from ..config import Settings
from .exceptions import (
    AuthenticationException,
    IdentityUnavailableException,
    SignOutException,
    SignUpException
)
from .schemas import Identity

# Set up logging
logger = logging.getLogger(__name__)

SessionChangeCallback = Callable[[Optional[Identity]], None]

class IdentityClient(Protocol):
    """Issues and validates credentials and reports session changes."""

    async def get_session(self) -> Optional[Identity]:
        """Return the identity of the cached session, if any. Raises IdentityUnavailableException."""
        ...

    async def sign_in(self, email: str, password: str) -> Identity:
        """Check credentials. Raises AuthenticationException."""
        ...

    async def sign_up(self, email: str, password: str, metadata: Dict[str, Any]) -> Identity:
        """Create an identity. Raises SignUpException."""
        ...

    async def sign_out(self) -> None:
        """End the provider session. Raises SignOutException."""
        ...

    def on_session_change(self, callback: SessionChangeCallback) -> Callable[[], None]:
        """Register a callback for session changes and return its unsubscribe handle."""
        ...


def identity_from_user(user: Any) -> Optional[Identity]:
    """
    Convert a Supabase user object to an Identity.

    Args:
        user: Supabase ``User`` (or None)

    Returns:
        Identity or None if there is no user
    """
    if user is None:
        return None
    return Identity(id=str(user.id), email=user.email or "")


class SupabaseIdentityClient:
    """Identity client backed by Supabase Auth."""

    def __init__(self, client: Client):
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "SupabaseIdentityClient":
        """
        Build a client for the configured Supabase project.

        Args:
            settings: Application settings with supabase_url and supabase_anon_key
        """
        return cls(create_client(settings.supabase_url, settings.supabase_anon_key))

    async def get_session(self) -> Optional[Identity]:
        try:
            session = await run_in_threadpool(self._client.auth.get_session)
        except Exception as e:
            logger.error(f"Error getting current session: {str(e)}")
            raise IdentityUnavailableException() from e
        return identity_from_user(session.user) if session is not None else None

    async def sign_in(self, email: str, password: str) -> Identity:
        try:
            response = await run_in_threadpool(
                self._client.auth.sign_in_with_password,
                {"email": email, "password": password},
            )
        except Exception as e:
            logger.warning(f"Sign-in rejected for {email}: {str(e)}")
            raise AuthenticationException() from e

        identity = identity_from_user(response.user)
        if identity is None:
            raise AuthenticationException()
        return identity

    async def sign_up(self, email: str, password: str, metadata: Dict[str, Any]) -> Identity:
        try:
            response = await run_in_threadpool(
                self._client.auth.sign_up,
                {"email": email, "password": password, "options": {"data": metadata}},
            )
        except Exception as e:
            logger.warning(f"Sign-up failed for {email}: {str(e)}")
            raise SignUpException(str(e) or "User registration failed") from e

        identity = identity_from_user(response.user)
        if identity is None:
            raise SignUpException()
        return identity

    async def sign_out(self) -> None:
        try:
            await run_in_threadpool(self._client.auth.sign_out)
        except Exception as e:
            logger.warning(f"Server-side sign-out failed: {str(e)}")
            raise SignOutException() from e

    def on_session_change(self, callback: SessionChangeCallback) -> Callable[[], None]:
        # The SDK invokes listeners on whichever thread changed the session
        loop = asyncio.get_running_loop()

        def listener(event, session) -> None:
            identity = identity_from_user(session.user) if session is not None else None
            logger.debug(f"Auth state change {event}: {identity.id if identity else 'signed out'}")
            loop.call_soon_threadsafe(callback, identity)

        subscription = self._client.auth.on_auth_state_change(listener)
        return subscription.unsubscribe
