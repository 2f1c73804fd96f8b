"""
Session service - reconciles the provider identity with the doctor profile.

``SessionManager`` is the only writer of the session state and the only caller
into the identity client and the profile store. Everything else reads the
state through ``get_state()`` or ``subscribe()``.

Ordering: every operation and every session-change notification takes a
ticket when it starts. A settled result is published only if no newer ticket
has settled already, so a superseded in-flight result is discarded rather
than overwriting a newer one.

The provider reports the manager's own sign-in, sign-up and sign-out back
through the session-change subscription. Each successful provider call claims
one such echo, and a notification matching a claim is dropped. Any other
notification that arrives while an operation is in flight is held, and the
latest one is resolved with a fresh ticket once the last operation finishes,
so it overwrites whatever the operations settled.

Signup is a two-step saga across independent stores. If the profile insert
fails the identity is kept as is; there is no compensating delete. The
session then sits in ``AuthenticatedNoProfile`` and ``complete_profile()``
retries the insert.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Callable, List, Optional, Set

from ..config import settings
from ..core.notifications import StateChannel, Unsubscribe
from ..doctors.schemas import DoctorProfile, DoctorProfileCreate, DoctorProfileFields
from ..doctors.service import ProfileStore
from .exceptions import (
    AuthenticationException,
    IdentityUnavailableException,
    ProfileCreationException,
    ProfileInsertException,
    ProfileLookupException,
    SignOutException,
    ValidationException
)
from .identity import IdentityClient
from .schemas import (
    Authenticated,
    AuthenticatedNoProfile,
    Identity,
    Loading,
    SessionState,
    Unauthenticated
)
from .utils import validate_credentials, validate_profile_fields, validate_sign_up

# Set up logging
logger = logging.getLogger(__name__)

class _Operation:
    """Bookkeeping for one in-flight manager operation."""

    def __init__(self, name: str, ticket: int):
        self.name = name
        self.ticket = ticket
        self.settled = False


class SessionManager:
    """
    Owns the reconciled ``{identity, profile, status}`` session state.

    Args:
        identity_client: Hosted identity provider
        profile_store: Durable store of doctor profiles
        min_password_length: Minimum password length accepted at signup
    """

    def __init__(
        self,
        identity_client: IdentityClient,
        profile_store: ProfileStore,
        min_password_length: int = settings.min_password_length
    ):
        self._identity_client = identity_client
        self._profile_store = profile_store
        self._min_password_length = min_password_length
        self._channel: StateChannel[SessionState] = StateChannel(Loading())
        self._last_settled: Optional[SessionState] = None
        self._issued_ticket = 0
        self._settled_ticket = 0
        self._in_flight = 0
        # Identity ids (None for signed out) of echoes claimed but not yet received
        self._expected_echoes: List[Optional[str]] = []
        # Notifications received during operations and not matched to a claim
        self._held_changes: List[Optional[Identity]] = []
        self._tasks: Set[asyncio.Task] = set()
        self._unsubscribe_identity: Optional[Callable[[], None]] = None
        self._closed = False

    # ------------------------------------------------------------------
    # Reading the state
    # ------------------------------------------------------------------

    def get_state(self) -> SessionState:
        """Return the current session state snapshot."""
        return self._channel.current

    def subscribe(self, callback: Callable[[SessionState], None]) -> Unsubscribe:
        """Receive the current state now and every later change."""
        return self._channel.subscribe(callback)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> SessionState:
        """
        Subscribe to identity changes and resolve the cached provider session.

        A failure to read the session or to load the profile ends in
        ``Unauthenticated``; a half-built authenticated state is never exposed.

        Returns:
            SessionState: The state after startup
        """
        if self._unsubscribe_identity is None:
            self._unsubscribe_identity = self._identity_client.on_session_change(self._on_session_change)

        async with self._operation("start") as op:
            try:
                identity = await self._identity_client.get_session()
            except IdentityUnavailableException as e:
                logger.error(f"Error getting initial session: {e.detail}")
                identity = None
            self._settle(op, await self._resolve(identity, lenient=False))
        return self.get_state()

    async def close(self) -> None:
        """Release the identity subscription and drop subscribers. Safe to call twice."""
        if self._closed:
            return
        self._closed = True

        unsubscribe, self._unsubscribe_identity = self._unsubscribe_identity, None
        if unsubscribe is not None:
            unsubscribe()

        self._expected_echoes.clear()
        self._held_changes.clear()
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._channel.close()
        logger.info("Session manager closed")

    async def drain(self) -> None:
        """Wait until every pending notification has been resolved."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def sign_in(self, email: str, password: str) -> SessionState:
        """
        Sign in with email and password.

        A profile lookup failure after a successful sign-in does not fail the
        call; the session becomes ``AuthenticatedNoProfile``.

        Returns:
            SessionState: The state after sign-in

        Raises:
            ValidationException: If email or password is empty
            AuthenticationException: If the provider rejects the credentials
        """
        email = validate_credentials(email, password)

        async with self._operation("sign_in") as op:
            try:
                identity = await self._identity_client.sign_in(email, password)
            except AuthenticationException:
                logger.warning(f"Login failed: Invalid credentials for {email}")
                raise
            self._claim_echo(identity)
            logger.info(f"Login successful: identity {identity.id} ({email})")
            self._settle(op, await self._resolve(identity, lenient=True))
        return self.get_state()

    async def sign_up(
        self,
        email: str,
        password: str,
        confirm_password: str,
        profile_fields: DoctorProfileFields
    ) -> SessionState:
        """
        Create the identity, then the doctor profile linked to it.

        Returns:
            SessionState: ``Authenticated`` with the new profile

        Raises:
            ValidationException: If a local check fails; nothing is sent anywhere
            SignUpException: If the identity could not be created
            ProfileCreationException: If the identity was created but the profile was not
        """
        email = validate_sign_up(email, password, confirm_password, profile_fields, self._min_password_length)
        logger.info(f"Doctor registration attempt for email: {email}")

        async with self._operation("sign_up") as op:
            identity = await self._identity_client.sign_up(
                email, password, {"full_name": profile_fields.full_name}
            )
            self._claim_echo(identity)
            logger.info(f"Identity {identity.id} created for {email}")

            record = DoctorProfileCreate(identity_id=identity.id, email=email, **profile_fields.model_dump())
            profile = await self._insert_profile(op, identity, record)
            self._settle(op, self._authenticated(identity, profile))
        return self.get_state()

    async def complete_profile(self, profile_fields: DoctorProfileFields) -> SessionState:
        """
        Create the missing profile for the signed-in identity.

        Returns:
            SessionState: ``Authenticated`` with the new profile

        Raises:
            ValidationException: If a field is empty or the session is not waiting for a profile
            ProfileCreationException: If the insert fails; the session stays without a profile
        """
        state = self.get_state()
        if not isinstance(state, AuthenticatedNoProfile):
            raise ValidationException("A profile can only be created for a signed-in account without one")
        validate_profile_fields(profile_fields)
        identity = state.identity

        async with self._operation("complete_profile") as op:
            record = DoctorProfileCreate(
                identity_id=identity.id, email=identity.email, **profile_fields.model_dump()
            )
            profile = await self._insert_profile(op, identity, record)
            self._settle(op, self._authenticated(identity, profile))
        return self.get_state()

    async def sign_out(self) -> SessionState:
        """
        Sign out of the provider and clear the local session.

        The local session is cleared even when the provider call fails. The
        provider is always asked to end its session, since a failed profile
        lookup leaves the session ``Unauthenticated`` while the provider
        still holds one. When the state is already ``Unauthenticated`` it is
        left untouched and no ``Loading`` is published.

        Returns:
            SessionState: ``Unauthenticated``

        Raises:
            SignOutException: If the provider could not confirm the sign-out
        """
        signed_out = isinstance(self.get_state(), Unauthenticated)
        if signed_out:
            logger.debug("Sign-out requested with no local session; ending the provider session")

        async with self._operation("sign_out", announce=not signed_out) as op:
            try:
                await self._identity_client.sign_out()
            except SignOutException:
                logger.error("Error signing out; clearing the local session anyway")
                self._settle(op, Unauthenticated())
                raise
            self._claim_echo(None)
            self._settle(op, Unauthenticated())
        logger.info("User signed out")
        return self.get_state()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _operation(self, name: str, announce: bool = True):
        """
        Run one operation: publish ``Loading`` unless ``announce`` is False,
        and on an unsettled failure fall back to the last settled state.
        """
        self._issued_ticket += 1
        op = _Operation(name, self._issued_ticket)
        self._in_flight += 1
        if announce:
            self._channel.publish(Loading())
        try:
            yield op
        except BaseException:
            if not op.settled:
                self._restore(op)
            raise
        finally:
            self._in_flight -= 1
            if not self._in_flight:
                self._release_held_change()

    def _settle(self, op: _Operation, state: SessionState) -> bool:
        op.settled = True
        if op.ticket < self._settled_ticket:
            logger.debug(f"Discarding superseded {op.name} result ({state.status.value})")
            return False
        self._settled_ticket = op.ticket
        self._last_settled = state
        self._channel.publish(state)
        return True

    def _restore(self, op: _Operation) -> None:
        op.settled = True
        if op.ticket < self._settled_ticket:
            return
        self._channel.publish(self._last_settled or Unauthenticated())

    async def _resolve(self, identity: Optional[Identity], lenient: bool) -> SessionState:
        """
        Turn an identity into a session state by looking up its profile.

        Args:
            identity: Identity to resolve, or None when signed out
            lenient: Whether a failed lookup degrades to ``AuthenticatedNoProfile``
                instead of ``Unauthenticated``
        """
        if identity is None:
            return Unauthenticated()
        try:
            profile = await self._profile_store.find_profile_by_identity(identity.id)
        except ProfileLookupException as e:
            logger.warning(f"Profile lookup failed for identity {identity.id}: {e.detail}")
            return AuthenticatedNoProfile(identity=identity) if lenient else Unauthenticated()
        if profile is None:
            return AuthenticatedNoProfile(identity=identity)
        return self._authenticated(identity, profile)

    def _authenticated(self, identity: Identity, profile: DoctorProfile) -> SessionState:
        if profile.identity_id != identity.id:
            logger.error(f"Profile {profile.id} is linked to {profile.identity_id}, not identity {identity.id}")
            return AuthenticatedNoProfile(identity=identity)
        return Authenticated(identity=identity, profile=profile)

    async def _insert_profile(
        self,
        op: _Operation,
        identity: Identity,
        record: DoctorProfileCreate
    ) -> DoctorProfile:
        try:
            return await self._profile_store.insert_profile(record)
        except ProfileInsertException as e:
            logger.error(f"Identity {identity.id} has no linked profile: {e.detail}")
            self._settle(op, AuthenticatedNoProfile(identity=identity))
            raise ProfileCreationException(identity.id) from e

    def _claim_echo(self, identity: Optional[Identity]) -> None:
        """Expect the provider to report ``identity`` as the outcome of our own call."""
        key = identity.id if identity else None
        for index, held in enumerate(self._held_changes):
            if (held.id if held else None) == key:
                # The echo overtook the call that caused it
                del self._held_changes[index]
                return
        self._expected_echoes.append(key)

    def _on_session_change(self, identity: Optional[Identity]) -> None:
        if self._closed:
            return
        key = identity.id if identity else None
        if key in self._expected_echoes:
            self._expected_echoes.remove(key)
            logger.debug("Session change echoes the manager's own call; skipped")
            return
        if self._in_flight:
            logger.debug("Session change during an operation; resolving it afterwards")
            self._held_changes.append(identity)
            return
        self._schedule_session_change(identity)

    def _release_held_change(self) -> None:
        if self._closed or not self._held_changes:
            return
        identity = self._held_changes[-1]
        self._held_changes.clear()
        self._schedule_session_change(identity)

    def _schedule_session_change(self, identity: Optional[Identity]) -> None:
        self._issued_ticket += 1
        op = _Operation("session_change", self._issued_ticket)
        task = asyncio.get_running_loop().create_task(self._apply_session_change(op, identity))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _apply_session_change(self, op: _Operation, identity: Optional[Identity]) -> None:
        self._settle(op, await self._resolve(identity, lenient=False))
