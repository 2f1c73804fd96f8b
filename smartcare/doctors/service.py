"""
Doctor Service - Profile store for doctor profiles.

The session manager only needs two operations from the profile store: look a
profile up by identity id, and insert a new one. ``ProfileStore`` names that
contract; ``SqlAlchemyProfileStore`` implements it over the ``doctors`` table.
"""
from typing import Optional, Protocol
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from fastapi.concurrency import run_in_threadpool
import logging

from ..database import SessionLocal
from ..auth.exceptions import ProfileLookupException, ProfileInsertException
from .models import Doctor
from .schemas import DoctorProfile, DoctorProfileCreate

# Set up logging
logger = logging.getLogger(__name__)

class ProfileStore(Protocol):
    """Durable storage of doctor profiles, queried by identity id."""

    async def find_profile_by_identity(self, identity_id: str) -> Optional[DoctorProfile]:
        """Return the profile linked to ``identity_id``, or None. Raises ProfileLookupException."""
        ...

    async def insert_profile(self, record: DoctorProfileCreate) -> DoctorProfile:
        """Store a new profile and return it. Raises ProfileInsertException."""
        ...


class SqlAlchemyProfileStore:
    """
    Profile store backed by the SQLAlchemy ``doctors`` table.

    Each call opens its own database session and runs in the threadpool so the
    event loop is not blocked while the database works.
    """

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self._session_factory = session_factory

    async def find_profile_by_identity(self, identity_id: str) -> Optional[DoctorProfile]:
        return await run_in_threadpool(self._find_profile_by_identity, identity_id)

    async def insert_profile(self, record: DoctorProfileCreate) -> DoctorProfile:
        return await run_in_threadpool(self._insert_profile, record)

    def _find_profile_by_identity(self, identity_id: str) -> Optional[DoctorProfile]:
        """
        Get a doctor profile by identity ID.

        Args:
            identity_id: Identity provider user id

        Returns:
            DoctorProfile or None if no profile is linked to the identity

        Raises:
            ProfileLookupException: If the query fails
        """
        db = self._session_factory()
        try:
            doctor = db.query(Doctor).filter(Doctor.identity_id == identity_id).first()
            return DoctorProfile.model_validate(doctor) if doctor else None
        except SQLAlchemyError as e:
            logger.error(f"Error loading doctor profile for identity {identity_id}: {str(e)}")
            raise ProfileLookupException(identity_id) from e
        finally:
            db.close()

    def _insert_profile(self, record: DoctorProfileCreate) -> DoctorProfile:
        """
        Insert a doctor profile.

        Args:
            record: Profile data, keyed by the identity it belongs to

        Returns:
            DoctorProfile: The stored profile

        Raises:
            ProfileInsertException: If a profile already exists for the identity or the insert fails
        """
        db = self._session_factory()
        try:
            doctor = Doctor(**record.model_dump())
            db.add(doctor)
            db.commit()
            db.refresh(doctor)
            logger.info(f"Created doctor profile {doctor.id} for identity {record.identity_id}")
            return DoctorProfile.model_validate(doctor)
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"Doctor profile already exists for identity {record.identity_id}: {str(e)}")
            raise ProfileInsertException("A profile already exists for this account") from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error creating doctor profile for identity {record.identity_id}: {str(e)}")
            raise ProfileInsertException() from e
        finally:
            db.close()
