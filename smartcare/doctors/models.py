"""
Doctor Model - Stores the clinician profile linked to an identity.

The identity itself lives in the hosted identity provider; this table only
keeps the provider's opaque user id, one profile per identity.
"""
from sqlalchemy import Column, Integer, String, DateTime, func
from ..database import Base

class Doctor(Base):
    """
    Doctor Model - Stores clinician profile information

    Fields:
    - id: Primary key for doctor profile
    - identity_id: Identity provider user id (unique, one profile per identity)
    - full_name: Doctor's full name
    - specialty: Doctor's medical specialty
    - license_number: Medical license number
    - phone: Contact phone number
    - email: Email the identity was registered with
    - created_at: When the doctor profile was created
    """
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    identity_id = Column(String, unique=True, nullable=False, index=True)
    full_name = Column(String, nullable=False)
    specialty = Column(String, nullable=False)
    license_number = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    email = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        """String representation of the Doctor model"""
        return f"<Doctor(id={self.id}, identity_id='{self.identity_id}', specialty='{self.specialty}')>"
