"""
Doctor Schemas - Pydantic models for doctor profile data validation and serialization.
"""
from pydantic import BaseModel, Field
from datetime import datetime

class DoctorProfileFields(BaseModel):
    """
    Doctor Profile Fields Schema - The clinician details collected at signup

    Fields default to empty strings so that missing values are reported by the
    session manager's own checks rather than by request parsing.

    Fields:
    - full_name: Doctor's full name
    - specialty: Doctor's medical specialty
    - license_number: Medical license number
    - phone: Contact phone number
    """
    full_name: str = Field("", description="Doctor's full name")
    specialty: str = Field("", description="Doctor's medical specialty")
    license_number: str = Field("", description="Medical license number")
    phone: str = Field("", description="Contact phone number")

class DoctorProfileCreate(DoctorProfileFields):
    """
    Doctor Profile Creation Schema - The record written to the profile store

    Extends DoctorProfileFields with:
    - identity_id: Identity provider user id the profile belongs to
    - email: Email the identity was registered with
    """
    identity_id: str
    email: str

class DoctorProfile(DoctorProfileCreate):
    """
    Doctor Profile Schema - A stored doctor profile

    Fields:
    - id: Doctor profile ID
    - created_at: When the doctor profile was created
    """
    id: int
    created_at: datetime

    class Config:
        """Configuration for Pydantic model to enable ORM mode"""
        from_attributes = True
        frozen = True
