"""
Local input checks for the session operations.

These run before any call to the identity provider or the profile store and
fail fast with ValidationException.
"""
import logging
from email_validator import validate_email, EmailNotValidError

from ..doctors.schemas import DoctorProfileFields
from .exceptions import ValidationException

# Set up logging
logger = logging.getLogger(__name__)

def validate_credentials(email: str, password: str) -> str:
    """
    Check sign-in input.

    Args:
        email: User's email address
        password: User's password

    Returns:
        str: The email with surrounding whitespace removed

    Raises:
        ValidationException: If either value is empty
    """
    email = (email or "").strip()
    if not email or not password:
        raise ValidationException("Please fill in all fields")
    return email

def validate_profile_fields(fields: DoctorProfileFields) -> None:
    """
    Check that every profile field is present.

    Raises:
        ValidationException: If any field is empty
    """
    missing = [name for name, value in fields.model_dump().items() if not str(value).strip()]
    if missing:
        logger.debug(f"Profile fields missing: {missing}")
        raise ValidationException("Please fill in all fields")

def validate_sign_up(
    email: str,
    password: str,
    confirm_password: str,
    fields: DoctorProfileFields,
    min_password_length: int
) -> str:
    """
    Check signup input in the order the signup form reports problems.

    Args:
        email: User's email address
        password: User's password
        confirm_password: Password confirmation
        fields: Doctor profile fields
        min_password_length: Minimum accepted password length

    Returns:
        str: The normalized email address

    Raises:
        ValidationException: On the first failed check
    """
    if not (email or "").strip() or not password or not confirm_password:
        raise ValidationException("Please fill in all fields")
    validate_profile_fields(fields)

    if password != confirm_password:
        raise ValidationException("Passwords do not match")

    if len(password) < min_password_length:
        raise ValidationException(f"Password must be at least {min_password_length} characters")

    try:
        return validate_email(email.strip(), check_deliverability=False).normalized
    except EmailNotValidError as e:
        raise ValidationException(f"Invalid email address: {str(e)}") from e
