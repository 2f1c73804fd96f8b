"""
Application configuration settings loaded from environment variables.
Uses pydantic_settings for validation and type conversion.
"""
from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    """
    Application settings class with environment variable validation.

    Attributes:
        database_url: SQLAlchemy connection string for the profile store

        # Identity provider settings
        supabase_url: Base URL of the hosted Supabase project
        supabase_anon_key: Public (anon) API key of the Supabase project

        # Session settings
        min_password_length: Minimum password length accepted at signup
        audit_session_transitions: Whether settled session transitions are audited

        # Application settings
        log_level: Root logging level
        cors_origins: Origins allowed to call the API from a browser
    """
    # Database settings
    database_url: str = "sqlite:///./smartcare.db"

    # Identity provider settings
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # Session settings
    min_password_length: int = 6
    audit_session_transitions: bool = True

    # Application settings
    log_level: str = "INFO"
    cors_origins: List[str] = [
        "http://localhost:5173",  # Dashboard development server
        "http://localhost:3000",
    ]

    class Config:
        """Configuration for environment variables loading"""
        env_file = ".env"
        case_sensitive = False

    @property
    def identity_configured(self) -> bool:
        """True when both Supabase connection settings are present"""
        return bool(self.supabase_url and self.supabase_anon_key)

# Create settings instance
settings = Settings()
