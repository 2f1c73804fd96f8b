"""
Main FastAPI application entry point.
Configures the application, the session manager lifecycle, middleware, and routers.
"""
from dotenv import load_dotenv

# Load environment variables from .env file first
load_dotenv()

from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from .auth.identity import IdentityClient, SupabaseIdentityClient
from .auth.router import router as auth_router
from .auth.service import SessionManager
from .config import settings
from .core.audit_service import SessionAuditTrail
from .core.middleware import setup_middlewares
from .database import Base, SessionLocal, engine
from .doctors.router import router as doctors_router
from .doctors.service import ProfileStore, SqlAlchemyProfileStore
from .exceptions import register_exception_handlers

# Configure logging
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

def build_identity_client() -> Optional[IdentityClient]:
    """
    Build the Supabase identity client from settings.

    Returns:
        IdentityClient, or None when the Supabase settings are missing
    """
    if not settings.identity_configured:
        logger.error("❌ Missing Supabase settings (SUPABASE_URL, SUPABASE_ANON_KEY). Authentication is disabled.")
        return None
    return SupabaseIdentityClient.from_settings(settings)

def create_app(
    identity_client: Optional[IdentityClient] = None,
    profile_store: Optional[ProfileStore] = None
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        identity_client: Identity client to use instead of the configured Supabase one
        profile_store: Profile store to use instead of the SQLAlchemy one

    Returns:
        FastAPI: Configured application
    """
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("🚀 Starting SmartCare Dashboard API...")

        # Create database tables if they don't exist
        Base.metadata.create_all(bind=engine)

        client = identity_client or build_identity_client()
        manager = None
        if client is not None:
            manager = SessionManager(client, profile_store or SqlAlchemyProfileStore())
            if settings.audit_session_transitions:
                manager.subscribe(SessionAuditTrail(SessionLocal))
            state = await manager.start()
            logger.info(f"Session resolved at startup: {state.status.value}")
        app.state.session_manager = manager
        try:
            yield
        finally:
            if manager is not None:
                await manager.close()
            app.state.session_manager = None

    app = FastAPI(
        title="SmartCare Dashboard API",
        description="API for the SmartCare clinician dashboard",
        version="1.0.0",
        lifespan=lifespan
    )

    # Register exception handlers
    register_exception_handlers(app)

    # Configure CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Setup custom middleware
    setup_middlewares(app)

    # Include routers
    app.include_router(auth_router, prefix="/api/v1/auth", tags=["Authentication"])
    app.include_router(doctors_router, prefix="/api/v1/doctors", tags=["Doctors"])

    # Root endpoint
    @app.get("/")
    def root():
        """
        Root endpoint for API health check.

        Returns:
            dict: Welcome message and version
        """
        return {"message": "Welcome to SmartCare Dashboard API", "version": app.version}

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """
        Health check endpoint for monitoring.

        Returns:
            dict: Health status information
        """
        manager = getattr(app.state, "session_manager", None)
        return {
            "status": "healthy",
            "identity_configured": manager is not None,
            "session": manager.get_state().status.value if manager else None
        }

    return app

app = create_app()
