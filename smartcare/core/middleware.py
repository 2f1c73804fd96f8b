"""
Custom middleware for the FastAPI application.
"""
import time
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import uuid

# Set up logging
logger = logging.getLogger(__name__)

def current_session_status(request: Request) -> str:
    """
    Get the session status for log lines.

    Args:
        request: The incoming request

    Returns:
        str: Session status value, or "unconfigured" when authentication is disabled
    """
    manager = getattr(request.app.state, "session_manager", None)
    if manager is None:
        return "unconfigured"
    return manager.get_state().status.value


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging request and response information.
    """
    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next):
        """
        Process the request and log information.

        Args:
            request: The incoming request
            call_next: The next middleware or endpoint handler

        Returns:
            Response: The response from the next handler
        """
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        # Log request details
        client_host = request.client.host if request.client else "unknown"
        logger.info(
            f"Request {request_id} started: {request.method} {request.url.path} from {client_host} "
            f"- Session: {current_session_status(request)}"
        )

        # Record request start time
        start_time = time.time()

        # Process the request
        try:
            response = await call_next(request)

            # Calculate processing time
            process_time = time.time() - start_time

            # Add custom headers
            response.headers["X-Process-Time"] = str(process_time)
            response.headers["X-Request-ID"] = request_id

            # Log response details
            logger.info(
                f"Request {request_id} completed: {request.method} {request.url.path} "
                f"- Status: {response.status_code} - Session: {current_session_status(request)} "
                f"- Duration: {process_time:.4f}s"
            )

            return response
        except Exception as e:
            # Log exception details
            process_time = time.time() - start_time
            logger.error(
                f"Request {request_id} failed: {request.method} {request.url.path} "
                f"- Error: {str(e)} - Duration: {process_time:.4f}s"
            )
            raise


def setup_middlewares(app):
    """
    Set up all custom middlewares for the application.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(RequestLoggingMiddleware)
