"""
Global exception handlers.
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import logging

from .auth.exceptions import SessionException, ValidationException, AccessDeniedException, SessionLoadingException

# Set up logging
logger = logging.getLogger(__name__)


async def session_exception_handler(request: Request, exc: SessionException):
    """
    Handler for session exceptions.

    Args:
        request: The request that caused the exception
        exc: The exception instance

    Returns:
        JSONResponse: Error response with the exception's detail and code
    """
    if isinstance(exc, (ValidationException, AccessDeniedException, SessionLoadingException)):
        logger.info(f"Session request refused ({exc.code}): {exc.detail}")
    else:
        logger.error(f"Session error ({exc.code}): {exc.detail}")
    content = {"detail": exc.detail, "code": exc.code}
    if isinstance(exc, AccessDeniedException):
        content["redirect_to"] = exc.redirect_to
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=exc.headers
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handler for request validation exceptions.

    Args:
        request: The request that caused the exception
        exc: The validation exception instance

    Returns:
        JSONResponse: Standardized error response with validation details
    """
    logger.error(f"Validation error: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Validation error",
            "errors": exc.errors()
        }
    )


# Register exception handlers with FastAPI app
def register_exception_handlers(app):
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(SessionException, session_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
