"""
Global error handling middleware.

WHAT: Translate exceptions to appropriate HTTP responses
WHY: Consistent error responses with proper status codes
HOW: FastAPI exception handlers for marketplace and business exceptions
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from datetime import datetime

from ..marketplace.types import (
    MarketplaceAuthError,
    MarketplaceError,
    MarketplaceResponseError,
    MarketplaceTimeoutError,
    MarketplaceUnavailableError,
)
from ..utils.exceptions import (
    BusinessException,
    ConversationNotFoundException,
    InboxSessionNotFoundException,
    ValidationException,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)


async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    """
    Handle MarketplaceError and its subclasses.

    WHAT: Marketplace call failed outside the controller's own recovery
    WHY: Session creation and status checks surface these directly
    HOW: 401 for auth, 503 for timeout/unreachable, 502 otherwise
    """
    if isinstance(exc, MarketplaceAuthError):
        status_code, code = status.HTTP_401_UNAUTHORIZED, "MARKETPLACE_UNAUTHORIZED"
        detail = "Marketplace rejected the access token"
    elif isinstance(exc, MarketplaceTimeoutError):
        status_code, code = status.HTTP_503_SERVICE_UNAVAILABLE, "MARKETPLACE_TIMEOUT"
        detail = "Marketplace request timed out"
    elif isinstance(exc, MarketplaceUnavailableError):
        status_code, code = status.HTTP_503_SERVICE_UNAVAILABLE, "MARKETPLACE_UNAVAILABLE"
        detail = "Marketplace API is not reachable"
    elif isinstance(exc, MarketplaceResponseError):
        status_code, code = status.HTTP_502_BAD_GATEWAY, "MARKETPLACE_BAD_GATEWAY"
        detail = "Marketplace returned an invalid response"
    else:
        status_code, code = status.HTTP_502_BAD_GATEWAY, "MARKETPLACE_ERROR"
        detail = "Marketplace call failed"

    logger.error(f"Marketplace error: {code} - {exc}")
    return JSONResponse(
        status_code=status_code,
        content={
            "error": code,
            "message": str(exc),
            "detail": detail
        }
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Handle FastAPI RequestValidationError.

    WHAT: Request validation failed
    WHY: Invalid request payload
    HOW: Return 400 with field errors
    """
    logger.warning(f"Validation error: {exc.errors()}")

    cleaned_errors = []
    for error in exc.errors():
        cleaned_error = {
            "type": error.get("type"),
            "loc": error.get("loc"),
            "msg": error.get("msg"),
            "input": error.get("input")
        }
        # ctx may carry exception instances
        if "ctx" in error:
            cleaned_error["ctx"] = {
                k: str(v) if isinstance(v, Exception) else v
                for k, v in error["ctx"].items()
            }
        cleaned_errors.append(cleaned_error)

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": cleaned_errors,
            "timestamp": datetime.now().isoformat()
        }
    )


async def business_exception_handler(request: Request, exc: BusinessException):
    """
    Handle BusinessException.

    WHAT: Domain-specific error
    WHY: Unknown session/conversation, rejected message input
    HOW: Return status code based on exception type
    """
    status_code = status.HTTP_400_BAD_REQUEST

    if isinstance(exc, (InboxSessionNotFoundException, ConversationNotFoundException)):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, ValidationException):
        status_code = status.HTTP_400_BAD_REQUEST

    logger.warning(f"Business exception: {exc.code} - {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content={
            "error": exc.code,
            "message": exc.message,
            "details": exc.details,
            "timestamp": datetime.now().isoformat()
        }
    )


def register_exception_handlers(app):
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(BusinessException, business_exception_handler)

    logger.info("Exception handlers registered")
