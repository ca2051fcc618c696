"""Exception handlers for converting custom exceptions to HTTP responses."""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from backend.app.core.exceptions import (
    LeadReportException,
    InvalidReportIdError,
    InvalidInputError,
    NoSectionsEnabledError,
    SelfDeletionError,
    AuthenticationRequiredError,
    PermissionDeniedError,
    ReportNotFoundError,
    UserNotFoundError,
    DuplicateUserError,
    ReportGenerationInProgressError,
    ReportNotReadyError,
    LLMServiceError,
    EnrichmentServiceError,
)

logger = logging.getLogger(__name__)


def status_code_for(exc: LeadReportException) -> int:
    """Map an application exception to its HTTP status code."""
    if isinstance(exc, (InvalidReportIdError, InvalidInputError, NoSectionsEnabledError, SelfDeletionError)):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, AuthenticationRequiredError):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, PermissionDeniedError):
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, (ReportNotFoundError, UserNotFoundError)):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, (DuplicateUserError, ReportGenerationInProgressError, ReportNotReadyError)):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, (LLMServiceError, EnrichmentServiceError)):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    # InvalidTransitionError, BatchAbortedError and anything unclassified
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def lead_report_exception_handler(request: Request, exc: LeadReportException) -> JSONResponse:
    """
    Handle all application exceptions and convert to appropriate HTTP responses.

    Args:
        request: The incoming request
        exc: The exception that was raised

    Returns:
        JSONResponse with appropriate status code and error details
    """
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"[ERROR] {exc.__class__.__name__} on {request.url.path}: {exc.details or exc.message}")

    content = {
        "detail": exc.message,
        "type": exc.__class__.__name__,
    }
    # Internal details of 500s are logged, not returned
    if exc.details and status_code < 500:
        content["info"] = exc.details
    if getattr(exc, "retryable", False):
        content["retryable"] = True

    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app):
    """
    Register all custom exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(LeadReportException, lead_report_exception_handler)
