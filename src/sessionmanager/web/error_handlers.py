import logging

from fastapi import Request
from fastapi.responses import JSONResponse, Response

from sessionmanager.errors import (
    AccessDeniedError,
    AuthenticationError,
    InfrastructureError,
    NotFoundError,
    UserError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# First match wins, so subclasses come before UserError
USER_ERROR_RESPONSES: list[tuple[type[UserError], int, str]] = [
    (AuthenticationError, 401, "authentication_error"),
    (AccessDeniedError, 403, "access_denied"),
    (NotFoundError, 404, "not_found"),
    (ValidationError, 400, "validation_error"),
    (UserError, 400, "bad_request"),
]


def create_json_error_response(status_code: int, message: str, error_type: str | None = None) -> JSONResponse:
    """Create JSON error response with optional type for machine parsing."""
    content = {"message": message}
    if error_type:
        content["type"] = error_type
    return JSONResponse(status_code=status_code, content=content)


async def app_error_handler(_: Request, exc: Exception) -> Response:
    """Map UserError subclasses and InfrastructureError to JSON responses.

    User errors carry their own message. An unreachable backend is a 503
    with a generic message; it is never reported as a missing session.
    """
    if isinstance(exc, InfrastructureError):
        logger.error("Backend unavailable: %s", exc)
        return create_json_error_response(
            status_code=503, message="Service temporarily unavailable.", error_type="service_unavailable"
        )

    for error_class, status_code, error_type in USER_ERROR_RESPONSES:
        if isinstance(exc, error_class):
            return create_json_error_response(status_code=status_code, message=str(exc), error_type=error_type)

    return await general_exception_handler(_, exc)


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("Unexpected error: %s", exc)
    return create_json_error_response(
        status_code=500, message="An unexpected error occurred.", error_type="internal_server_error"
    )
