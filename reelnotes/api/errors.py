"""Map domain errors onto HTTP responses.

Every failure leaves the API as an ErrorResponseSchema whose error_code is
one of the domain error kinds. Database failures are logged with their cause
and reported as ``internal``; the raw error never reaches the client.
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from ..domain.exceptions import ReelNotesError
from .schemas import ErrorResponseSchema

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    "unauthenticated": status.HTTP_401_UNAUTHORIZED,
    "invalid-argument": status.HTTP_400_BAD_REQUEST,
    "not-found": status.HTTP_404_NOT_FOUND,
    "permission-denied": status.HTTP_403_FORBIDDEN,
    "internal": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def create_error_response(
    status_code: int, detail: str, error_code: str
) -> JSONResponse:
    """Create a consistent error response with detail, error_code, and timestamp."""
    error_data = ErrorResponseSchema(
        detail=detail,
        error_code=error_code,
        timestamp=datetime.now(timezone.utc),
    )
    return JSONResponse(
        status_code=status_code,
        content=error_data.model_dump(mode="json"),
    )


async def handle_domain_error(request: Request, exc: ReelNotesError) -> JSONResponse:
    if exc.code == "internal":
        logger.error(f"Internal error on {request.url.path}: {exc}", exc_info=exc)
        detail = "Internal error"
    else:
        detail = exc.message
    return create_error_response(
        STATUS_BY_CODE.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail,
        exc.code,
    )


async def handle_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Database error on {request.url.path}: {exc}", exc_info=exc)
    return create_error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal error", "internal"
    )


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return create_error_response(
        status.HTTP_400_BAD_REQUEST, "; ".join(messages), "invalid-argument"
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ReelNotesError, handle_domain_error)
    app.add_exception_handler(SQLAlchemyError, handle_database_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
