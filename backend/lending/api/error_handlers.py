"""Error Handlers - global exception handlers for the lending API.

Invariants:
    - LendingError -> structured JSON with error code, message, severity
    - RequestValidationError -> 400 with field-level error details
    - Exception (catch-all) -> opaque 500, never leaks internal details
    - Every error body has the same envelope: {"error": {code, message, category, severity, ...}}

Design Decisions:
    - Three-layer handler: domain (LendingError), validation (Pydantic), catch-all (Exception)
    - Critical domain errors (invariant, database) log with traceback; guard errors log a line
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from lending.core.errors import ErrorCategory, ErrorSeverity, LendingError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    app.add_exception_handler(LendingError, lending_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


def _envelope(
    code: str, message: str, category: ErrorCategory, severity: ErrorSeverity,
    **fields,
) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "category": category.value,
            "severity": severity.value,
            **fields,
        },
    }


async def lending_error_handler(request: Request, exc: LendingError) -> JSONResponse:
    extra = {
        "error_code": exc.code,
        "path": request.url.path,
        "reservation_id": exc.context.reservation_id,
        "user_id": exc.context.user_id,
        "item_id": exc.context.item_id,
    }
    if exc.recoverable:
        logger.warning(f"LendingError: {exc.message}", extra=extra)
    else:
        logger.error(f"LendingError: {exc.message}", extra=extra, exc_info=exc)
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def validation_error_handler(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(loc) for loc in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
    logger.warning(
        f"Invalid request on {request.url.path}: "
        + ", ".join(f"{d['field']} ({d['type']})" for d in details),
        extra={"path": request.url.path, "error_code": "VALIDATION_ERROR"},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_envelope(
            "VALIDATION_ERROR", "Invalid request data",
            ErrorCategory.VALIDATION, ErrorSeverity.ERROR, details=details,
        ),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all - the client only ever sees a generic message."""
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.url.path}: {exc}",
        extra={"path": request.url.path, "error_code": "INTERNAL_ERROR"},
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_envelope(
            "INTERNAL_ERROR", "An unexpected error occurred",
            ErrorCategory.INTERNAL, ErrorSeverity.CRITICAL,
        ),
    )
