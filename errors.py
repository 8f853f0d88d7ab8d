"""Global exception handlers.

Every failure leaves the API in the same envelope::

    {"success": false, "error": "<message>", "code": "<code>"}

Validation failures also carry ``errors`` with one entry per offending field.
Database errors are classified by SQLSTATE, the same codes Postgres reports.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import DBAPIError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
CHECK_VIOLATION = "23514"
INVALID_TEXT_REPRESENTATION = "22P02"

# SQLSTATE -> (http status, client message)
DB_ERRORS = {
    UNIQUE_VIOLATION: (status.HTTP_409_CONFLICT, "Resource already exists."),
    FOREIGN_KEY_VIOLATION: (status.HTTP_400_BAD_REQUEST, "Related resource not found."),
    INVALID_TEXT_REPRESENTATION: (status.HTTP_400_BAD_REQUEST, "Invalid input format."),
    CHECK_VIOLATION: (status.HTTP_400_BAD_REQUEST, "Value violates a check constraint."),
}

# SQLite reports constraint failures by message only
_SQLITE_MESSAGES = {
    "UNIQUE constraint failed": UNIQUE_VIOLATION,
    "FOREIGN KEY constraint failed": FOREIGN_KEY_VIOLATION,
    "CHECK constraint failed": CHECK_VIOLATION,
}

STATUS_CODES = {
    status.HTTP_400_BAD_REQUEST: "BAD_REQUEST",
    status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    status.HTTP_409_CONFLICT: "CONFLICT",
    status.HTTP_429_TOO_MANY_REQUESTS: "RATE_LIMITED",
    status.HTTP_503_SERVICE_UNAVAILABLE: "SERVICE_UNAVAILABLE",
}


def error_body(message: str, code: str, **extra) -> dict:
    return {"success": False, "error": message, "code": code, **extra}


def sqlstate_of(exc: DBAPIError) -> str | None:
    """Return the SQLSTATE behind a driver error, if one can be determined."""
    orig = exc.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code:
        return code
    message = str(orig)
    for prefix, mapped in _SQLITE_MESSAGES.items():
        if message.startswith(prefix):
            return mapped
    return None


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code >= 500:
            logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail), STATUS_CODES.get(exc.status_code, "ERROR")),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(loc) for loc in e["loc"] if loc != "body"),
                "message": e["msg"],
            }
            for e in exc.errors()
        ]
        logger.warning("Validation error on %s: %s", request.url.path, errors)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body("Validation failed", "VALIDATION_ERROR", errors=errors),
        )

    @app.exception_handler(RateLimitExceeded)
    def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        logger.warning("Rate limit exceeded on %s: %s", request.url.path, exc.detail)
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content=error_body(
                "Too many requests, please try again later.",
                STATUS_CODES[status.HTTP_429_TOO_MANY_REQUESTS],
            ),
        )

    @app.exception_handler(DBAPIError)
    async def database_error_handler(request: Request, exc: DBAPIError):
        code = sqlstate_of(exc)
        if code in DB_ERRORS:
            status_code, message = DB_ERRORS[code]
            logger.warning("Database error %s on %s: %s", code, request.url.path, exc.orig)
            return JSONResponse(status_code=status_code, content=error_body(message, code))

        logger.error("Database error on %s: %s", request.url.path, exc, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(_server_message(exc.orig), code or "INTERNAL_ERROR"),
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception on %s: %s", request.url.path, exc, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(_server_message(exc), "INTERNAL_ERROR"),
        )


def _server_message(exc: BaseException) -> str:
    if settings.is_production:
        return "Internal Server Error"
    return str(exc) or "Internal Server Error"
