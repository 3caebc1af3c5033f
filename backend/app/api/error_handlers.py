"""
Custom exception handlers for FastAPI.
Every error leaves the API as ``{"error_code", "error_description"}``.
Server-side failures are logged with full detail and reported to
Sentry, while the client only receives a generic description.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR

from app.core.errors import GENERIC_SERVER_ERROR, MeasureAPIError
from app.core.observability import sentry_capture

logger = logging.getLogger(__name__)


def _error_response(status_code: int, error_code: str, description: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error_code": error_code, "error_description": description},
    )


def measure_error_handler(request: Request, exc: MeasureAPIError):
    if exc.is_server_error:
        logger.error(
            "%s %s failed with %s: %s",
            request.method, request.url.path, type(exc).__name__, exc.description,
            exc_info=exc,
        )
        sentry_capture(exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Malformed JSON or a body that is not an object.
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{loc or 'body'}: {err.get('msg', 'invalid value')}.")
    return _error_response(HTTP_400_BAD_REQUEST, "INVALID_DATA", " ".join(messages) or "The request data is invalid.")


def http_exception_handler(request: Request, exc: StarletteHTTPException):
    error_code = {404: "NOT_FOUND", 405: "METHOD_NOT_ALLOWED"}.get(exc.status_code, "HTTP_ERROR")
    return _error_response(exc.status_code, error_code, str(exc.detail))


def generic_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    sentry_capture(exc)
    return _error_response(HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_SERVER_ERROR", GENERIC_SERVER_ERROR)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MeasureAPIError, measure_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
