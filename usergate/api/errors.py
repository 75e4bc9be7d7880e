"""Exception handlers turning errors into ``{"success": false, "message": ...}`` responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from usergate.auth import TokenSigningError
from usergate.database import (
    BackendNotImplementedError,
    NotConnectedError,
    ProviderConnectionError,
    StorageError,
    UnsupportedBackendError,
)
from usergate.users import UserAlreadyExistsError, UserNotFoundError

logger = logging.getLogger(__name__)

# Most specific first; the first isinstance match wins.
EXCEPTION_MAPPING = [
    (UserNotFoundError, 404, None),
    (UserAlreadyExistsError, 409, None),
    (ProviderConnectionError, 503, "Database unavailable"),
    (NotConnectedError, 503, "Database unavailable"),
    (UnsupportedBackendError, 500, "Database misconfigured"),
    (BackendNotImplementedError, 500, "Database misconfigured"),
    (StorageError, 500, "Database error"),
    (TokenSigningError, 500, "Authentication is misconfigured"),
]


def error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message}, headers=headers)


def http_exception_handler(request: Request, exc: HTTPException):
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "; ".join(f"{'.'.join(str(p) for p in e.get('loc', ())[1:])}: {e.get('msg')}" for e in errors)
    return error_response(400, message or "Invalid request")


def usergate_error_handler(request: Request, exc: Exception):
    for exc_type, status_code, public_message in EXCEPTION_MAPPING:
        if isinstance(exc, exc_type):
            if status_code >= 500:
                logger.error(f"{request.method} {request.url.path} failed: {exc}")
            return error_response(status_code, public_message or str(exc))
    return general_exception_handler(request, exc)


def general_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return error_response(500, "Internal server error")


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    for exc_type, _, _ in EXCEPTION_MAPPING:
        app.add_exception_handler(exc_type, usergate_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
