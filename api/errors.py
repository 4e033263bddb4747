"""
Error taxonomy and the uniform JSON error envelope.

Every failure a handler can produce is an ``AppError`` subclass.  Handlers
raise; the exception handlers installed by ``register_error_handlers``
write the single response for the request:

    {"message": {"msgBody": "...", "msgError": true}}
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Something went wrong!"


def message(body: str, error: bool = False) -> Dict[str, Any]:
    """Build the ``{"message": {...}}`` envelope used by mutation endpoints."""
    return {"message": {"msgBody": body, "msgError": error}}


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    msg_body: str = GENERIC_ERROR

    def __init__(self, msg_body: str | None = None) -> None:
        if msg_body is not None:
            self.msg_body = msg_body
        super().__init__(self.msg_body)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    msg_body = "Invalid request"


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    msg_body = "Unauthorized"


class InvalidTokenError(AuthenticationError):
    pass


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    msg_body = "Forbidden"


class StorageError(AppError):
    pass


class NotFoundError(StorageError):
    # No distinct 404 path: a missing record is a storage failure here.
    pass


def register_error_handlers(app: FastAPI) -> None:
    """Map the taxonomy (and body validation failures) onto JSON responses."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        body, headers = exc.msg_body, None
        if isinstance(exc, AuthenticationError):
            logger.debug("%s %s rejected: %s", request.method, request.url.path, exc)
            body = AuthenticationError.msg_body
            headers = {"WWW-Authenticate": "Bearer"}
        if isinstance(exc, StorageError):
            # Internal detail stays in the log, never in the response body.
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
            body = GENERIC_ERROR
        return JSONResponse(
            status_code=exc.status_code,
            content=message(body, error=True),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError,
    ) -> JSONResponse:
        missing = sorted(
            {str(err["loc"][-1]) for err in exc.errors() if err.get("type") == "missing"}
        )
        body = f"Missing required fields: {', '.join(missing)}" if missing else "Invalid request"
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=message(body, error=True),
        )
