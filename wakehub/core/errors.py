"""Auth error taxonomy and JSON exception handlers.

Every failure leaves the API as ``{"error": "<safe message>"}``; gate
failures also carry a stable ``code``.
"""

import logging
from enum import Enum

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class AuthErrorKind(Enum):
    """Gate outcomes: (code, HTTP status, safe message)."""

    MISSING_CREDENTIALS = ("missing_credentials", status.HTTP_401_UNAUTHORIZED, "Missing credentials")
    INVALID_TOKEN = ("invalid_token", status.HTTP_401_UNAUTHORIZED, "Invalid token")
    ACCOUNT_DISABLED = ("account_disabled", status.HTTP_403_FORBIDDEN, "Account disabled")
    FORBIDDEN = ("forbidden", status.HTTP_403_FORBIDDEN, "Access denied")
    DATABASE_ERROR = ("database_error", status.HTTP_500_INTERNAL_SERVER_ERROR, "Database error")

    @property
    def code(self) -> str:
        return self.value[0]

    @property
    def status_code(self) -> int:
        return self.value[1]

    @property
    def default_message(self) -> str:
        return self.value[2]


class AuthError(Exception):
    """Raised by the authorization gate and the self-action guards."""

    def __init__(self, kind: AuthErrorKind, message: str | None = None) -> None:
        self.kind = kind
        self.message = message or kind.default_message
        super().__init__(self.message)


def _error_body(message: str, code: str | None = None) -> dict[str, str]:
    body = {"error": message}
    if code:
        body["code"] = code
    return body


async def auth_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, AuthError)
    headers = None
    if exc.kind.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.kind.status_code,
        content=_error_body(exc.message, exc.kind.code),
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, HTTPException)
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(message),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Report the first invalid field without echoing the submitted values."""
    assert isinstance(exc, RequestValidationError)
    errors = exc.errors()
    message = "Invalid request body"
    if errors:
        first = errors[0]
        loc = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{loc}: {first.get('msg', 'invalid value')}" if loc else first.get("msg", message)
    return JSONResponse(
        status_code=422,
        content=_error_body(message),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error",
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all JSON error handlers on the application."""
    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
