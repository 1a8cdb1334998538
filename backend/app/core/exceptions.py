"""
Application error types and their HTTP rendering.

Every error raised on purpose by the application derives from AppError and is
turned into a ``{"ok": false, "error": ...}`` JSON body by the handlers
registered in ``register_exception_handlers``.
"""
import logging
from typing import Any, Optional
from urllib.parse import urlencode

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse

from .config import settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors rendered as JSON error responses."""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)


class AuthenticationRequired(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Not authenticated"


class InvalidPayload(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid body format"


class InvalidSection(InvalidPayload):
    """Raised when a section name is not part of the profile document."""

    def __init__(self, section: str):
        super().__init__(f"Unknown profile section: {section}", details={"section": section})
        self.section = section


class PreconditionFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Request cannot be processed in the current state"


class ProfileNotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Profile not found"


class OwnershipError(AppError):
    """A store write targeted a profile other than the session identity."""
    status_code = status.HTTP_403_FORBIDDEN
    message = "Not allowed to modify this profile"


class ConfigurationError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Service misconfigured"


class UpstreamError(AppError):
    """An identity, payment, store or automation call failed.

    ``details`` holds the provider's own error text; it is only sent to the
    client in development mode.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Upstream service error"


class PaymentError(AppError):
    """The payment provider refused a request; ``details`` follows UpstreamError's rule."""
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Payment provider error"


class SignatureError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid signature"


class LoginRedirect(Exception):
    """Raised by the page gate when a protected page is requested without a session."""

    def __init__(self, next_path: Optional[str] = None):
        self.next_path = next_path
        super().__init__(next_path or "")


def error_body(exc: AppError) -> dict:
    body = {"ok": False, "error": exc.message}
    if exc.details is not None:
        if isinstance(exc, (UpstreamError, PaymentError)) and not settings.is_development:
            return body
        body["details"] = exc.details
    return body


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"[ERROR] {request.method} {request.url.path}: {exc.message} ({exc.details})")
    else:
        logger.info(f"[ERROR] {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(error_body(exc)))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info(f"[ERROR] {request.method} {request.url.path}: request validation failed")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder({
            "ok": False,
            "error": "Invalid body format",
            "details": exc.errors(),
        }),
    )


async def login_redirect_handler(request: Request, exc: LoginRedirect) -> RedirectResponse:
    url = "/login"
    if exc.next_path:
        url = f"{url}?{urlencode({'next': exc.next_path})}"
    return RedirectResponse(url=url, status_code=status.HTTP_303_SEE_OTHER)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(LoginRedirect, login_redirect_handler)
