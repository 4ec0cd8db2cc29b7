from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from starlette import status
from starlette.responses import JSONResponse

from yuthub.core.config import settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    default_message: str = "An error occurred"

    def __init__(self, message: str | None = None, details: dict | None = None) -> None:
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        error: dict = {"code": self.code, "message": self.message}
        if self.details:
            error["details"] = self.details
        return {"success": False, "error": error}


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "AUTHORIZATION_ERROR"
    default_message = "You do not have permission to perform this action"


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_message = "Resource not found"


class ServiceUnavailableError(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "SERVICE_UNAVAILABLE"
    default_message = "Service temporarily unavailable"


class ExternalServiceError(AppError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "EXTERNAL_SERVICE_ERROR"
    default_message = "External service error"

    def __init__(self, service: str, message: str | None = None, details: dict | None = None) -> None:
        super().__init__(message, {"service": service, **(details or {})})


@dataclass(frozen=True, slots=True)
class ErrorConfig:
    include_stack_trace: bool
    sanitize_messages: bool
    max_message_length: int


_RESTRICTIVE = ErrorConfig(include_stack_trace=False, sanitize_messages=True, max_message_length=500)

_ERROR_CONFIGS: dict[str, ErrorConfig] = {
    "production": ErrorConfig(include_stack_trace=False, sanitize_messages=True, max_message_length=200),
    "staging": _RESTRICTIVE,
    "development": ErrorConfig(include_stack_trace=True, sanitize_messages=False, max_message_length=1000),
    "test": ErrorConfig(include_stack_trace=True, sanitize_messages=False, max_message_length=1000),
}

# Order matters: connection strings must be redacted before the port pattern eats them.
_SENSITIVE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(?:postgres(?:ql)?(?:\+\w+)?|mongodb|redis)://[^@\s]+@\S+", re.IGNORECASE),
    re.compile(r"/[\w\-/]+\.(?:py|js|ts|jsx|tsx|json|env)", re.IGNORECASE),
    re.compile(r"SELECT .* FROM", re.IGNORECASE),
    re.compile(r"INSERT INTO .*", re.IGNORECASE),
    re.compile(r"UPDATE .* SET", re.IGNORECASE),
    re.compile(r"DELETE FROM .*", re.IGNORECASE),
    re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}"),
    re.compile(r"[A-Za-z0-9]{32,}"),
    re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b"),
    re.compile(r":\d{2,5}\b"),
)


def get_error_config(environment: str | None = None) -> ErrorConfig:
    env = (environment or settings.environment or "").strip().lower()
    return _ERROR_CONFIGS.get(env, _RESTRICTIVE)


def sanitize_error_message(message: str, environment: str | None = None) -> str:
    config = get_error_config(environment)
    sanitized = message
    if config.sanitize_messages:
        for pattern in _SENSITIVE_PATTERNS:
            sanitized = pattern.sub("[REDACTED]", sanitized)

    if len(sanitized) > config.max_message_length:
        sanitized = sanitized[: config.max_message_length] + "..."
    return sanitized


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "%s on %s %s: %s",
        exc.code,
        request.method,
        request.url.path,
        exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error on %s %s organization=%s",
        request.method,
        request.url.path,
        getattr(request.state, "organization_id", None),
    )
    config = get_error_config()
    error: dict = {
        "code": "INTERNAL_ERROR",
        "message": sanitize_error_message(str(exc) or "Internal server error"),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    request_id = request.headers.get("X-Request-Id")
    if request_id:
        error["request_id"] = request_id
    if config.include_stack_trace:
        error["type"] = type(exc).__name__
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": error},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
