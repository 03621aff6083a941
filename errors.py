"""
Application error hierarchy and FastAPI exception handlers.

AppError is the base for all typed errors. The global exception handler
converts AppError subclasses to consistent JSON responses.

ChallengeFailure names the reasons a challenge token can be rejected. These
are verdicts, not exceptions: the challenge service reports them in a
VerificationResult and never raises them.

Non-AppError exceptions bubble up as 500s (with Sentry reporting in production).
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shared.logging import get_logger

log = get_logger(__name__)


class ChallengeFailure(str, Enum):
    """Why a challenge verification was rejected."""

    MISSING_TOKEN = "MissingToken"
    MALFORMED_TOKEN = "MalformedToken"
    TOKEN_REPLAYED = "TokenReplayed"
    UNKNOWN_OR_CONSUMED_TOKEN = "UnknownOrConsumedToken"
    TOKEN_EXPIRED = "TokenExpired"
    TOKEN_FROM_FUTURE = "TokenFromFuture"
    ANSWER_MISMATCH = "AnswerMismatch"
    INTERNAL_ERROR = "InternalError"


class AppError(Exception):
    """Base application error. All typed errors inherit from this."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details

    def to_dict(self) -> dict:
        payload: dict = {"error": self.message, "code": self.error_code}
        if self.field is not None:
            payload["field"] = self.field
        if self.details is not None:
            payload["details"] = self.details
        return payload


class SecurityVerificationError(AppError):
    """Raised by form endpoints when the human-verification challenge fails.

    The message is deliberately generic; the specific ChallengeFailure is
    logged server-side only.
    """

    status_code = 400
    error_code = "security_verification_failed"

    def __init__(self, message: str = "Security verification failed", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class ServiceUnavailableError(AppError):
    status_code = 503
    error_code = "service_unavailable"


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        # Sentry integration: if sentry_sdk is initialized it will auto-capture
        # unhandled exceptions before this handler fires.
        log.error(
            "unhandled_exception",
            path=request.url.path,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=500,
            content={"error": "An internal server error occurred.", "code": "internal_error"},
        )
