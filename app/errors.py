"""API error types rendered by the exception handler in :mod:`app.main`."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error: str
    message: str | None = None


class FieldViolation(BaseModel):
    field: str
    message: str


class ApiError(Exception):
    """Base error carrying an HTTP status and a JSON-serialisable payload."""

    status_code = 500
    error = "Internal server error"
    message = "An unexpected error occurred. Please try again later."

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.headers = headers
        super().__init__(self.message)

    def payload(self) -> dict[str, Any]:
        return ErrorResponse(error=self.error, message=self.message).model_dump()


class InputValidationError(ApiError):
    status_code = 400
    error = "Invalid input data"

    def __init__(self, details: list[FieldViolation]) -> None:
        self.details = details
        super().__init__("; ".join(d.message for d in details))

    def payload(self) -> dict[str, Any]:
        return {
            "error": self.error,
            "details": [d.model_dump() for d in self.details],
        }


class AuthError(ApiError):
    status_code = 401
    error = "Unauthorized"
    message = "Authentication is required. Please sign in."


class ForbiddenError(AuthError):
    status_code = 403
    error = "Access denied"
    message = "Invalid API key"


class QuotaExceededError(ApiError):
    status_code = 403
    error = "Usage limit reached"

    def __init__(self, limit_type: str, current: int, limit: int) -> None:
        self.limit_type = limit_type
        self.current = current
        self.limit = limit
        super().__init__(
            f"You have reached the limit of {limit} case studies "
            f"for this {limit_type.replace('_', ' ')}."
        )

    def payload(self) -> dict[str, Any]:
        return {
            "error": self.error,
            "message": self.message,
            "limit": self.limit,
            "current": self.current,
            "limitType": self.limit_type,
        }


class RateLimitError(ApiError):
    status_code = 429
    error = "Too many requests"
    message = "You have exceeded the request limit. Please try again later."


class PayloadTooLargeError(ApiError):
    status_code = 413
    error = "Payload too large"
    message = "The request body is too large."


class ServiceUnavailableError(ApiError):
    status_code = 503
    error = "Service unavailable"
    message = "Rate limiter unavailable"


class ProviderError(ApiError):
    """Failure of an upstream generation step.

    ``status_code`` mirrors the provider's HTTP status when it reported one.
    """

    error = "Failed to generate the case study"
    message = "An error occurred while processing your request. Please try again later."

    def __init__(self, step: str, status_code: int | None = None) -> None:
        self.step = step
        if status_code is not None and not 400 <= status_code <= 599:
            status_code = None
        super().__init__(status_code=status_code)


__all__ = [
    "ApiError",
    "AuthError",
    "ErrorResponse",
    "FieldViolation",
    "ForbiddenError",
    "InputValidationError",
    "PayloadTooLargeError",
    "ProviderError",
    "QuotaExceededError",
    "RateLimitError",
    "ServiceUnavailableError",
]
