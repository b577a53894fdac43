"""Student Insights error hierarchy."""

from typing import Any


class InsightServiceError(Exception):
    """Base exception for Student Insights errors."""

    code = "INSIGHTS_INTERNAL_ERROR"
    status_code = 500

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.details = details
        super().__init__(message)


class UnauthenticatedError(InsightServiceError):
    """No bearer credential was supplied."""

    code = "INSIGHTS_UNAUTHENTICATED"
    status_code = 401


class InvalidCredentialError(InsightServiceError):
    """Bearer credential failed verification (malformed, expired, bad signature)."""

    code = "INSIGHTS_INVALID_CREDENTIAL"
    status_code = 403


class ValidationError(InsightServiceError):
    """Invalid request parameters."""

    code = "INSIGHTS_INVALID_REQUEST"
    status_code = 400


class NotFoundError(InsightServiceError):
    """Resource not found."""

    code = "INSIGHTS_NOT_FOUND"
    status_code = 404


class ForbiddenError(InsightServiceError):
    """Caller is outside the student's school and is not an administrator."""

    code = "INSIGHTS_FORBIDDEN"
    status_code = 403


class GenerationOverloadedError(InsightServiceError):
    """Generation service stayed overloaded for every allowed attempt."""

    code = "INSIGHTS_GENERATION_OVERLOADED"
    status_code = 503


class GenerationFailedError(InsightServiceError):
    """Generation service failed with a non-transient error."""

    code = "INSIGHTS_GENERATION_FAILED"
    status_code = 500


class PersistenceError(InsightServiceError):
    """Storage read or write failure."""

    code = "INSIGHTS_PERSISTENCE_FAILURE"
    status_code = 500


ERROR_STATUS_MAP: dict[type[InsightServiceError], int] = {
    UnauthenticatedError: 401,
    InvalidCredentialError: 403,
    ValidationError: 400,
    NotFoundError: 404,
    ForbiddenError: 403,
    GenerationOverloadedError: 503,
    GenerationFailedError: 500,
    PersistenceError: 500,
}


def get_status_code(error: InsightServiceError) -> int:
    """Get HTTP status code for error."""
    return ERROR_STATUS_MAP.get(type(error), 500)
