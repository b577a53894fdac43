"""Unit tests for errors module."""

import pytest

from student_insights.core.errors import (
    ForbiddenError,
    GenerationFailedError,
    GenerationOverloadedError,
    InsightServiceError,
    InvalidCredentialError,
    NotFoundError,
    PersistenceError,
    UnauthenticatedError,
    ValidationError,
    get_status_code,
)


def test_insight_service_error_base():
    error = InsightServiceError("test message")
    assert error.message == "test message"
    assert error.code == "INSIGHTS_INTERNAL_ERROR"
    assert error.status_code == 500


def test_error_with_details():
    error = ValidationError("error", details={"field": "value"})
    assert error.details == {"field": "value"}


@pytest.mark.parametrize(
    ("error_cls", "expected"),
    [
        (UnauthenticatedError, 401),
        (InvalidCredentialError, 403),
        (ValidationError, 400),
        (NotFoundError, 404),
        (ForbiddenError, 403),
        (GenerationOverloadedError, 503),
        (GenerationFailedError, 500),
        (PersistenceError, 500),
        (InsightServiceError, 500),
    ],
)
def test_get_status_code(error_cls, expected):
    error = error_cls("test")
    assert get_status_code(error) == expected
    assert error.status_code == expected


def test_overloaded_and_failed_have_distinct_codes():
    assert GenerationOverloadedError.code != GenerationFailedError.code
