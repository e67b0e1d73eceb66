"""Error Hierarchy — status codes, categories and the response envelope."""

import pytest

from shemarket.core.errors import (
    ErrorCategory,
    ForbiddenError,
    InvalidTransitionError,
    MarketError,
    MarketValidationError,
    ResourceNotFoundError,
    StoreUnavailableError,
    UnauthenticatedError,
)


@pytest.mark.parametrize("error,status,code", [
    (UnauthenticatedError(), 401, "UNAUTHENTICATED"),
    (ForbiddenError("no"), 403, "FORBIDDEN"),
    (ResourceNotFoundError("Listing", "x"), 404, "RESOURCE_NOT_FOUND"),
    (MarketValidationError("bad", "title"), 400, "VALIDATION_ERROR"),
    (InvalidTransitionError("Order", "shipped", "pending"), 400, "INVALID_TRANSITION"),
    (StoreUnavailableError("timed out", "query"), 503, "UNAVAILABLE"),
])
def test_status_and_code(error, status, code):
    assert isinstance(error, MarketError)
    assert error.http_status == status
    assert error.code == code


def test_only_store_errors_are_retryable():
    assert StoreUnavailableError("x", "commit").retryable
    assert not ForbiddenError("x").retryable


def test_not_found_carries_resource_id():
    err = ResourceNotFoundError("Order", "abc")
    body = err.to_response()["error"]
    assert body["context"]["resource_id"] == "abc"
    assert body["category"] == ErrorCategory.RESOURCE_NOT_FOUND.value
    assert body["message"] == "Order 'abc' not found"


def test_store_error_envelope():
    body = StoreUnavailableError("timed out", "query").to_response()["error"]
    assert body["retryable"] is True
    assert body["context"]["retry_after_ms"] == 1000
    assert body["severity"] == "critical"
    assert "timestamp" in body
