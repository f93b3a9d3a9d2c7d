"""
Tests for the error taxonomy and unified error schema.

Validates the exception hierarchy, ErrorCode enum, APIError dataclass,
error factories and exception mapping.
"""

from __future__ import annotations

import pytest

from profilegraph.models.errors import (
    APIError,
    ContactNotFoundError,
    ErrorCode,
    InvalidParameterError,
    MalformedAttributeDataError,
    ProfileGraphError,
    StorageUnavailableError,
    TransformError,
    contact_not_found_error,
    graph_unavailable_error,
    internal_error,
    malformed_data_error,
    to_api_error,
    validation_error,
)


class TestExceptions:
    """Test the exception hierarchy."""

    @pytest.mark.parametrize(
        "exc",
        [
            StorageUnavailableError(),
            MalformedAttributeDataError(1, "skills"),
            TransformError("no url"),
            ContactNotFoundError(1),
            InvalidParameterError("max_depth", "must not be negative"),
        ],
    )
    def test_all_derive_from_base(self, exc: Exception) -> None:
        assert isinstance(exc, ProfileGraphError)

    def test_malformed_message(self) -> None:
        exc = MalformedAttributeDataError(7, "education", "not a list")
        assert exc.contact_id == 7
        assert exc.field == "education"
        assert str(exc) == "Malformed education data for contact 7: not a list"

    def test_contact_not_found_message(self) -> None:
        assert str(ContactNotFoundError(3)) == "Contact 3 not found"

    def test_invalid_parameter_message(self) -> None:
        exc = InvalidParameterError("max_depth", "must not be negative")
        assert (exc.field, exc.reason) == ("max_depth", "must not be negative")
        assert str(exc) == "Invalid max_depth: must not be negative"


class TestErrorCode:
    """Test ErrorCode enum."""

    def test_all_error_codes_unique(self) -> None:
        """All error codes should have unique values."""
        codes = [e.value for e in ErrorCode]
        assert len(codes) == len(set(codes)), "Error codes must be unique"

    def test_error_codes_uppercase(self) -> None:
        for code in ErrorCode:
            assert code.value.isupper(), f"Error code {code.value} should be uppercase"


class TestAPIError:
    """Test APIError dataclass."""

    def test_to_dict_minimal(self) -> None:
        """Convert minimal error to dict."""
        error = APIError(code=ErrorCode.INTERNAL_ERROR, message="Something went wrong")
        assert error.to_dict() == {
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "Something went wrong",
                "retryable": False,
            }
        }

    def test_to_dict_full(self) -> None:
        error = APIError(
            code=ErrorCode.GRAPH_UNAVAILABLE,
            message="Unavailable",
            detail="disk full",
            hint="Retry",
            retryable=True,
        )
        payload = error.to_dict()["error"]
        assert payload["detail"] == "disk full"
        assert payload["hint"] == "Retry"
        assert payload["retryable"] is True


class TestErrorFactories:
    """Test predefined error factories."""

    def test_graph_unavailable_is_retryable(self) -> None:
        error = graph_unavailable_error("facts table unreadable")
        assert error.code == ErrorCode.GRAPH_UNAVAILABLE
        assert error.retryable is True
        assert "temporarily unavailable" in error.message

    def test_malformed_data_is_soft(self) -> None:
        """Malformed blobs read as unavailable data, not a hard failure."""
        error = malformed_data_error(5, "skills")
        assert error.code == ErrorCode.MALFORMED_DATA
        assert "temporarily unavailable" in error.message
        assert error.detail == "Contact 5: unreadable skills data"

    def test_contact_not_found(self) -> None:
        error = contact_not_found_error(9)
        assert error.detail == "Contact ID: 9"
        assert error.retryable is False

    def test_validation_error(self) -> None:
        error = validation_error("max_depth", "must be positive")
        assert error.message == "Validation failed for field: max_depth"


class TestToApiError:
    """Test exception mapping."""

    @pytest.mark.parametrize(
        ("exc", "code"),
        [
            (StorageUnavailableError("down"), ErrorCode.GRAPH_UNAVAILABLE),
            (MalformedAttributeDataError(1, "skills"), ErrorCode.MALFORMED_DATA),
            (TransformError("no url"), ErrorCode.TRANSFORM_FAILED),
            (ContactNotFoundError(1), ErrorCode.CONTACT_NOT_FOUND),
            (InvalidParameterError("max_depth", "bad"), ErrorCode.VALIDATION_ERROR),
            (RuntimeError("boom"), ErrorCode.INTERNAL_ERROR),
        ],
    )
    def test_mapping(self, exc: Exception, code: ErrorCode) -> None:
        assert to_api_error(exc).code == code

    def test_internal_error_hides_details(self) -> None:
        error = to_api_error(RuntimeError("secret path /etc/x"))
        assert error == internal_error()
        assert error.detail is None

    def test_invalid_parameter_names_field(self) -> None:
        exc = InvalidParameterError("max_nodes_per_degree", "must not be negative")
        error = to_api_error(exc)
        assert error.message == "Validation failed for field: max_nodes_per_degree"
        assert error.detail == "must not be negative"
        assert error.retryable is False
