"""
Error taxonomy and unified error schema for profilegraph.

Exceptions are raised inside the core; ``APIError`` is the structured,
user-safe description a caller surfaces when one of them reaches it.
Graph and enrichment failures are always presented as temporarily
unavailable data, never as hard application errors.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ProfileGraphError(Exception):
    """Base class for all profilegraph errors."""

    def __init__(self, message: str = "Profile graph error"):
        self.message = message
        super().__init__(self.message)


class StorageUnavailableError(ProfileGraphError):
    """Raised when the fact or edge store cannot be read or written."""

    def __init__(self, message: str = "Storage unavailable"):
        super().__init__(message)


class MalformedAttributeDataError(ProfileGraphError):
    """Raised when a stored JSON attribute blob fails to parse."""

    def __init__(self, contact_id: int, field: str, reason: str = ""):
        self.contact_id = contact_id
        self.field = field
        detail = f": {reason}" if reason else ""
        super().__init__(f"Malformed {field} data for contact {contact_id}{detail}")


class TransformError(ProfileGraphError):
    """Raised when a profile record cannot be turned into an entity graph."""


class InvalidParameterError(ProfileGraphError):
    """Raised when an operation is called with an out-of-range argument."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class ContactNotFoundError(ProfileGraphError):
    """Raised when an operation targets a contact that does not exist."""

    def __init__(self, contact_id: int):
        self.contact_id = contact_id
        super().__init__(f"Contact {contact_id} not found")


class ErrorCode(str, Enum):
    """Standardized error codes for caller-facing responses."""

    # Graph / enrichment errors
    GRAPH_UNAVAILABLE = "GRAPH_UNAVAILABLE"
    MALFORMED_DATA = "MALFORMED_DATA"
    TRANSFORM_FAILED = "TRANSFORM_FAILED"

    # Resource errors
    CONTACT_NOT_FOUND = "CONTACT_NOT_FOUND"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass
class APIError:
    """
    Structured error response.

    Attributes:
        code: Standardized error code from ErrorCode enum
        message: Human-readable error message
        detail: Optional technical details for debugging
        hint: Optional suggestion for resolving the error
        retryable: Whether the caller should retry the request
    """

    code: ErrorCode
    message: str
    detail: str | None = None
    hint: str | None = None
    retryable: bool = False

    def to_dict(self) -> dict[str, dict[str, str | bool]]:
        """
        Convert error to dictionary format for JSON responses.

        Returns:
            Dictionary with 'error' key containing error details
        """
        error_dict: dict[str, str | bool] = {
            "code": self.code.value,
            "message": self.message,
            "retryable": self.retryable,
        }

        if self.detail is not None:
            error_dict["detail"] = self.detail

        if self.hint is not None:
            error_dict["hint"] = self.hint

        return {"error": error_dict}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Predefined Error Factories
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def graph_unavailable_error(detail: str | None = None) -> APIError:
    """Create error for unreachable fact/edge storage."""
    return APIError(
        code=ErrorCode.GRAPH_UNAVAILABLE,
        message="Enrichment/graph data temporarily unavailable",
        detail=detail,
        hint="Please try again in a moment",
        retryable=True,
    )


def malformed_data_error(contact_id: int, field: str) -> APIError:
    """Create error for a contact whose stored attributes cannot be parsed."""
    return APIError(
        code=ErrorCode.MALFORMED_DATA,
        message="Enrichment/graph data temporarily unavailable",
        detail=f"Contact {contact_id}: unreadable {field} data",
        hint="Re-enrich the contact to refresh its profile data",
        retryable=False,
    )


def transform_failed_error(detail: str | None = None) -> APIError:
    """Create error for a profile record that could not be imported."""
    return APIError(
        code=ErrorCode.TRANSFORM_FAILED,
        message="Profile could not be imported",
        detail=detail,
        hint="Check that the profile has a valid profile URL",
        retryable=False,
    )


def contact_not_found_error(contact_id: int) -> APIError:
    """Create error for missing contact."""
    return APIError(
        code=ErrorCode.CONTACT_NOT_FOUND,
        message="Contact not found",
        detail=f"Contact ID: {contact_id}",
        hint="The contact may have been deleted",
        retryable=False,
    )


def validation_error(field: str, reason: str) -> APIError:
    """Create error for validation failures."""
    return APIError(
        code=ErrorCode.VALIDATION_ERROR,
        message=f"Validation failed for field: {field}",
        detail=reason,
        hint="Check the input format and try again",
        retryable=False,
    )


def internal_error(detail: str | None = None) -> APIError:
    """Create generic internal error."""
    return APIError(
        code=ErrorCode.INTERNAL_ERROR,
        message="An internal error occurred",
        detail=detail,
        hint="Please try again. If the problem persists, contact support.",
        retryable=True,
    )


def to_api_error(exc: Exception) -> APIError:
    """
    Map an exception onto the caller-facing error schema.

    Args:
        exc: Exception raised by a profilegraph operation

    Returns:
        APIError describing the failure without leaking internals
    """
    if isinstance(exc, StorageUnavailableError):
        return graph_unavailable_error(exc.message)
    if isinstance(exc, MalformedAttributeDataError):
        return malformed_data_error(exc.contact_id, exc.field)
    if isinstance(exc, TransformError):
        return transform_failed_error(exc.message)
    if isinstance(exc, ContactNotFoundError):
        return contact_not_found_error(exc.contact_id)
    if isinstance(exc, InvalidParameterError):
        return validation_error(exc.field, exc.reason)
    return internal_error()
