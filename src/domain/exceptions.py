"""
Domain exceptions for the SchoolSite application.

Every failure a consumer can observe maps to one of these types:
NotFound, Unauthorized, Forbidden, Conflict, BackendUnavailable and
PartialProvisioningFailure. Raw backend errors never cross this boundary.
"""

from typing import Any


class SchoolSiteException(Exception):
    """
    Base exception for all SchoolSite application errors.

    Attributes:
        message: Human-readable error description, safe to show to end users
        error_code: Machine-readable error code for API responses
        details: Additional error context (must not contain internal reasons)
    """

    retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        body: dict[str, Any] = {
            "error": self.message,
            "code": self.error_code,
            "details": self.details,
        }
        if self.retryable:
            body["retryable"] = True
        return body


class ValidationException(SchoolSiteException):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class NotFoundException(SchoolSiteException):
    """Raised when a principal or tenant-owned entity does not exist."""

    def __init__(self, resource_type: str = "resource"):
        super().__init__(
            f"{resource_type.replace('_', ' ').capitalize()} not found",
            "NOT_FOUND",
            {"resource_type": resource_type},
        )


class TenantNotFoundException(NotFoundException):
    """Raised when a slug/subdomain does not resolve to a public school."""

    def __init__(self, identifier: str):
        super().__init__("school")
        self.identifier = identifier


class UnauthorizedException(SchoolSiteException):
    """Raised when there is no valid session."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, "UNAUTHORIZED")


class ForbiddenException(SchoolSiteException):
    """
    Raised when a valid session lacks rights on the target tenant or resource.

    The reason is kept on the exception for logging only and is deliberately
    left out of to_dict().
    """

    def __init__(self, reason: str, resource: str | None = None, action: str | None = None):
        super().__init__("You are not allowed to perform this action", "FORBIDDEN")
        self.reason = reason
        self.resource = resource
        self.action = action


class ConflictException(SchoolSiteException):
    """Raised on uniqueness violations and failed compare-and-set updates."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message, "CONFLICT", details)


class BackendUnavailableException(SchoolSiteException):
    """Transient infrastructure failure. Safe to retry."""

    retryable = True

    def __init__(self, message: str = "Service temporarily unavailable, please retry"):
        super().__init__(message, "BACKEND_UNAVAILABLE")


class BackendTimeoutException(BackendUnavailableException):
    """A backend call exceeded its time budget. Safe to retry."""

    def __init__(self, operation: str, timeout: float):
        super().__init__(f"Operation timed out after {timeout:g} seconds, please retry")
        self.error_code = "BACKEND_TIMEOUT"
        self.operation = operation


class PartialProvisioningFailure(SchoolSiteException):
    """
    School provisioning failed after the school record was written.

    rolled_back tells whether the compensating delete removed the school. When
    False the school is left in provisioning status, which public resolution
    never exposes, and needs manual cleanup.
    """

    def __init__(self, tenant_id: str, step: str, *, rolled_back: bool):
        super().__init__(
            "School setup could not be completed, please try again",
            "PARTIAL_PROVISIONING_FAILURE",
            {"rolled_back": rolled_back},
        )
        self.tenant_id = tenant_id
        self.step = step
        self.rolled_back = rolled_back
