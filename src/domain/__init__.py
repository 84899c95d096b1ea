"""
Domain layer - Enterprise Business Rules.

This is the innermost layer containing business entities, value objects,
and domain exceptions. It has no dependencies on other layers.
"""

from src.domain.entities import (ANONYMOUS, Anonymous, Principal, SchoolEntity,
                                 UnboundIdentity)
from src.domain.enums import ApplicationStatus, Role, TenantStatus
from src.domain.exceptions import (BackendTimeoutException,
                                   BackendUnavailableException,
                                   ConflictException, ForbiddenException,
                                   NotFoundException,
                                   PartialProvisioningFailure,
                                   SchoolSiteException,
                                   TenantNotFoundException,
                                   UnauthorizedException, ValidationException)
from src.domain.value_objects import RollNumber, SchoolSlug

__all__ = [
    # Entities
    "ANONYMOUS",
    "Anonymous",
    "Principal",
    "SchoolEntity",
    "UnboundIdentity",
    # Value Objects
    "SchoolSlug",
    "RollNumber",
    # Enums
    "ApplicationStatus",
    "Role",
    "TenantStatus",
    # Exceptions
    "SchoolSiteException",
    "ValidationException",
    "NotFoundException",
    "TenantNotFoundException",
    "UnauthorizedException",
    "ForbiddenException",
    "ConflictException",
    "BackendUnavailableException",
    "BackendTimeoutException",
    "PartialProvisioningFailure",
]
