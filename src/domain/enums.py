"""Domain enumerations for the SchoolSite application."""

from enum import Enum


class TenantStatus(str, Enum):
    """School (tenant) status enumeration"""

    PROVISIONING = "provisioning"
    ACTIVE = "active"
    SUSPENDED = "suspended"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [status.value for status in cls]


class Role(str, Enum):
    """Role a principal holds inside its school"""

    OWNER = "owner"
    ADMIN = "admin"
    TEACHER = "teacher"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [role.value for role in cls]

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class ApplicationStatus(str, Enum):
    """
    Admission application lifecycle.

    pending -> under_review -> approved | rejected
    pending -> approved | rejected

    approved and rejected are terminal.
    """

    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [status.value for status in cls]

    @property
    def is_terminal(self) -> bool:
        return self in (ApplicationStatus.APPROVED, ApplicationStatus.REJECTED)

    def can_transition_to(self, target: "ApplicationStatus") -> bool:
        return target in _APPLICATION_TRANSITIONS[self]


_APPLICATION_TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    ApplicationStatus.PENDING: frozenset(
        {
            ApplicationStatus.UNDER_REVIEW,
            ApplicationStatus.APPROVED,
            ApplicationStatus.REJECTED,
        }
    ),
    ApplicationStatus.UNDER_REVIEW: frozenset(
        {ApplicationStatus.APPROVED, ApplicationStatus.REJECTED}
    ),
    ApplicationStatus.APPROVED: frozenset(),
    ApplicationStatus.REJECTED: frozenset(),
}


class StudentStatus(str, Enum):
    """Student enrollment status"""

    ACTIVE = "active"
    INACTIVE = "inactive"
    GRADUATED = "graduated"
    TRANSFERRED = "transferred"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [status.value for status in cls]


class ClassStatus(str, Enum):
    """School class status"""

    ACTIVE = "active"
    INACTIVE = "inactive"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [status.value for status in cls]


class ContentSectionType(str, Enum):
    """Sections of the public landing page"""

    HERO = "hero"
    ABOUT = "about"
    GALLERY = "gallery"
    NOTICES = "notices"
    FEATURED_STUDENTS = "students"
    LOCATION = "location"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [section.value for section in cls]
