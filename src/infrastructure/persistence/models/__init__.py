"""ORM models. Importing this package registers every table on Base.metadata."""

from src.infrastructure.persistence.models.application import Application
from src.infrastructure.persistence.models.content_section import ContentSection
from src.infrastructure.persistence.models.identity import Identity
from src.infrastructure.persistence.models.result import Result
from src.infrastructure.persistence.models.school import School
from src.infrastructure.persistence.models.school_class import SchoolClass
from src.infrastructure.persistence.models.student import Student
from src.infrastructure.persistence.models.user import User

__all__ = [
    "Application",
    "ContentSection",
    "Identity",
    "Result",
    "School",
    "SchoolClass",
    "Student",
    "User",
]
