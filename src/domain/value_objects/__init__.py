"""Domain value objects."""

from src.domain.value_objects.core import RollNumber, SchoolSlug

__all__ = [
    "SchoolSlug",
    "RollNumber",
]
