import re
from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class SchoolSlug:
    """
    Value object for a school's public slug (subdomain / URL segment).

    Slugs must be:
    - lowercase
    - alphanumeric with single hyphens between groups
    - within the configured length bounds
    - immutable once the school is created
    """

    value: str
    min_length: int = 3
    max_length: int = 50

    PATTERN: ClassVar[re.Pattern[str]] = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value:
            raise ValueError("Slug must be a non-empty string")

        if len(self.value) < self.min_length or len(self.value) > self.max_length:
            raise ValueError(
                f"Slug must be {self.min_length}-{self.max_length} characters"
            )

        if not self.PATTERN.match(self.value):
            raise ValueError(
                "Slug must be lowercase letters, digits and single hyphens "
                "(e.g., 'green-valley-school')"
            )

    def __str__(self) -> str:
        return self.value

    @staticmethod
    def normalize(raw: str) -> str:
        """
        Turn free text (a school name or a typed URL) into slug form.

        "Green Valley  School!" -> "green-valley-school"
        """
        cleaned = re.sub(r"[^a-z0-9\s-]", "", raw.lower())
        cleaned = re.sub(r"\s+", "-", cleaned.strip())
        cleaned = re.sub(r"-+", "-", cleaned)
        return cleaned.strip("-")


@dataclass(frozen=True)
class RollNumber:
    """Value object for a student roll number, unique within one school"""

    value: str

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value.strip():
            raise ValueError("Roll number must be a non-empty string")
        if len(self.value) > 64:
            raise ValueError("Roll number must not exceed 64 characters")
