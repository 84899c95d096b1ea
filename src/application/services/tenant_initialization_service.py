"""
Tenant initialization service for seeding a new school's default data.

Called by the provisioning workflow right after the owner principal exists:
- Default landing page content sections (hero, about, gallery, notices,
  featured students, location)
- Default school settings (theme, contact, features)
"""
from typing import Any, TypedDict

from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.enums import ContentSectionType
from src.infrastructure.persistence.models.content_section import ContentSection
from src.shared.utils import utc_now
from src.shared.utils.generators import generate_cuid


class SeedContent(TypedDict, total=False):
    """Optional details collected on the create-school form"""

    description: str
    phone: str
    email: str
    address: str
    sections: dict[str, dict[str, Any]]


# Feature flags a new school starts with
DEFAULT_FEATURES: dict[str, bool] = {
    "enableApplications": True,
    "enableResults": True,
    "enableGallery": True,
    "enableNotices": True,
    "enableFeaturedStudents": True,
    "publicResults": False,
    "requireApproval": True,
}

DEFAULT_DESCRIPTION = (
    "We are committed to providing quality education and nurturing young minds "
    "to become responsible citizens of tomorrow."
)


def default_settings(seed: SeedContent) -> dict[str, Any]:
    """Initial settings document for a new school"""
    return {
        "theme": "green",
        "contact": {
            "phone": seed.get("phone"),
            "email": seed.get("email"),
            "address": seed.get("address"),
        },
        "description": seed.get("description"),
        "features": dict(DEFAULT_FEATURES),
    }


def default_sections(school_name: str, seed: SeedContent) -> dict[ContentSectionType, dict[str, Any]]:
    """Landing page content for a new school. seed["sections"] overrides per section."""
    sections: dict[ContentSectionType, dict[str, Any]] = {
        ContentSectionType.HERO: {
            "images": [
                {
                    "url": "https://images.pexels.com/photos/207692/pexels-photo-207692.jpeg",
                    "title": f"Welcome to {school_name}",
                    "description": "Excellence in Education",
                }
            ]
        },
        ContentSectionType.ABOUT: {
            "title": f"About {school_name}",
            "description": seed.get("description") or DEFAULT_DESCRIPTION,
            "vision": "To be a leading educational institution",
            "mission": "Empowering students with knowledge and values",
            "stats": {"students": "500+", "teachers": "25+"},
        },
        ContentSectionType.GALLERY: {
            "images": [
                {
                    "url": "https://images.pexels.com/photos/1205651/pexels-photo-1205651.jpeg",
                    "title": "Science Laboratory",
                },
                {
                    "url": "https://images.pexels.com/photos/159844/cellular-education-classroom-159844.jpeg",
                    "title": "Modern Classroom",
                },
            ]
        },
        ContentSectionType.NOTICES: {
            "items": [
                {
                    "title": "Welcome to Our New Website",
                    "description": "We are excited to launch our new school website with modern features.",
                    "date": utc_now().date().isoformat(),
                }
            ]
        },
        ContentSectionType.FEATURED_STUDENTS: {"featured": []},
        ContentSectionType.LOCATION: {
            "address": seed.get("address") or "",
            "phone": seed.get("phone") or "",
            "email": seed.get("email") or "",
        },
    }

    for key, content in (seed.get("sections") or {}).items():
        section = ContentSectionType(key)
        sections[section] = content
    return sections


class TenantInitializationService:
    """Service for seeding a newly provisioned school"""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create_default_content(
        self, tenant_id: str, school_name: str, seed: SeedContent | None = None
    ) -> int:
        """
        Create the fixed set of landing page sections for a school.

        Returns the number of sections created.
        """
        sections = default_sections(school_name, seed or {})
        rows = [
            ContentSection(
                id=generate_cuid(),
                tenant_id=tenant_id,
                section=section.value,
                content=content,
            )
            for section, content in sections.items()
        ]

        # Batch insert
        self.db.add_all(rows)
        await self.db.flush()
        return len(rows)
