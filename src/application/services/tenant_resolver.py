"""
Tenant resolution.

Maps the school identifier carried by a request (subdomain or first path
segment) to exactly one public school, or fails with TenantNotFoundException.
"""

import logging

from sqlalchemy.exc import DBAPIError

from src.domain.entities import SchoolEntity
from src.domain.exceptions import BackendUnavailableException, TenantNotFoundException
from src.domain.value_objects import SchoolSlug
from src.infrastructure.config.settings import Settings, get_settings
from src.infrastructure.persistence.repositories.school_repo import SchoolRepository

logger = logging.getLogger(__name__)


class TenantResolver:
    """
    Resolve identifiers to public schools.

    Resolution is case-insensitive. Schools still in provisioning status are
    indistinguishable from missing ones; suspended schools resolve so their
    public page can say so.
    """

    def __init__(self, school_repo: SchoolRepository, settings: Settings | None = None):
        self.school_repo = school_repo
        self.settings = settings or get_settings()

    async def resolve(self, identifier: str) -> SchoolEntity:
        slug = (identifier or "").strip().lower()

        # Malformed identifiers never reach the store
        try:
            SchoolSlug(
                slug,
                min_length=self.settings.slug_min_length,
                max_length=self.settings.slug_max_length,
            )
        except ValueError:
            raise TenantNotFoundException(identifier) from None

        try:
            school = await self.school_repo.get_entity_by_slug(slug)
        except DBAPIError as e:
            logger.error("School lookup failed for %s: %s", slug, e)
            raise BackendUnavailableException() from e

        if school is None or not school.is_public():
            raise TenantNotFoundException(identifier)
        return school
