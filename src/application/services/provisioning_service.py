"""
Tenant provisioning service for orchestrating new school setup.

This service encapsulates the complete school creation workflow:
- Slug validation and uniqueness (enforced by the unique index at write time)
- School record creation in provisioning status
- Owner principal creation
- Default content seeding
- Activation

Steps after the school insert run in a savepoint. If any of them fails the
school row is deleted again (compensation); until activation the school is
in provisioning status, which public resolution never exposes.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.entities import Anonymous, IdentityState, Principal, SchoolEntity
from src.domain.enums import Role, TenantStatus
from src.domain.exceptions import (BackendUnavailableException,
                                   ConflictException,
                                   PartialProvisioningFailure,
                                   UnauthorizedException,
                                   ValidationException)
from src.domain.value_objects import SchoolSlug
from src.infrastructure.config.settings import Settings, get_settings
from src.infrastructure.persistence.models.school import School
from src.infrastructure.persistence.repositories.school_repo import (
    SchoolRepository, to_entity)
from src.infrastructure.persistence.repositories.user_repo import UserRepository

from .tenant_initialization_service import (SeedContent,
                                            TenantInitializationService,
                                            default_settings)

logger = logging.getLogger(__name__)

SLUG_TAKEN_MESSAGE = "This URL is already taken. Please choose a different one."


@dataclass(frozen=True)
class SlugAvailability:
    """Advisory result of a slug check; the insert still enforces uniqueness"""

    slug: str
    available: bool
    reason: str | None = None


class TenantProvisioningService:
    """
    Service for creating new schools with their owner and default content.

    Orchestrates:
    1. Slug validation (format, reserved words, advisory uniqueness)
    2. School record creation (status=provisioning, no owner yet)
    3. Owner principal creation (role=owner)
    4. Default content sections via TenantInitializationService
    5. Activation (owner_id set, status=active)
    """

    def __init__(
        self,
        db: AsyncSession,
        school_repo: SchoolRepository,
        user_repo: UserRepository,
        init_service: TenantInitializationService,
        settings: Settings | None = None,
    ) -> None:
        self.db = db
        self.school_repo = school_repo
        self.user_repo = user_repo
        self.init_service = init_service
        self.settings = settings or get_settings()

    def validate_slug(self, desired_slug: str) -> str:
        """Return the canonical slug or raise ValidationException"""
        slug = (desired_slug or "").strip().lower()
        try:
            SchoolSlug(
                slug,
                min_length=self.settings.slug_min_length,
                max_length=self.settings.slug_max_length,
            )
        except ValueError as e:
            raise ValidationException(str(e), "slug") from e

        if slug in self.settings.reserved_slug_set:
            raise ValidationException("This URL is reserved. Please choose a different one.", "slug")
        return slug

    def suggest_slug(self, school_name: str) -> str:
        """Slug suggestion derived from the school name"""
        return SchoolSlug.normalize(school_name)[: self.settings.slug_max_length].strip("-")

    async def check_slug_availability(self, raw_slug: str) -> SlugAvailability:
        """
        Advisory availability check for the create-school form.

        Never authoritative: two callers may both see available=True, and only
        one of them will be able to provision.
        """
        slug = SchoolSlug.normalize(raw_slug or "")
        try:
            slug = self.validate_slug(slug)
        except ValidationException as e:
            reason = "reserved" if slug in self.settings.reserved_slug_set else "invalid"
            logger.debug("Slug %r rejected: %s", raw_slug, e.message)
            return SlugAvailability(slug=slug, available=False, reason=reason)

        try:
            existing = await self.school_repo.get_by_slug(slug)
        except DBAPIError as e:
            logger.error("Slug availability lookup failed: %s", e)
            raise BackendUnavailableException() from e

        if existing is not None:
            return SlugAvailability(slug=slug, available=False, reason="taken")
        return SlugAvailability(slug=slug, available=True)

    async def provision_tenant(
        self,
        owner: IdentityState,
        desired_slug: str,
        school_name: str,
        seed: SeedContent | None = None,
    ) -> SchoolEntity:
        """
        Create a school, its owner principal and default content.

        Args:
            owner: The signed-in identity; must not be bound to a school yet
            desired_slug: Requested public slug (case-insensitive)
            school_name: Display name
            seed: Optional contact details and section overrides

        Returns:
            The active SchoolEntity

        Raises:
            UnauthorizedException: no session
            ValidationException: malformed or reserved slug, empty name
            ConflictException: slug taken (including a lost race) or owner already bound
            PartialProvisioningFailure: a step after the school insert failed
        """
        if isinstance(owner, Anonymous):
            raise UnauthorizedException()
        if isinstance(owner, Principal):
            raise ConflictException("This account already belongs to a school")

        seed = seed or {}
        slug = self.validate_slug(desired_slug)
        name = (school_name or "").strip()
        if not name:
            raise ValidationException("School name is required", "name")

        try:
            if await self.user_repo.get_by_id(owner.identity_id) is not None:
                raise ConflictException("This account already belongs to a school")
            # Advisory only; the unique index decides below
            if await self.school_repo.get_by_slug(slug) is not None:
                raise ConflictException(SLUG_TAKEN_MESSAGE, "slug")
        except DBAPIError as e:
            logger.error("Provisioning pre-check failed: %s", e)
            raise BackendUnavailableException() from e

        school = await self._create_school(slug, name, seed)
        school_id = school.id

        step = "owner"
        try:
            async with self.db.begin_nested():
                await self.user_repo.create_principal(
                    identity_id=owner.identity_id,
                    tenant_id=school_id,
                    email=owner.email,
                    full_name=owner.full_name or "School Owner",
                    role=Role.OWNER,
                )
                step = "content"
                await self.init_service.create_default_content(school_id, name, seed)
                step = "activate"
                school.owner_id = owner.identity_id
                school.status = TenantStatus.ACTIVE.value
                await self.school_repo.update(school)
        except Exception as e:
            rolled_back = await self._compensate(school)
            logger.error(
                "Provisioning of school %s failed at step %s (rolled_back=%s): %s",
                school_id,
                step,
                rolled_back,
                e,
            )
            raise PartialProvisioningFailure(school_id, step, rolled_back=rolled_back) from e

        logger.info("Provisioned school %s (%s) for owner %s", school.id, slug, owner.identity_id)
        return to_entity(school)

    async def _create_school(self, slug: str, name: str, seed: SeedContent) -> School:
        school = School(
            slug=slug,
            name=name,
            status=TenantStatus.PROVISIONING.value,
            settings=default_settings(seed),
        )
        try:
            async with self.db.begin_nested():
                return await self.school_repo.create(school)
        except IntegrityError as e:
            # Lost the race against a concurrent signup for the same slug
            raise ConflictException(SLUG_TAKEN_MESSAGE, "slug") from e
        except DBAPIError as e:
            logger.error("School insert failed: %s", e)
            raise BackendUnavailableException() from e

    async def _compensate(self, school: School) -> bool:
        """Delete the half-created school. Returns whether it is gone."""
        try:
            async with self.db.begin_nested():
                # The failed savepoint may have expired the row
                await self.db.refresh(school)
                await self.school_repo.delete(school)
            return True
        except Exception as e:
            logger.error("Compensating delete of school failed: %s", e)
            return False
