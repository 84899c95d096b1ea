from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.entities import SchoolEntity
from src.domain.enums import TenantStatus
from src.infrastructure.cache.redis_cache import CacheService
from src.infrastructure.config.settings import get_settings
from src.infrastructure.persistence.models.school import School
from src.infrastructure.persistence.repositories.base import BaseRepository

STALE_SLUGS_KEY = "stale_school_slugs"


def to_entity(school: School) -> SchoolEntity:
    return SchoolEntity(
        id=school.id,
        slug=school.slug,
        name=school.name,
        status=TenantStatus(school.status),
        owner_id=school.owner_id,
        settings=dict(school.settings or {}),
    )


class SchoolRepository(BaseRepository[School]):
    """
    Repository for School (tenant) records with Redis caching of public lookups.

    Cache TTL: 15 minutes (configurable). Only the domain entity is cached,
    never ORM rows, and schools still being provisioned are never cached.
    """

    def __init__(self, db: AsyncSession, cache_service: CacheService | None = None):
        super().__init__(db, School)
        self.cache = cache_service
        self.settings = get_settings()
        self.cache_ttl = self.settings.cache_ttl_tenants

    async def get_by_slug(self, slug: str) -> School | None:
        """Exact match on the stored (lowercase) slug"""
        result = await self.db.execute(select(School).where(School.slug == slug))
        return result.scalar_one_or_none()

    async def get_entity_by_slug(self, slug: str) -> SchoolEntity | None:
        """
        Get school entity by slug with caching

        Uses Redis cache to avoid repeated queries from public landing pages.
        """
        cache_key = f"school:slug:{slug}"
        if self.cache and self.cache.is_available():
            cached = await self.cache.get(cache_key)
            if cached is not None:
                return SchoolEntity.from_cache(cached)

        school = await self.get_by_slug(slug)
        if school is None:
            return None

        entity = to_entity(school)
        if entity.is_public() and self.cache and self.cache.is_available():
            await self.cache.set(cache_key, entity.to_cache(), ttl=self.cache_ttl)
        return entity

    async def get_entity_by_id(self, school_id: str) -> SchoolEntity | None:
        school = await self.get_by_id(school_id)
        return to_entity(school) if school else None

    async def update_profile(
        self, school: School, *, name: str | None = None, settings: dict[str, Any] | None = None
    ) -> School:
        """Update name and/or settings. The slug is immutable."""
        if name is not None:
            school.name = name
        if settings is not None:
            school.settings = settings
        return await self.update(school)

    async def _on_change(self, obj: School) -> None:
        # Dropped now and again once the transaction commits; a lookup running
        # in between can cache the old row
        self.db.info.setdefault(STALE_SLUGS_KEY, set()).add(obj.slug)
        await self._invalidate_school_cache(obj.slug)

    async def _invalidate_school_cache(self, slug: str) -> None:
        """Invalidate cached school data"""
        if self.cache and self.cache.is_available():
            await self.cache.delete(f"school:slug:{slug}")


async def invalidate_after_commit(session: AsyncSession, cache: CacheService | None) -> None:
    """Drop cache entries for schools changed in a transaction that has just committed"""
    slugs = session.info.pop(STALE_SLUGS_KEY, set())
    if not cache or not cache.is_available():
        return
    for slug in slugs:
        await cache.delete(f"school:slug:{slug}")
