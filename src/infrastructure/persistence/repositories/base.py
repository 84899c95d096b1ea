from abc import ABC
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.persistence.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(ABC, Generic[ModelType]):
    """
    Base repository for the root records (schools, identities, principals).

    School-owned content goes through ScopedDataGateway instead, which adds
    authorization and tenant scoping on top of the same session.

    Every write flushes immediately so constraint violations surface inside
    the caller's savepoint, then calls _on_change for cache invalidation.
    """

    def __init__(self, db: AsyncSession, model: type[ModelType]):
        self.db = db
        self.model = model

    async def get_by_id(self, id: str) -> ModelType | None:
        # id comes from CuidMixin, which the bound does not express
        model: Any = self.model
        result = await self.db.execute(select(self.model).where(model.id == id))
        return result.scalar_one_or_none()

    async def create(self, obj: ModelType) -> ModelType:
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        await self._on_change(obj)
        return obj

    async def update(self, obj: ModelType) -> ModelType:
        """Flush attribute changes already made on obj"""
        await self.db.flush()
        await self.db.refresh(obj)
        await self._on_change(obj)
        return obj

    async def delete(self, obj: ModelType) -> None:
        await self._on_change(obj)
        await self.db.delete(obj)
        await self.db.flush()

    async def _on_change(self, obj: ModelType) -> None:
        """Called after create/update and before delete. Override to invalidate caches."""
