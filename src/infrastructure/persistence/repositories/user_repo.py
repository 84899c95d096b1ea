from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.enums import Role
from src.infrastructure.persistence.models.user import User
from src.infrastructure.persistence.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for principal records (identity + role + school binding)."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, User)

    async def create_principal(
        self,
        *,
        identity_id: str,
        tenant_id: str,
        email: str,
        full_name: str,
        role: Role,
        **profile: str | None,
    ) -> User:
        """Bind an identity to a school. tenant_id never changes afterwards."""
        user = User(
            id=identity_id,
            tenant_id=tenant_id,
            email=email,
            full_name=full_name,
            role=role.value,
            **profile,
        )
        return await self.create(user)

    async def get_users_by_tenant(
        self, tenant_id: str, role: Role | None = None, skip: int = 0, limit: int = 100
    ) -> list[User]:
        """Get principals of a school, optionally filtered by role"""
        query = select(User).where(User.tenant_id == tenant_id)
        if role is not None:
            query = query.where(User.role == role.value)
        result = await self.db.execute(
            query.order_by(User.created_at.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all())
