import asyncio
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.persistence.models.identity import Identity
from src.infrastructure.persistence.repositories.base import BaseRepository
from src.infrastructure.security.password import (get_password_hash,
                                                  verify_password)

# Compared against when the email is unknown so both branches cost one bcrypt check
_DUMMY_HASH = "$2b$12$C6UzMDM.H6dfI/f/IKcEeO5rX3lWjiAUnHSd0Ob8Vnb0u5JcmrV9S"


class IdentityRepository(BaseRepository[Identity]):
    """Repository for identity-provider accounts."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Identity)

    async def get_by_email(self, email: str) -> Identity | None:
        result = await self.db.execute(select(Identity).where(Identity.email == email.lower()))
        return result.scalar_one_or_none()

    async def create_identity(
        self, email: str, password: str, metadata: dict[str, Any] | None = None
    ) -> Identity:
        """Create a login account with a bcrypt password hash"""
        hashed = await asyncio.to_thread(get_password_hash, password)
        identity = Identity(
            email=email.lower(),
            hashed_password=hashed,
            user_metadata=metadata or {},
        )
        return await self.create(identity)

    async def authenticate(self, email: str, password: str) -> Identity | None:
        """
        Authenticate by email and password.

        Returns the Identity if credentials are valid, None otherwise.
        """
        identity = await self.get_by_email(email)

        if not identity:
            # Perform dummy hash check to prevent timing attacks
            await asyncio.to_thread(verify_password, password, _DUMMY_HASH)
            return None

        if not await asyncio.to_thread(verify_password, password, identity.hashed_password):
            return None

        return identity
