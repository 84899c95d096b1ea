"""
Identity provider backed by the local identity table.

Issues JWT access tokens carrying a jti; signing out marks the jti revoked
in Redis until the token would have expired anyway.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.interfaces.services import (AuthSession, IdentityRecord,
                                                 SessionClaims)
from src.domain.exceptions import (BackendUnavailableException,
                                   ConflictException, NotFoundException,
                                   UnauthorizedException)
from src.infrastructure.cache.redis_cache import CacheService
from src.infrastructure.config.settings import get_settings
from src.infrastructure.persistence.models.identity import Identity
from src.infrastructure.persistence.repositories.identity_repo import \
    IdentityRepository
from src.infrastructure.security.jwt import create_access_token, verify_token

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
DUPLICATE_EMAIL = "An account with this email already exists"


def _revoked_key(token_id: str) -> str:
    return f"revoked:{token_id}"


def _to_record(identity: Identity) -> IdentityRecord:
    return IdentityRecord(
        id=identity.id,
        email=identity.email,
        metadata=dict(identity.user_metadata or {}),
    )


class LocalAuthProvider:
    """AuthProvider implementation over IdentityRepository and JWT"""

    def __init__(self, db: AsyncSession, cache_service: CacheService | None = None):
        self.db = db
        self.identity_repo = IdentityRepository(db)
        self.cache = cache_service
        self.settings = get_settings()

    async def sign_up(
        self, email: str, password: str, metadata: dict[str, Any] | None = None
    ) -> AuthSession:
        record = await self.create_user(email, password, metadata)
        return self._open_session(record)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        try:
            identity = await self.identity_repo.authenticate(email, password)
        except DBAPIError as e:
            logger.error("Identity lookup failed during sign-in: %s", e)
            raise BackendUnavailableException() from e

        if identity is None:
            logger.info("Failed sign-in attempt for %s", email.lower())
            raise UnauthorizedException(INVALID_CREDENTIALS)
        return self._open_session(_to_record(identity))

    async def current_session(self, token: str) -> SessionClaims:
        try:
            payload = verify_token(token)
        except ValueError as e:
            raise UnauthorizedException("Invalid or expired session") from e

        identity_id = payload.get("sub")
        token_id = payload.get("jti")
        if not identity_id or not token_id:
            raise UnauthorizedException("Invalid or expired session")

        if self.cache and await self.cache.exists(_revoked_key(token_id)):
            raise UnauthorizedException("Session has been signed out")

        # Deleted accounts lose their sessions immediately
        try:
            identity = await self.identity_repo.get_by_id(identity_id)
        except DBAPIError as e:
            logger.error("Identity lookup failed for session %s: %s", token_id, e)
            raise BackendUnavailableException() from e
        if identity is None:
            logger.info("Session %s belongs to a deleted identity", token_id)
            raise UnauthorizedException("Invalid or expired session")

        return SessionClaims(
            identity_id=identity_id,
            email=payload.get("email", ""),
            token_id=token_id,
            expires_at=datetime.fromtimestamp(payload["exp"], UTC),
            full_name=payload.get("name"),
        )

    async def sign_out(self, token: str) -> None:
        claims = await self.current_session(token)
        remaining = int((claims.expires_at - datetime.now(UTC)).total_seconds())
        if remaining <= 0:
            return
        if self.cache is None or not await self.cache.set(
            _revoked_key(claims.token_id), True, ttl=remaining
        ):
            # Without Redis the token stays valid until it expires
            logger.warning("Could not record sign-out for session %s", claims.token_id)

    async def create_user(
        self, email: str, password: str, metadata: dict[str, Any] | None = None
    ) -> IdentityRecord:
        try:
            if await self.identity_repo.get_by_email(email) is not None:
                raise ConflictException(DUPLICATE_EMAIL, "email")
            async with self.db.begin_nested():
                identity = await self.identity_repo.create_identity(email, password, metadata)
        except IntegrityError as e:
            raise ConflictException(DUPLICATE_EMAIL, "email") from e
        except DBAPIError as e:
            logger.error("Identity insert failed: %s", e)
            raise BackendUnavailableException() from e
        return _to_record(identity)

    async def delete_user(self, identity_id: str) -> None:
        try:
            identity = await self.identity_repo.get_by_id(identity_id)
            if identity is None:
                raise NotFoundException("identity")
            async with self.db.begin_nested():
                await self.identity_repo.delete(identity)
        except DBAPIError as e:
            logger.error("Identity delete failed for %s: %s", identity_id, e)
            raise BackendUnavailableException() from e

    def _open_session(self, identity: IdentityRecord) -> AuthSession:
        expires_in = timedelta(minutes=self.settings.access_token_expire_minutes)
        claims: dict[str, Any] = {"sub": identity.id, "email": identity.email}
        if identity.metadata.get("full_name"):
            claims["name"] = identity.metadata["full_name"]
        token = create_access_token(claims, expires_delta=expires_in)
        return AuthSession(
            access_token=token,
            identity=identity,
            expires_at=datetime.now(UTC) + expires_in,
        )
