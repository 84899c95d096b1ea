"""
Identity and role resolution.

Turns an optional session token into one of the three identity states:
Anonymous, UnboundIdentity or Principal.
"""

import logging

from sqlalchemy.exc import DBAPIError

from src.application.interfaces.services import AuthProvider
from src.domain.entities import ANONYMOUS, IdentityState, Principal, UnboundIdentity
from src.domain.enums import Role
from src.domain.exceptions import BackendUnavailableException, NotFoundException
from src.infrastructure.persistence.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)


class IdentityService:
    """Resolves the acting principal for a request"""

    def __init__(self, auth_provider: AuthProvider, user_repo: UserRepository):
        self.auth = auth_provider
        self.user_repo = user_repo

    async def current_principal(self, token: str | None) -> IdentityState:
        """
        Resolve the caller.

        No token -> Anonymous. Valid token without a principal record ->
        UnboundIdentity. Invalid or revoked tokens raise UnauthorizedException.
        """
        if not token:
            return ANONYMOUS

        claims = await self.auth.current_session(token)
        try:
            return await self.bind(claims.identity_id)
        except NotFoundException:
            return UnboundIdentity(
                identity_id=claims.identity_id,
                email=claims.email,
                full_name=claims.full_name,
            )

    async def bind(self, identity_id: str) -> Principal:
        """Load the principal record for an identity, or raise NotFoundException"""
        try:
            user = await self.user_repo.get_by_id(identity_id)
        except DBAPIError as e:
            logger.error("Principal lookup failed for %s: %s", identity_id, e)
            raise BackendUnavailableException() from e

        if user is None:
            raise NotFoundException("principal")

        return Principal(
            id=user.id,
            email=user.email,
            role=Role(user.role),
            tenant_id=user.tenant_id,
            full_name=user.full_name,
        )
