from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.services.authorization_service import AuthorizationService
from src.application.services.data_gateway import (LoggingTransitionListener,
                                                   ScopedDataGateway)
from src.application.services.identity_service import IdentityService
from src.application.services.provisioning_service import TenantProvisioningService
from src.application.services.teacher_service import TeacherAccountService
from src.application.services.tenant_initialization_service import TenantInitializationService
from src.application.services.tenant_resolver import TenantResolver
from src.domain.entities import Anonymous, IdentityState, Principal, SchoolEntity
from src.domain.exceptions import ForbiddenException, NotFoundException, UnauthorizedException
from src.infrastructure.auth import LocalAuthProvider
from src.infrastructure.cache.redis_cache import CacheService
from src.infrastructure.persistence.database import AsyncSessionLocal
from src.infrastructure.persistence.repositories import SchoolRepository, UserRepository
from src.infrastructure.persistence.repositories.school_repo import invalidate_after_commit

security = HTTPBearer(auto_error=False)

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})

# Global service instances (singletons)
_cache_service: CacheService | None = None
_authorization_service = AuthorizationService()


# Cache service dependencies (defined early for use in other dependencies)
async def get_cache_service() -> CacheService:
    """
    Cache service dependency (singleton)

    Returns global cache service instance.
    Initialized on app startup in main.py
    """
    global _cache_service
    if _cache_service is None:
        # Not connected: every cache call is a no-op until main.py connects one
        _cache_service = CacheService()
    return _cache_service


def set_cache_service(cache_service: CacheService):
    """Set global cache service (called on app startup)"""
    global _cache_service
    _cache_service = cache_service


async def get_session(
    request: Request, cache: Annotated[CacheService, Depends(get_cache_service)]
) -> AsyncIterator[AsyncSession]:
    """
    One session per request.

    Safe methods get a plain session (nothing to commit); everything else runs
    in a transaction that commits on success and rolls back on any exception.
    School cache entries touched by the transaction are dropped after commit.
    """
    async with AsyncSessionLocal() as session:
        if request.method in SAFE_METHODS:
            yield session
        else:
            async with session.begin():
                yield session
            await invalidate_after_commit(session, cache)


DbSession = Annotated[AsyncSession, Depends(get_session)]
Cache = Annotated[CacheService, Depends(get_cache_service)]


def get_authorization_service() -> AuthorizationService:
    return _authorization_service


Policy = Annotated[AuthorizationService, Depends(get_authorization_service)]


# Identity
async def get_auth_provider(db: DbSession, cache: Cache) -> LocalAuthProvider:
    return LocalAuthProvider(db, cache_service=cache)


AuthProviderDep = Annotated[LocalAuthProvider, Depends(get_auth_provider)]


async def get_identity_service(auth: AuthProviderDep, db: DbSession) -> IdentityService:
    return IdentityService(auth, UserRepository(db))


async def get_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> str | None:
    return credentials.credentials if credentials else None


async def get_principal(
    token: Annotated[str | None, Depends(get_bearer_token)],
    identity_service: Annotated[IdentityService, Depends(get_identity_service)],
) -> IdentityState:
    """
    Resolve the caller: Anonymous, UnboundIdentity or Principal.

    A missing token is Anonymous; a bad or revoked token is a 401.
    """
    return await identity_service.current_principal(token)


CurrentIdentity = Annotated[IdentityState, Depends(get_principal)]


# Tenancy
async def get_school_repo(db: DbSession, cache: Cache) -> SchoolRepository:
    return SchoolRepository(db, cache_service=cache)


SchoolRepo = Annotated[SchoolRepository, Depends(get_school_repo)]


async def get_tenant_resolver(school_repo: SchoolRepo) -> TenantResolver:
    return TenantResolver(school_repo)


async def get_tenant(
    slug: str, resolver: Annotated[TenantResolver, Depends(get_tenant_resolver)]
) -> SchoolEntity:
    """Resolve the {slug} path segment to a public school (404 otherwise)"""
    return await resolver.resolve(slug)


Tenant = Annotated[SchoolEntity, Depends(get_tenant)]


async def get_principal_tenant(principal: CurrentIdentity, school_repo: SchoolRepo) -> SchoolEntity:
    """The school the signed-in principal belongs to, for routes without a slug"""
    if isinstance(principal, Anonymous):
        raise UnauthorizedException()
    if not isinstance(principal, Principal):
        # Signed in but not bound to any school yet
        raise ForbiddenException("wrong_tenant")
    school = await school_repo.get_entity_by_id(principal.tenant_id)
    if school is None:
        raise NotFoundException("school")
    return school


# Gateway and services
async def get_gateway(
    db: DbSession, principal: CurrentIdentity, policy: Policy, cache: Cache
) -> ScopedDataGateway:
    return ScopedDataGateway(
        db,
        principal,
        policy,
        cache_service=cache,
        listeners=[LoggingTransitionListener()],
    )


Gateway = Annotated[ScopedDataGateway, Depends(get_gateway)]


async def get_provisioning_service(db: DbSession, school_repo: SchoolRepo) -> TenantProvisioningService:
    return TenantProvisioningService(
        db,
        school_repo,
        UserRepository(db),
        TenantInitializationService(db),
    )


async def get_teacher_service(
    auth: AuthProviderDep, db: DbSession, policy: Policy
) -> TeacherAccountService:
    return TeacherAccountService(auth, UserRepository(db), policy)
