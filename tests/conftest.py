"""Shared test fixtures for pytest"""
import os

# Settings are read at import time; configure before importing the app
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-do-not-use-in-production")
os.environ["REDIS_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from collections.abc import Awaitable, Callable  # noqa: E402
from dataclasses import dataclass  # noqa: E402
from typing import Annotated, Any  # noqa: E402

import pytest  # noqa: E402
from fastapi import Depends, Request  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from main import app  # noqa: E402
from src.domain.entities import Principal, SchoolEntity  # noqa: E402
from src.domain.enums import Role, TenantStatus  # noqa: E402
from src.infrastructure.cache.redis_cache import CacheService  # noqa: E402
from src.infrastructure.persistence.database import Base, enable_sqlite_savepoints, get_db  # noqa: E402
from src.infrastructure.persistence.models import Identity, School, User  # noqa: E402
from src.infrastructure.persistence.repositories.school_repo import (  # noqa: E402
    invalidate_after_commit, to_entity)
from src.infrastructure.security import create_access_token, get_password_hash  # noqa: E402
from src.presentation.api.dependencies import (  # noqa: E402
    SAFE_METHODS, get_cache_service, get_session, set_cache_service)

TEST_PASSWORD = "testpass123"

# bcrypt is slow; hash once for every fixture account
_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


@dataclass
class Account:
    """A principal plus the bearer token that authenticates as it"""

    principal: Principal
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


@pytest.fixture
async def test_engine(tmp_path):
    """File-backed SQLite so the API and the test share one database"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    enable_sqlite_savepoints(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )


@pytest.fixture
async def test_db(session_factory):
    """Create test database session"""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    """HTTP client for API testing"""

    async def override_get_session(
        request: Request, cache: Annotated[CacheService, Depends(get_cache_service)]
    ):
        async with session_factory() as session:
            if request.method in SAFE_METHODS:
                yield session
            else:
                async with session.begin():
                    yield session
                await invalidate_after_commit(session, cache)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_db] = override_get_db
    set_cache_service(CacheService())

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_school(session_factory) -> Callable[..., Awaitable[SchoolEntity]]:
    """Insert a school directly, bypassing provisioning"""

    async def _make(
        slug: str,
        *,
        name: str | None = None,
        status: TenantStatus = TenantStatus.ACTIVE,
        settings: dict[str, Any] | None = None,
    ) -> SchoolEntity:
        async with session_factory() as session:
            school = School(
                slug=slug,
                name=name or slug.replace("-", " ").title(),
                status=status.value,
                settings=settings or {},
            )
            session.add(school)
            await session.commit()
            await session.refresh(school)
            return to_entity(school)

    return _make


@pytest.fixture
def make_account(session_factory) -> Callable[..., Awaitable[Account]]:
    """Insert an identity bound to a school with the given role"""

    async def _make(school: SchoolEntity, role: Role, email: str | None = None) -> Account:
        email = email or f"{role.value}@{school.slug}.example.com"
        async with session_factory() as session:
            identity = Identity(email=email, hashed_password=_PASSWORD_HASH, user_metadata={})
            session.add(identity)
            await session.flush()
            user = User(
                id=identity.id,
                tenant_id=school.id,
                email=email,
                full_name=f"{role.label} of {school.name}",
                role=role.value,
            )
            session.add(user)
            await session.commit()

        principal = Principal(
            id=identity.id, email=email, role=role, tenant_id=school.id, full_name=user.full_name
        )
        token = create_access_token({"sub": identity.id, "email": email})
        return Account(principal=principal, token=token)

    return _make


@pytest.fixture
async def school(make_school) -> SchoolEntity:
    return await make_school("green-valley-school", name="Green Valley School")


@pytest.fixture
async def other_school(make_school) -> SchoolEntity:
    return await make_school("blue-river-school", name="Blue River School")


@pytest.fixture
async def owner(make_account, school) -> Account:
    return await make_account(school, Role.OWNER)


@pytest.fixture
async def admin(make_account, school) -> Account:
    return await make_account(school, Role.ADMIN)


@pytest.fixture
async def teacher(make_account, school) -> Account:
    return await make_account(school, Role.TEACHER)


@pytest.fixture
async def other_owner(make_account, other_school) -> Account:
    return await make_account(other_school, Role.OWNER)
