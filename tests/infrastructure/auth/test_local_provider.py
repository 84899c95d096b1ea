"""Tests for the local identity provider (accounts, JWT sessions, sign-out)"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from src.domain.exceptions import (BackendUnavailableException,
                                   ConflictException, NotFoundException,
                                   UnauthorizedException)
from src.infrastructure.auth import LocalAuthProvider
from src.infrastructure.cache.redis_cache import CacheService
from src.infrastructure.persistence.repositories.identity_repo import IdentityRepository
from src.infrastructure.security import create_access_token


@pytest.fixture
def revocations():
    """In-memory stand-in for the Redis keys the provider touches"""
    store: dict[str, object] = {}
    cache = AsyncMock(spec=CacheService)

    async def set_(key, value, ttl=300):
        store[key] = value
        return True

    async def exists(key):
        return key in store

    cache.set.side_effect = set_
    cache.exists.side_effect = exists
    cache.store = store
    return cache


@pytest.mark.asyncio
async def test_sign_up_opens_session(test_db):
    auth = LocalAuthProvider(test_db)

    session = await auth.sign_up("Head@Example.com", "testpass123", {"full_name": "Head Teacher"})
    claims = await auth.current_session(session.access_token)

    assert session.identity.email == "head@example.com"
    assert claims.identity_id == session.identity.id
    assert claims.full_name == "Head Teacher"
    assert claims.token_id


@pytest.mark.asyncio
async def test_duplicate_email_conflicts(test_db):
    auth = LocalAuthProvider(test_db)
    await auth.create_user("dup@example.com", "testpass123")

    with pytest.raises(ConflictException) as exc_info:
        await auth.create_user("DUP@example.com", "otherpass123")

    assert exc_info.value.details == {"field": "email"}


@pytest.mark.asyncio
async def test_sign_in(test_db):
    auth = LocalAuthProvider(test_db)
    created = await auth.create_user("login@example.com", "testpass123")

    session = await auth.sign_in("login@example.com", "testpass123")

    assert session.identity.id == created.id


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("email", "password"),
    [("login@example.com", "wrongpass"), ("nobody@example.com", "testpass123")],
)
async def test_sign_in_failures_look_identical(test_db, email, password):
    """Unknown email and wrong password give the same error"""
    auth = LocalAuthProvider(test_db)
    await auth.create_user("login@example.com", "testpass123")

    with pytest.raises(UnauthorizedException) as exc_info:
        await auth.sign_in(email, password)

    assert exc_info.value.message == "Invalid credentials"


@pytest.mark.asyncio
async def test_token_without_jti_rejected(test_db):
    token = create_access_token({"sub": "identity-1", "jti": ""})

    with pytest.raises(UnauthorizedException):
        await LocalAuthProvider(test_db).current_session(token)


@pytest.mark.asyncio
async def test_sign_out_revokes_token(test_db, revocations):
    """
    GIVEN an open session
    WHEN signing out
    THEN the same token is refused afterwards
    """
    auth = LocalAuthProvider(test_db, revocations)
    session = await auth.sign_up("out@example.com", "testpass123")

    await auth.sign_out(session.access_token)

    assert len(revocations.store) == 1
    ttl = revocations.set.await_args.kwargs["ttl"]
    assert 0 < ttl <= auth.settings.access_token_expire_minutes * 60
    with pytest.raises(UnauthorizedException):
        await auth.current_session(session.access_token)


@pytest.mark.asyncio
async def test_sign_out_without_cache_logs(test_db, caplog):
    auth = LocalAuthProvider(test_db)
    session = await auth.sign_up("nocache@example.com", "testpass123")

    await auth.sign_out(session.access_token)

    assert "Could not record sign-out" in caplog.text


@pytest.mark.asyncio
async def test_delete_user(test_db):
    auth = LocalAuthProvider(test_db)
    created = await auth.create_user("gone@example.com", "testpass123")

    await auth.delete_user(created.id)

    assert await IdentityRepository(test_db).get_by_id(created.id) is None
    with pytest.raises(NotFoundException):
        await auth.delete_user(created.id)


@pytest.mark.asyncio
async def test_deleted_identity_session_rejected(test_db):
    """
    GIVEN a session opened before the account was deleted
    WHEN the token is presented again
    THEN it is refused even though its signature is still valid
    """
    auth = LocalAuthProvider(test_db)
    session = await auth.sign_up("leaver@example.com", "testpass123")

    await auth.delete_user(session.identity.id)

    with pytest.raises(UnauthorizedException):
        await auth.current_session(session.access_token)


@pytest.mark.asyncio
async def test_session_lookup_backend_failure(test_db):
    auth = LocalAuthProvider(test_db)
    session = await auth.sign_up("flaky@example.com", "testpass123")
    auth.identity_repo = AsyncMock(spec=IdentityRepository)
    auth.identity_repo.get_by_id.side_effect = OperationalError("SELECT", {}, Exception("down"))

    with pytest.raises(BackendUnavailableException):
        await auth.current_session(session.access_token)
