"""
Service interfaces (ports) for the application layer.

These protocols define the contracts for collaborators that live outside
the tenant-scoping core: the identity provider and transition side effects.
Following Dependency Inversion Principle (DIP).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from src.domain.entities import Principal, SchoolEntity
    from src.domain.enums import ApplicationStatus


@dataclass(frozen=True)
class IdentityRecord:
    """An account known to the identity provider"""

    id: str
    email: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AuthSession:
    """Result of a successful sign-in or sign-up"""

    access_token: str
    identity: IdentityRecord
    expires_at: datetime


@dataclass(frozen=True)
class SessionClaims:
    """Verified contents of a session token"""

    identity_id: str
    email: str
    token_id: str
    expires_at: datetime
    full_name: str | None = None


class AuthProvider(Protocol):
    """Protocol for the hosted authentication provider (DIP)"""

    async def sign_up(
        self, email: str, password: str, metadata: dict[str, Any] | None = None
    ) -> AuthSession:
        """Create an account and open a session. Raises ConflictException on duplicate email."""
        ...

    async def sign_in(self, email: str, password: str) -> AuthSession:
        """Open a session. Raises UnauthorizedException on bad credentials."""
        ...

    async def current_session(self, token: str) -> SessionClaims:
        """Verify a session token. Raises UnauthorizedException when invalid or revoked."""
        ...

    async def sign_out(self, token: str) -> None:
        """Revoke a session token"""
        ...

    # Admin-privileged; never reachable from a public code path
    async def create_user(
        self, email: str, password: str, metadata: dict[str, Any] | None = None
    ) -> IdentityRecord:
        """Create an account without opening a session"""
        ...

    async def delete_user(self, identity_id: str) -> None:
        """Delete an account. Raises NotFoundException if it does not exist."""
        ...


class TransitionListener(Protocol):
    """Side effect fired exactly once per successful application status transition"""

    async def on_transition(
        self,
        *,
        tenant: SchoolEntity,
        application_id: str,
        previous: ApplicationStatus,
        current: ApplicationStatus,
        actor: Principal,
    ) -> None:
        ...
