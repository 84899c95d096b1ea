"""
Identity states a request can be in.

Anonymous         no session
UnboundIdentity   valid session, no principal record yet (mid-signup)
Principal         valid session bound to one school with one role
"""

from dataclasses import dataclass

from src.domain.enums import Role


@dataclass(frozen=True)
class Anonymous:
    """No session."""


ANONYMOUS = Anonymous()


@dataclass(frozen=True)
class UnboundIdentity:
    """Authenticated identity that has not been bound to a school yet."""

    identity_id: str
    email: str
    full_name: str | None = None


@dataclass(frozen=True)
class Principal:
    """Authenticated identity bound to exactly one school."""

    id: str
    email: str
    role: Role
    tenant_id: str
    full_name: str | None = None

    def is_tenant_admin(self) -> bool:
        return self.role in (Role.OWNER, Role.ADMIN)


IdentityState = Anonymous | UnboundIdentity | Principal
