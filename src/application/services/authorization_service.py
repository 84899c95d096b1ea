"""
Authorization policy engine.

authorize(principal, tenant, resource, action) -> Allow | Deny(reason)

The decision is pure: it never touches the store, so callers can refuse a
request before issuing any query. Follow principle: "Check permissions,
not roles" - roles only select a grant table below.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from src.domain.entities import Anonymous, IdentityState, Principal, SchoolEntity, UnboundIdentity
from src.domain.enums import ApplicationStatus, Role
from src.domain.exceptions import ForbiddenException, UnauthorizedException

logger = logging.getLogger(__name__)


class Resource(str, Enum):
    """Things a principal can act on inside a school"""

    APPLICATION = "application"
    STUDENT = "student"
    SCHOOL_CLASS = "school_class"
    RESULT = "result"
    CONTENT_SECTION = "content_section"
    SETTINGS = "settings"
    TEACHER_ACCOUNT = "teacher_account"


class Action(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class DenyReason(str, Enum):
    """Why access was denied. For logs only, never returned to callers."""

    UNAUTHENTICATED = "unauthenticated"
    WRONG_TENANT = "wrong_tenant"
    ROLE_FORBIDDEN = "role_forbidden"
    TENANT_INACTIVE = "tenant_inactive"


@dataclass(frozen=True)
class Allow:
    """
    Access granted.

    forced holds field values the caller may not choose; the gateway applies
    them over the payload (e.g. status=pending for public submissions).
    """

    forced: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Deny:
    reason: DenyReason


Decision = Allow | Deny

ALL_ACTIONS = frozenset(Action)
READ_ONLY = frozenset({Action.READ})

# Role -> resource -> allowed actions. Anything missing is denied.
ROLE_GRANTS: Mapping[Role, Mapping[Resource, frozenset[Action]]] = MappingProxyType(
    {
        Role.OWNER: {
            Resource.APPLICATION: ALL_ACTIONS,
            Resource.STUDENT: ALL_ACTIONS,
            Resource.SCHOOL_CLASS: ALL_ACTIONS,
            Resource.RESULT: ALL_ACTIONS,
            Resource.CONTENT_SECTION: ALL_ACTIONS,
            Resource.SETTINGS: frozenset({Action.READ, Action.UPDATE}),
            Resource.TEACHER_ACCOUNT: ALL_ACTIONS,
        },
        Role.ADMIN: {
            Resource.APPLICATION: ALL_ACTIONS,
            Resource.STUDENT: ALL_ACTIONS,
            Resource.SCHOOL_CLASS: ALL_ACTIONS,
            Resource.RESULT: ALL_ACTIONS,
            Resource.CONTENT_SECTION: ALL_ACTIONS,
            Resource.SETTINGS: frozenset({Action.READ, Action.UPDATE}),
            Resource.TEACHER_ACCOUNT: READ_ONLY,
        },
        Role.TEACHER: {
            Resource.RESULT: frozenset({Action.READ, Action.CREATE, Action.UPDATE}),
            Resource.STUDENT: READ_ONLY,
            Resource.APPLICATION: READ_ONLY,
            Resource.SCHOOL_CLASS: READ_ONLY,
            Resource.CONTENT_SECTION: READ_ONLY,
            Resource.SETTINGS: READ_ONLY,
        },
    }
)

PUBLIC_SUBMISSION = Allow(forced=MappingProxyType({"status": ApplicationStatus.PENDING.value}))


class AuthorizationService:
    """
    Centralized access decisions for every school-owned resource.

    Stateless; one instance can be shared across requests.
    """

    def __init__(self, grants: Mapping[Role, Mapping[Resource, frozenset[Action]]] = ROLE_GRANTS):
        missing = set(Role) - set(grants)
        if missing:
            raise ValueError(f"No grants defined for roles: {sorted(r.value for r in missing)}")
        self.grants = grants

    def authorize(
        self,
        principal: IdentityState,
        tenant: SchoolEntity,
        resource: Resource,
        action: Action,
    ) -> Decision:
        """
        Decide whether principal may perform action on resource inside tenant.

        Examples:
            - authorize(ANONYMOUS, school, Resource.APPLICATION, Action.CREATE) -> Allow(status=pending)
            - authorize(teacher, school, Resource.CONTENT_SECTION, Action.UPDATE) -> Deny(role_forbidden)
        """
        if not tenant.is_public():
            return Deny(DenyReason.TENANT_INACTIVE)

        if isinstance(principal, Anonymous):
            return self._authorize_anonymous(tenant, resource, action)

        if isinstance(principal, UnboundIdentity):
            # Valid session but not bound to any school yet
            return Deny(DenyReason.WRONG_TENANT)

        if principal.tenant_id != tenant.id:
            return Deny(DenyReason.WRONG_TENANT)

        if action is not Action.READ and not tenant.accepts_writes():
            return Deny(DenyReason.TENANT_INACTIVE)

        if action in self.grants[principal.role].get(resource, frozenset()):
            return Allow()
        return Deny(DenyReason.ROLE_FORBIDDEN)

    @staticmethod
    def _authorize_anonymous(tenant: SchoolEntity, resource: Resource, action: Action) -> Decision:
        if resource is Resource.APPLICATION and action is Action.CREATE:
            if not tenant.accepts_applications():
                return Deny(DenyReason.TENANT_INACTIVE)
            return PUBLIC_SUBMISSION

        # The public landing page renders content sections
        if resource is Resource.CONTENT_SECTION and action is Action.READ:
            return Allow()

        return Deny(DenyReason.UNAUTHENTICATED)

    def enforce(
        self,
        principal: IdentityState,
        tenant: SchoolEntity,
        resource: Resource,
        action: Action,
    ) -> Allow:
        """
        Return the Allow decision or raise.

        Raises:
            UnauthorizedException: anonymous caller on a protected resource
            ForbiddenException: any other denial; the reason is logged only
        """
        decision = self.authorize(principal, tenant, resource, action)
        if isinstance(decision, Allow):
            return decision

        logger.warning(
            "Access denied: principal=%s tenant=%s resource=%s action=%s reason=%s",
            _principal_label(principal),
            tenant.id,
            resource.value,
            action.value,
            decision.reason.value,
        )
        if decision.reason is DenyReason.UNAUTHENTICATED:
            raise UnauthorizedException()
        raise ForbiddenException(decision.reason.value, resource.value, action.value)


def _principal_label(principal: IdentityState) -> str:
    if isinstance(principal, Principal):
        return f"{principal.id}({principal.role.value})"
    if isinstance(principal, UnboundIdentity):
        return f"{principal.identity_id}(unbound)"
    return "anonymous"
