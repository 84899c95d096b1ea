"""
Teacher account management.

A teacher account is two records: an identity-provider account and a
principal record binding it to the school with role=teacher. Both are
created and removed together.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import DBAPIError

from src.application.interfaces.services import AuthProvider
from src.application.services.authorization_service import (Action,
                                                            AuthorizationService,
                                                            Resource)
from src.domain.entities import IdentityState, SchoolEntity
from src.domain.enums import Role
from src.domain.exceptions import (BackendUnavailableException,
                                   ForbiddenException, NotFoundException)
from src.infrastructure.persistence.models.user import User
from src.infrastructure.persistence.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TeacherProfile:
    email: str
    password: str
    full_name: str
    phone: str | None = None
    subject: str | None = None
    qualification: str | None = None
    experience: str | None = None


class TeacherAccountService:
    """List, create and remove teacher accounts of one school"""

    def __init__(
        self,
        auth_provider: AuthProvider,
        user_repo: UserRepository,
        policy: AuthorizationService | None = None,
    ):
        self.auth = auth_provider
        self.user_repo = user_repo
        self.policy = policy or AuthorizationService()

    async def list_teachers(self, principal: IdentityState, tenant: SchoolEntity) -> list[User]:
        self.policy.enforce(principal, tenant, Resource.TEACHER_ACCOUNT, Action.READ)
        try:
            return await self.user_repo.get_users_by_tenant(tenant.id, role=Role.TEACHER)
        except DBAPIError as e:
            logger.error("Teacher listing failed for school %s: %s", tenant.id, e)
            raise BackendUnavailableException() from e

    async def create_teacher(
        self, principal: IdentityState, tenant: SchoolEntity, profile: TeacherProfile
    ) -> User:
        """
        Create the identity, then the principal record.

        If the principal insert fails the identity is deleted again so no
        login without a school is left behind.
        """
        self.policy.enforce(principal, tenant, Resource.TEACHER_ACCOUNT, Action.CREATE)

        identity = await self.auth.create_user(
            profile.email, profile.password, {"full_name": profile.full_name}
        )
        try:
            async with self.user_repo.db.begin_nested():
                teacher = await self.user_repo.create_principal(
                    identity_id=identity.id,
                    tenant_id=tenant.id,
                    email=identity.email,
                    full_name=profile.full_name,
                    role=Role.TEACHER,
                    phone=profile.phone,
                    subject=profile.subject,
                    qualification=profile.qualification,
                    experience=profile.experience,
                )
        except Exception as e:
            logger.error("Teacher principal insert failed, removing identity %s: %s", identity.id, e)
            await self.auth.delete_user(identity.id)
            if isinstance(e, DBAPIError):
                raise BackendUnavailableException() from e
            raise

        logger.info("Created teacher %s in school %s", teacher.id, tenant.id)
        return teacher

    async def delete_teacher(
        self, principal: IdentityState, tenant: SchoolEntity, teacher_id: str
    ) -> None:
        """Remove both the principal record and the identity of a teacher"""
        self.policy.enforce(principal, tenant, Resource.TEACHER_ACCOUNT, Action.DELETE)

        try:
            teacher = await self.user_repo.get_by_id(teacher_id)
        except DBAPIError as e:
            logger.error("Teacher lookup failed for %s: %s", teacher_id, e)
            raise BackendUnavailableException() from e

        if teacher is None:
            raise NotFoundException("teacher")
        if teacher.tenant_id != tenant.id:
            logger.warning(
                "Cross-tenant access blocked: principal=%s tenant=%s resource=teacher_account id=%s reason=wrong_tenant",
                getattr(principal, "id", "anonymous"),
                tenant.id,
                teacher_id,
            )
            raise ForbiddenException("wrong_tenant", Resource.TEACHER_ACCOUNT.value, "delete")
        if teacher.role != Role.TEACHER.value:
            raise ForbiddenException("role_forbidden", Resource.TEACHER_ACCOUNT.value, "delete")

        try:
            async with self.user_repo.db.begin_nested():
                await self.user_repo.delete(teacher)
        except DBAPIError as e:
            logger.error("Teacher principal delete failed for %s: %s", teacher_id, e)
            raise BackendUnavailableException() from e

        # A failure here propagates and the request transaction restores the principal
        await self.auth.delete_user(teacher_id)
        logger.info("Removed teacher %s from school %s", teacher_id, tenant.id)
