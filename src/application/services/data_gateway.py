"""
Scoped data gateway.

The single chokepoint for every read and write of school-owned data. Each
call runs the policy engine first and issues no query at all on Deny; on
Allow it injects the school id into filters and payloads, re-verifies the
stored tenant_id before updates and deletes, and translates backend errors
into the domain taxonomy.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from collections.abc import Awaitable, Iterable, Mapping, Sequence
from typing import Any, TypeVar

from sqlalchemy import select, update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.interfaces.services import TransitionListener
from src.application.services.authorization_service import (Action, Allow,
                                                            AuthorizationService,
                                                            Resource)
from src.domain.entities import IdentityState, Principal, SchoolEntity
from src.domain.enums import ApplicationStatus
from src.domain.exceptions import (BackendTimeoutException,
                                   BackendUnavailableException,
                                   ConflictException, ForbiddenException,
                                   NotFoundException, SchoolSiteException,
                                   ValidationException)
from src.domain.grading import calculate_grade
from src.domain.value_objects import RollNumber
from src.infrastructure.cache.redis_cache import CacheService
from src.infrastructure.config.settings import get_settings
from src.infrastructure.persistence.database import Base
from src.infrastructure.persistence.models import (Application,
                                                   ContentSection, Result,
                                                   School, SchoolClass,
                                                   Student)
from src.infrastructure.persistence.repositories.school_repo import (
    SchoolRepository, to_entity)
from src.shared.utils import utc_now

logger = logging.getLogger(__name__)

T = TypeVar("T")

ENTITY_MODELS: Mapping[Resource, type[Base]] = {
    Resource.APPLICATION: Application,
    Resource.STUDENT: Student,
    Resource.SCHOOL_CLASS: SchoolClass,
    Resource.RESULT: Result,
    Resource.CONTENT_SECTION: ContentSection,
}

# Per-school uniqueness violations -> (user-facing message, field)
CONFLICT_MESSAGES: Mapping[Resource, tuple[str, str]] = {
    Resource.APPLICATION: ("Duplicate application reference, please resubmit", "reference_number"),
    Resource.STUDENT: ("This roll number already exists", "roll_number"),
    Resource.SCHOOL_CLASS: (
        "Class with this name and section already exists for this academic year",
        "name",
    ),
    Resource.RESULT: (
        "A result for this student, subject and exam already exists",
        "roll_number",
    ),
    Resource.CONTENT_SECTION: ("This content section already exists", "section"),
}

# Never accepted from callers, on any resource
PROTECTED_FIELDS = frozenset({"id", "tenant_id", "created_at", "updated_at"})

# Set by the gateway itself; ignored on create, rejected on update
SERVER_MANAGED_FIELDS: Mapping[Resource, frozenset[str]] = {
    Resource.APPLICATION: frozenset({"status", "reviewed_by", "reviewed_at", "reference_number"}),
    Resource.RESULT: frozenset({"grade"}),
}

IMMUTABLE_FIELDS: Mapping[Resource, frozenset[str]] = {
    Resource.CONTENT_SECTION: frozenset({"section"}),
    Resource.STUDENT: frozenset({"roll_number"}),
}


def generate_reference_number() -> str:
    """Admission reference like ADM-20250101120000-3F9A"""
    return f"ADM-{utc_now():%Y%m%d%H%M%S}-{secrets.token_hex(2).upper()}"


class LoggingTransitionListener:
    """Default side effect: record each application decision in the log"""

    async def on_transition(
        self,
        *,
        tenant: SchoolEntity,
        application_id: str,
        previous: ApplicationStatus,
        current: ApplicationStatus,
        actor: Principal,
    ) -> None:
        logger.info(
            "Application %s in school %s moved %s -> %s by %s",
            application_id,
            tenant.id,
            previous.value,
            current.value,
            actor.id,
        )


class ScopedDataGateway:
    """
    Tenant-scoped access to school-owned entities for one acting principal.

    Operations:
        read / list / write / write_many / delete  - generic entity access
        transition                                  - application status compare-and-set
        update_settings                             - school name and settings

    All methods raise the domain taxonomy only: UnauthorizedException,
    ForbiddenException, NotFoundException, ConflictException,
    ValidationException, BackendUnavailableException (incl. timeouts).
    """

    def __init__(
        self,
        db: AsyncSession,
        principal: IdentityState,
        policy: AuthorizationService | None = None,
        *,
        cache_service: CacheService | None = None,
        listeners: Sequence[TransitionListener] = (),
        timeout: float | None = None,
    ):
        self.db = db
        self.principal = principal
        self.policy = policy or AuthorizationService()
        self.cache = cache_service
        self.listeners = list(listeners)
        self.timeout = timeout if timeout is not None else get_settings().gateway_timeout_seconds

    # ------------------------------------------------------------------ reads

    async def read(
        self, tenant: SchoolEntity, resource: Resource, filters: Mapping[str, Any]
    ) -> Any:
        """Return the single entity matching filters inside tenant, or raise NotFoundException"""
        self.policy.enforce(self.principal, tenant, resource, Action.READ)
        model = _model_for(resource)
        query = select(model).where(*self._conditions(model, tenant, filters)).limit(1)

        result = await self._call(f"read {resource.value}", self.db.execute(query))
        obj = result.scalar_one_or_none()
        if obj is None:
            raise NotFoundException(resource.value)
        return obj

    async def get(self, tenant: SchoolEntity, resource: Resource, entity_id: str) -> Any:
        return await self.read(tenant, resource, {"id": entity_id})

    async def list(
        self,
        tenant: SchoolEntity,
        resource: Resource,
        filters: Mapping[str, Any] | None = None,
        *,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Any]:
        """All entities of one school matching filters, newest first"""
        self.policy.enforce(self.principal, tenant, resource, Action.READ)
        model: Any = _model_for(resource)
        query = (
            select(model)
            .where(*self._conditions(model, tenant, filters or {}))
            .order_by(model.created_at.desc())
            .offset(skip)
            .limit(limit)
        )

        result = await self._call(f"list {resource.value}", self.db.execute(query))
        return list(result.scalars().all())

    # ----------------------------------------------------------------- writes

    async def write(
        self, tenant: SchoolEntity, resource: Resource, payload: Mapping[str, Any]
    ) -> Any:
        """
        Create (no "id" in payload) or update (payload["id"]) one entity.

        Caller-supplied tenant_id is ignored; the entity is always bound to tenant.
        """
        if payload.get("id"):
            values = dict(payload)
            entity_id = str(values.pop("id"))
            return await self._update(tenant, resource, entity_id, values)
        return await self._create(tenant, resource, payload)

    async def write_many(
        self, tenant: SchoolEntity, resource: Resource, payloads: Iterable[Mapping[str, Any]]
    ) -> list[Any]:
        """Create several entities all-or-nothing (e.g. a batch of results)"""
        decision = self.policy.enforce(self.principal, tenant, resource, Action.CREATE)
        model = _model_for(resource)
        objs = [
            model(**self._prepare_create(resource, model, tenant, payload, decision))
            for payload in payloads
        ]
        if not objs:
            return []

        async def insert_all() -> None:
            async with self.db.begin_nested():
                self.db.add_all(objs)
                await self.db.flush()

        try:
            await self._call(f"bulk create {resource.value}", insert_all())
        except IntegrityError as e:
            raise _integrity_error(resource, e) from e
        return objs

    async def delete(self, tenant: SchoolEntity, resource: Resource, entity_id: str) -> None:
        self.policy.enforce(self.principal, tenant, resource, Action.DELETE)
        obj = await self._load_owned(tenant, resource, entity_id)

        async def remove() -> None:
            async with self.db.begin_nested():
                await self.db.delete(obj)
                await self.db.flush()

        await self._call(f"delete {resource.value}", remove())
        logger.info("Deleted %s %s in school %s", resource.value, entity_id, tenant.id)

    async def _create(
        self, tenant: SchoolEntity, resource: Resource, payload: Mapping[str, Any]
    ) -> Any:
        decision = self.policy.enforce(self.principal, tenant, resource, Action.CREATE)
        model = _model_for(resource)
        obj = model(**self._prepare_create(resource, model, tenant, payload, decision))

        async def insert() -> Any:
            async with self.db.begin_nested():
                self.db.add(obj)
                await self.db.flush()
            await self.db.refresh(obj)
            return obj

        try:
            return await self._call(f"create {resource.value}", insert())
        except IntegrityError as e:
            raise _integrity_error(resource, e) from e

    async def _update(
        self, tenant: SchoolEntity, resource: Resource, entity_id: str, payload: Mapping[str, Any]
    ) -> Any:
        self.policy.enforce(self.principal, tenant, resource, Action.UPDATE)
        model = _model_for(resource)
        values = self._clean(model, payload)

        rejected = (SERVER_MANAGED_FIELDS.get(resource, frozenset())
                    | IMMUTABLE_FIELDS.get(resource, frozenset())) & values.keys()
        if rejected:
            field = sorted(rejected)[0]
            raise ValidationException(f"Field '{field}' cannot be changed here", field)

        obj = await self._load_owned(tenant, resource, entity_id)
        if resource is Resource.RESULT and {"marks", "total_marks"} & values.keys():
            values["grade"] = _grade(
                values.get("marks", obj.marks), values.get("total_marks", obj.total_marks)
            )

        async def apply() -> Any:
            async with self.db.begin_nested():
                for key, value in values.items():
                    setattr(obj, key, value)
                await self.db.flush()
            await self.db.refresh(obj)
            return obj

        try:
            return await self._call(f"update {resource.value}", apply())
        except IntegrityError as e:
            raise _integrity_error(resource, e) from e

    # ------------------------------------------------------ status transition

    async def transition(
        self,
        tenant: SchoolEntity,
        application_id: str,
        expected: ApplicationStatus,
        target: ApplicationStatus,
    ) -> Application:
        """
        Move an application from expected to target status, compare-and-set.

        The update only applies while the stored status still equals expected,
        so two reviewers racing on the same application produce exactly one
        transition; the loser gets ConflictException and listeners fire once.
        """
        self.policy.enforce(self.principal, tenant, Resource.APPLICATION, Action.UPDATE)
        if not expected.can_transition_to(target):
            raise ValidationException(
                f"Cannot move an application from {expected.value} to {target.value}", "status"
            )
        assert isinstance(self.principal, Principal)

        stmt = (
            update(Application)
            .where(
                Application.id == application_id,
                Application.tenant_id == tenant.id,
                Application.status == expected.value,
            )
            .values(status=target.value, reviewed_by=self.principal.id, reviewed_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        result = await self._call("transition application", self.db.execute(stmt))

        if result.rowcount != 1:
            current = await self._call(
                "load application",
                self.db.get(Application, application_id, populate_existing=True),
            )
            if current is None:
                raise NotFoundException(Resource.APPLICATION.value)
            if current.tenant_id != tenant.id:
                self._log_cross_tenant(tenant, Resource.APPLICATION, application_id)
                raise ForbiddenException("wrong_tenant", Resource.APPLICATION.value, "update")
            raise ConflictException(
                "This application was already processed by someone else", "status"
            )

        application = await self._call(
            "load application",
            self.db.get(Application, application_id, populate_existing=True),
        )
        await self._notify(tenant, application_id, expected, target)
        return application

    async def _notify(
        self,
        tenant: SchoolEntity,
        application_id: str,
        previous: ApplicationStatus,
        current: ApplicationStatus,
    ) -> None:
        assert isinstance(self.principal, Principal)
        for listener in self.listeners:
            try:
                await listener.on_transition(
                    tenant=tenant,
                    application_id=application_id,
                    previous=previous,
                    current=current,
                    actor=self.principal,
                )
            except Exception as e:
                # Log but don't undo the transition if a side effect fails
                logger.warning(
                    "Transition listener %s failed for application %s: %s",
                    type(listener).__name__,
                    application_id,
                    e,
                )

    # --------------------------------------------------------------- settings

    async def read_settings(self, tenant: SchoolEntity) -> SchoolEntity:
        self.policy.enforce(self.principal, tenant, Resource.SETTINGS, Action.READ)
        return tenant

    async def update_settings(
        self,
        tenant: SchoolEntity,
        *,
        name: str | None = None,
        settings: Mapping[str, Any] | None = None,
    ) -> SchoolEntity:
        """
        Update the school's display name and/or settings sub-keys.

        Top-level settings keys given here replace the stored ones; keys not
        given are kept. The slug cannot be changed.
        """
        self.policy.enforce(self.principal, tenant, Resource.SETTINGS, Action.UPDATE)
        repo = SchoolRepository(self.db, cache_service=self.cache)

        school = await self._call("load school", repo.get_by_id(tenant.id))
        if school is None:
            raise NotFoundException("school")

        merged = None
        if settings is not None:
            merged = {**(school.settings or {}), **settings}

        updated: School = await self._call(
            "update school", repo.update_profile(school, name=name, settings=merged)
        )
        return to_entity(updated)

    # ---------------------------------------------------------------- helpers

    async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
        """
        Await a backend call under the gateway's time budget.

        IntegrityError passes through for the caller to turn into a Conflict;
        every other driver error becomes BackendUnavailableException.
        """
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error("Backend call timed out after %ss: %s", self.timeout, operation)
            raise BackendTimeoutException(operation, self.timeout) from None
        except IntegrityError:
            raise
        except DBAPIError as e:
            logger.error("Backend failure during %s: %s", operation, e)
            raise BackendUnavailableException() from e

    async def _load_owned(self, tenant: SchoolEntity, resource: Resource, entity_id: str) -> Any:
        """
        Load by primary key only, then verify the stored tenant_id.

        Guessing an id from another school yields ForbiddenException and
        leaves the row untouched.
        """
        model = _model_for(resource)
        obj = await self._call(f"load {resource.value}", self.db.get(model, entity_id))
        if obj is None:
            raise NotFoundException(resource.value)
        if obj.tenant_id != tenant.id:
            self._log_cross_tenant(tenant, resource, entity_id)
            raise ForbiddenException("wrong_tenant", resource.value, "write")
        return obj

    def _log_cross_tenant(self, tenant: SchoolEntity, resource: Resource, entity_id: str) -> None:
        actor = getattr(self.principal, "id", "anonymous")
        logger.warning(
            "Cross-tenant access blocked: principal=%s tenant=%s resource=%s id=%s reason=wrong_tenant",
            actor,
            tenant.id,
            resource.value,
            entity_id,
        )

    def _conditions(self, model: Any, tenant: SchoolEntity, filters: Mapping[str, Any]) -> list[Any]:
        columns = model.__table__.columns
        conditions = [model.tenant_id == tenant.id]
        for key, value in filters.items():
            if key == "tenant_id":
                continue
            if key not in columns:
                raise ValidationException(f"Unknown filter field '{key}'", key)
            conditions.append(getattr(model, key) == value)
        return conditions

    @staticmethod
    def _clean(model: Any, payload: Mapping[str, Any], *, creating: bool = False) -> dict[str, Any]:
        """
        Drop protected fields and reject anything that is not a column.

        None is refused for NOT NULL columns; on create it falls back to the
        column default where there is one.
        """
        columns = model.__table__.columns
        values: dict[str, Any] = {}
        for key, value in payload.items():
            if key in PROTECTED_FIELDS:
                continue
            if key not in columns:
                raise ValidationException(f"Unknown field '{key}'", key)
            column = columns[key]
            if value is None and not column.nullable:
                if creating and (column.default is not None or column.server_default is not None):
                    continue
                raise ValidationException(f"Field '{key}' cannot be empty", key)
            values[key] = value
        return values

    def _prepare_create(
        self,
        resource: Resource,
        model: Any,
        tenant: SchoolEntity,
        payload: Mapping[str, Any],
        decision: Allow,
    ) -> dict[str, Any]:
        values = self._clean(model, payload, creating=True)
        for key in SERVER_MANAGED_FIELDS.get(resource, frozenset()):
            values.pop(key, None)
        if "roll_number" in values:
            values["roll_number"] = _roll_number(values["roll_number"])

        if resource is Resource.APPLICATION:
            values["reference_number"] = generate_reference_number()
            values["status"] = ApplicationStatus.PENDING.value
        elif resource is Resource.RESULT:
            values["grade"] = _grade(values.get("marks"), values.get("total_marks"))

        values.update(decision.forced)
        values["tenant_id"] = tenant.id
        return values


def _model_for(resource: Resource) -> Any:
    try:
        return ENTITY_MODELS[resource]
    except KeyError:
        raise ValueError(f"{resource.value} is not a school-owned entity") from None


def _integrity_error(resource: Resource, error: IntegrityError) -> SchoolSiteException:
    """Unique violations are Conflicts; NOT NULL, foreign key and check failures are bad input"""
    if "unique" in str(error.orig).lower():
        message, field = CONFLICT_MESSAGES[resource]
        return ConflictException(message, field)
    logger.warning("Rejected %s write: %s", resource.value, error.orig)
    return ValidationException(f"Invalid {resource.value} data")


def _grade(marks: Any, total_marks: Any) -> str:
    if marks is None or total_marks is None:
        raise ValidationException("marks and total_marks are required", "marks")
    try:
        return calculate_grade(float(marks), float(total_marks))
    except ValueError as e:
        raise ValidationException(str(e), "marks") from e


def _roll_number(raw: Any) -> str:
    try:
        return RollNumber(str(raw).strip()).value
    except ValueError as e:
        raise ValidationException(str(e), "roll_number") from e
