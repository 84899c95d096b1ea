import logging

from typing import Annotated

from fastapi import APIRouter, Query, Request, status

from src.application.services.authorization_service import Resource
from src.domain.enums import ApplicationStatus
from src.domain.exceptions import TenantNotFoundException
from src.infrastructure.config.settings import get_settings
from src.presentation.api.dependencies import Gateway, Tenant
from src.presentation.api.v1.schemas.application import (ApplicationResponse,
                                                         ApplicationSubmit,
                                                         ApplicationSubmitted,
                                                         ApplicationTransition,
                                                         ApplicationUpdate)
from src.presentation.middleware.rate_limit import limiter

router = APIRouter()
settings = get_settings()
logger = logging.getLogger(__name__)


@router.post("", response_model=ApplicationSubmitted, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.application_rate_limit)
async def submit_application(
    request: Request,  # Required by slowapi for rate limiting (extracts remote address)
    data: ApplicationSubmit,
    tenant: Tenant,
    gateway: Gateway,
):
    """
    Public admission form.

    No session needed. The application always starts as pending whatever the
    form sends. Schools that are not taking applications answer 404.
    """
    if not tenant.accepts_applications():
        raise TenantNotFoundException(tenant.slug)

    application = await gateway.write(tenant, Resource.APPLICATION, data.to_payload())
    logger.info("Application %s submitted to school %s", application.reference_number, tenant.id)
    return ApplicationSubmitted(
        id=application.id,
        reference_number=application.reference_number,
        status=application.status,
    )


@router.get("", response_model=list[ApplicationResponse])
async def list_applications(
    tenant: Tenant,
    gateway: Gateway,
    status_filter: Annotated[ApplicationStatus | None, Query(alias="status")] = None,
    skip: int = 0,
    limit: int = 100,
):
    filters = {"status": status_filter.value} if status_filter else {}
    return await gateway.list(tenant, Resource.APPLICATION, filters, skip=skip, limit=limit)


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(application_id: str, tenant: Tenant, gateway: Gateway):
    return await gateway.get(tenant, Resource.APPLICATION, application_id)


@router.put("/{application_id}", response_model=ApplicationResponse)
async def update_application(
    application_id: str, data: ApplicationUpdate, tenant: Tenant, gateway: Gateway
):
    payload = data.model_dump(exclude_unset=True)
    return await gateway.write(tenant, Resource.APPLICATION, {**payload, "id": application_id})


@router.post("/{application_id}/transition", response_model=ApplicationResponse)
async def transition_application(
    application_id: str, data: ApplicationTransition, tenant: Tenant, gateway: Gateway
):
    """
    Move an application between statuses.

    Applies only while the stored status still equals `expected`; if another
    reviewer got there first the answer is 409 and nothing changes.
    """
    return await gateway.transition(tenant, application_id, data.expected, data.target)


@router.delete("/{application_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_application(application_id: str, tenant: Tenant, gateway: Gateway):
    await gateway.delete(tenant, Resource.APPLICATION, application_id)
