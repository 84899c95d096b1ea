import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from src.application.services.provisioning_service import TenantProvisioningService
from src.domain.entities import Anonymous
from src.domain.exceptions import UnauthorizedException
from src.infrastructure.config.settings import get_settings
from src.presentation.api.dependencies import (CurrentIdentity, Gateway,
                                               Tenant,
                                               get_provisioning_service)
from src.presentation.api.v1.schemas.school import (SchoolCreate,
                                                    SchoolResponse,
                                                    SchoolSettingsUpdate,
                                                    SlugCheckResponse)
from src.presentation.middleware.rate_limit import limiter

router = APIRouter()
settings = get_settings()
logger = logging.getLogger(__name__)

Provisioning = Annotated[TenantProvisioningService, Depends(get_provisioning_service)]


@router.get("/check-slug", response_model=SlugCheckResponse)
async def check_slug(service: Provisioning, slug: Annotated[str, Query(max_length=255)]):
    """
    Advisory availability check for the create-school form.

    Two people may both see "available"; only one of them will get the school.
    """
    result = await service.check_slug_availability(slug)
    return SlugCheckResponse(slug=result.slug, available=result.available, reason=result.reason)


@router.post("", response_model=SchoolResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.signup_rate_limit)
async def create_school(
    request: Request,  # Required by slowapi for rate limiting (extracts remote address)
    data: SchoolCreate,
    principal: CurrentIdentity,
    service: Provisioning,
):
    """
    Create a school owned by the signed-in account.

    Creates the school, the owner's principal record and the default landing
    page content together. A slug that is taken (even if it looked available
    a moment ago) is a 409.
    """
    if isinstance(principal, Anonymous):
        raise UnauthorizedException()

    school = await service.provision_tenant(
        principal,
        data.slug,
        data.school_name,
        {
            "description": data.description,
            "phone": data.phone,
            "email": data.email,
            "address": data.address,
        },
    )
    return SchoolResponse.from_entity(school)


@router.get("/{slug}", response_model=SchoolResponse)
async def get_school(tenant: Tenant):
    """Public profile of a school. Slugs are case-insensitive."""
    return SchoolResponse.from_entity(tenant)


@router.get("/{slug}/settings", response_model=SchoolResponse)
async def get_settings_view(tenant: Tenant, gateway: Gateway):
    return SchoolResponse.from_entity(await gateway.read_settings(tenant))


@router.put("/{slug}/settings", response_model=SchoolResponse)
async def update_settings(tenant: Tenant, data: SchoolSettingsUpdate, gateway: Gateway):
    """Update name and settings blocks (owner/admin). The slug is fixed."""
    school = await gateway.update_settings(
        tenant,
        name=data.name,
        settings=data.settings_changes() or None,
    )
    logger.info("Settings updated for school %s", school.id)
    return SchoolResponse.from_entity(school)
