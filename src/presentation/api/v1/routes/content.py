from fastapi import APIRouter

from src.application.services.authorization_service import Resource
from src.domain.enums import ContentSectionType
from src.domain.exceptions import NotFoundException
from src.presentation.api.dependencies import Gateway, Tenant
from src.presentation.api.v1.schemas.content import (ContentSectionResponse,
                                                     ContentSectionUpdate)

router = APIRouter()


@router.get("", response_model=list[ContentSectionResponse])
async def list_sections(tenant: Tenant, gateway: Gateway):
    """All landing page sections of a school (public)"""
    return await gateway.list(tenant, Resource.CONTENT_SECTION)


@router.get("/{section}", response_model=ContentSectionResponse)
async def get_section(section: ContentSectionType, tenant: Tenant, gateway: Gateway):
    return await gateway.read(tenant, Resource.CONTENT_SECTION, {"section": section.value})


@router.put("/{section}", response_model=ContentSectionResponse)
async def save_section(
    section: ContentSectionType, data: ContentSectionUpdate, tenant: Tenant, gateway: Gateway
):
    """Replace a section's content, creating the section if it was removed"""
    try:
        existing = await gateway.read(tenant, Resource.CONTENT_SECTION, {"section": section.value})
    except NotFoundException:
        return await gateway.write(
            tenant, Resource.CONTENT_SECTION, {"section": section.value, "content": data.content}
        )
    return await gateway.write(
        tenant, Resource.CONTENT_SECTION, {"id": existing.id, "content": data.content}
    )
