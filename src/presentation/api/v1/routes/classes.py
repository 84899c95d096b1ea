from fastapi import APIRouter, status

from src.application.services.authorization_service import Resource
from src.presentation.api.dependencies import Gateway, Tenant
from src.presentation.api.v1.schemas.school_class import (ClassCreate,
                                                          ClassResponse,
                                                          ClassUpdate)

router = APIRouter()


@router.post("", response_model=ClassResponse, status_code=status.HTTP_201_CREATED)
async def create_class(data: ClassCreate, tenant: Tenant, gateway: Gateway):
    return await gateway.write(tenant, Resource.SCHOOL_CLASS, data.model_dump())


@router.get("", response_model=list[ClassResponse])
async def list_classes(
    tenant: Tenant,
    gateway: Gateway,
    academic_year: str | None = None,
    skip: int = 0,
    limit: int = 100,
):
    filters = {"academic_year": academic_year} if academic_year else {}
    return await gateway.list(tenant, Resource.SCHOOL_CLASS, filters, skip=skip, limit=limit)


@router.get("/{class_id}", response_model=ClassResponse)
async def get_class(class_id: str, tenant: Tenant, gateway: Gateway):
    return await gateway.get(tenant, Resource.SCHOOL_CLASS, class_id)


@router.put("/{class_id}", response_model=ClassResponse)
async def update_class(class_id: str, data: ClassUpdate, tenant: Tenant, gateway: Gateway):
    payload = data.model_dump(exclude_unset=True)
    return await gateway.write(tenant, Resource.SCHOOL_CLASS, {**payload, "id": class_id})


@router.delete("/{class_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_class(class_id: str, tenant: Tenant, gateway: Gateway):
    await gateway.delete(tenant, Resource.SCHOOL_CLASS, class_id)
