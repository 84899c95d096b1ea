from fastapi import APIRouter, status

from src.application.services.authorization_service import Resource
from src.presentation.api.dependencies import Gateway, Tenant
from src.presentation.api.v1.schemas.student import (StudentCreate,
                                                     StudentResponse,
                                                     StudentUpdate)

router = APIRouter()


@router.post("", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
async def create_student(data: StudentCreate, tenant: Tenant, gateway: Gateway):
    """Roll numbers must be unique within the school (409 otherwise)"""
    return await gateway.write(tenant, Resource.STUDENT, data.model_dump())


@router.get("", response_model=list[StudentResponse])
async def list_students(
    tenant: Tenant,
    gateway: Gateway,
    class_name: str | None = None,
    section: str | None = None,
    skip: int = 0,
    limit: int = 100,
):
    filters = {
        key: value
        for key, value in {"class_name": class_name, "section": section}.items()
        if value is not None
    }
    return await gateway.list(tenant, Resource.STUDENT, filters, skip=skip, limit=limit)


@router.get("/{student_id}", response_model=StudentResponse)
async def get_student(student_id: str, tenant: Tenant, gateway: Gateway):
    return await gateway.get(tenant, Resource.STUDENT, student_id)


@router.put("/{student_id}", response_model=StudentResponse)
async def update_student(student_id: str, data: StudentUpdate, tenant: Tenant, gateway: Gateway):
    payload = data.model_dump(exclude_unset=True)
    return await gateway.write(tenant, Resource.STUDENT, {**payload, "id": student_id})


@router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_student(student_id: str, tenant: Tenant, gateway: Gateway):
    await gateway.delete(tenant, Resource.STUDENT, student_id)
