from fastapi import APIRouter, status

from src.application.services.authorization_service import Resource
from src.presentation.api.dependencies import Gateway, Tenant
from src.presentation.api.v1.schemas.result import (ResultBulkCreate,
                                                    ResultCreate,
                                                    ResultResponse,
                                                    ResultUpdate)

router = APIRouter()


@router.post("", response_model=ResultResponse, status_code=status.HTTP_201_CREATED)
async def create_result(data: ResultCreate, tenant: Tenant, gateway: Gateway):
    """The grade is calculated from marks and total_marks"""
    return await gateway.write(tenant, Resource.RESULT, data.model_dump())


@router.post("/bulk", response_model=list[ResultResponse], status_code=status.HTTP_201_CREATED)
async def create_results_bulk(data: ResultBulkCreate, tenant: Tenant, gateway: Gateway):
    """Save a whole mark sheet. If any row conflicts, none are saved."""
    return await gateway.write_many(
        tenant, Resource.RESULT, [result.model_dump() for result in data.results]
    )


@router.get("", response_model=list[ResultResponse])
async def list_results(
    tenant: Tenant,
    gateway: Gateway,
    roll_number: str | None = None,
    class_name: str | None = None,
    exam_type: str | None = None,
    skip: int = 0,
    limit: int = 100,
):
    filters = {
        key: value
        for key, value in {
            "roll_number": roll_number,
            "class_name": class_name,
            "exam_type": exam_type,
        }.items()
        if value is not None
    }
    return await gateway.list(tenant, Resource.RESULT, filters, skip=skip, limit=limit)


@router.get("/{result_id}", response_model=ResultResponse)
async def get_result(result_id: str, tenant: Tenant, gateway: Gateway):
    return await gateway.get(tenant, Resource.RESULT, result_id)


@router.put("/{result_id}", response_model=ResultResponse)
async def update_result(result_id: str, data: ResultUpdate, tenant: Tenant, gateway: Gateway):
    payload = data.model_dump(exclude_unset=True)
    return await gateway.write(tenant, Resource.RESULT, {**payload, "id": result_id})


@router.delete("/{result_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_result(result_id: str, tenant: Tenant, gateway: Gateway):
    await gateway.delete(tenant, Resource.RESULT, result_id)
