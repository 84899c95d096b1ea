import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from src.application.services.teacher_service import (TeacherAccountService,
                                                       TeacherProfile)
from src.domain.entities import SchoolEntity
from src.domain.exceptions import ForbiddenException
from src.presentation.api.dependencies import (CurrentIdentity,
                                               get_principal_tenant,
                                               get_teacher_service)
from src.presentation.api.v1.schemas.teacher import (TeacherCreate,
                                                     TeacherResponse)

router = APIRouter()
logger = logging.getLogger(__name__)

OwnSchool = Annotated[SchoolEntity, Depends(get_principal_tenant)]
Teachers = Annotated[TeacherAccountService, Depends(get_teacher_service)]


@router.get("")
async def list_teachers(principal: CurrentIdentity, school: OwnSchool, service: Teachers):
    teachers = await service.list_teachers(principal, school)
    return {
        "success": True,
        "teachers": [TeacherResponse.model_validate(t).model_dump(mode="json") for t in teachers],
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_teacher(
    data: TeacherCreate, principal: CurrentIdentity, school: OwnSchool, service: Teachers
):
    """
    Create a teacher login for the caller's school (owner only).

    school_id, when sent, must be the caller's own school.
    """
    if data.school_id is not None and data.school_id != school.id:
        raise ForbiddenException("wrong_tenant", "teacher_account", "create")

    teacher = await service.create_teacher(
        principal,
        school,
        TeacherProfile(
            email=data.email,
            password=data.password,
            full_name=data.full_name,
            phone=data.phone,
            subject=data.subject,
            qualification=data.qualification,
            experience=data.experience,
        ),
    )
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={
            "success": True,
            "user": TeacherResponse.model_validate(teacher).model_dump(mode="json"),
        },
    )


@router.delete("")
async def delete_teacher(
    principal: CurrentIdentity,
    school: OwnSchool,
    service: Teachers,
    teacher_id: Annotated[str, Query(alias="id", min_length=1)],
):
    """Remove a teacher's login and school membership together"""
    await service.delete_teacher(principal, school, teacher_id)
    return {"success": True}
