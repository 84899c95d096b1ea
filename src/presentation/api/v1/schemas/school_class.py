from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.domain.enums import ClassStatus


class ClassCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    name: str = Field(..., min_length=1, max_length=50, description="e.g. 'Class 6'")
    section: str = Field("A", min_length=1, max_length=10)
    academic_year: str = Field(..., min_length=4, max_length=20, description="e.g. '2025'")
    class_teacher_id: str | None = None
    capacity: int = Field(40, ge=1, le=500)
    room_number: str | None = Field(None, max_length=20)
    schedule: dict[str, Any] = Field(default_factory=dict)
    status: ClassStatus = ClassStatus.ACTIVE


class ClassUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    name: str | None = Field(None, min_length=1, max_length=50)
    section: str | None = Field(None, min_length=1, max_length=10)
    academic_year: str | None = Field(None, min_length=4, max_length=20)
    class_teacher_id: str | None = None
    capacity: int | None = Field(None, ge=1, le=500)
    room_number: str | None = None
    schedule: dict[str, Any] | None = None
    status: ClassStatus | None = None


class ClassResponse(BaseModel):
    id: str
    tenant_id: str
    name: str
    section: str
    academic_year: str
    class_teacher_id: str | None
    capacity: int
    room_number: str | None
    schedule: dict[str, Any]
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
