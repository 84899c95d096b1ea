from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from src.domain.enums import StudentStatus


class StudentBase(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    full_name: str = Field(..., min_length=1, max_length=255)
    class_name: str = Field(..., min_length=1, max_length=50)
    section: str | None = Field(None, max_length=10)
    date_of_birth: date | None = None
    gender: str | None = None
    phone: str | None = None
    address: str | None = None
    photo_url: str | None = None
    father_name: str | None = None
    father_phone: str | None = None
    father_occupation: str | None = None
    mother_name: str | None = None
    mother_phone: str | None = None
    mother_occupation: str | None = None
    guardian_name: str | None = None
    guardian_phone: str | None = None
    guardian_relation: str | None = None
    admission_date: date | None = None
    status: StudentStatus = StudentStatus.ACTIVE


class StudentCreate(StudentBase):
    """Roll numbers are unique within a school, not globally"""

    roll_number: str = Field(..., min_length=1, max_length=64)


class StudentUpdate(BaseModel):
    """Partial update. The roll number is fixed once assigned."""

    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    full_name: str | None = Field(None, min_length=1, max_length=255)
    class_name: str | None = Field(None, min_length=1, max_length=50)
    section: str | None = None
    date_of_birth: date | None = None
    gender: str | None = None
    phone: str | None = None
    address: str | None = None
    photo_url: str | None = None
    father_name: str | None = None
    father_phone: str | None = None
    father_occupation: str | None = None
    mother_name: str | None = None
    mother_phone: str | None = None
    mother_occupation: str | None = None
    guardian_name: str | None = None
    guardian_phone: str | None = None
    guardian_relation: str | None = None
    admission_date: date | None = None
    status: StudentStatus | None = None


class StudentResponse(StudentBase):
    id: str
    tenant_id: str
    roll_number: str
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
