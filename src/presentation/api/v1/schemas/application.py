"""Admission application schemas, assembled step by step on the public form"""
from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.domain.enums import ApplicationStatus

GROUP_REQUIRED_CLASSES = frozenset({"Class 9"})


class StudentInfo(BaseModel):
    """Step 1: the applicant"""

    full_name: str = Field(..., min_length=1, max_length=255)
    date_of_birth: date
    gender: Literal["male", "female", "other"]
    class_applied: str = Field(..., min_length=1, max_length=50, alias="class")
    group: Literal["Science", "Commerce", "Arts"] | None = None
    image: str | None = Field(None, description="Photo URL")

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def require_group(self) -> "StudentInfo":
        if self.class_applied in GROUP_REQUIRED_CLASSES and not self.group:
            raise ValueError(f"Group selection is required for {self.class_applied}")
        return self


class ParentInfo(BaseModel):
    """Step 2: both parents"""

    father_name: str = Field(..., min_length=1, max_length=255)
    father_phone: str = Field(..., min_length=1, max_length=50)
    father_occupation: str = Field(..., min_length=1, max_length=255)
    mother_name: str = Field(..., min_length=1, max_length=255)
    mother_phone: str = Field(..., min_length=1, max_length=50)
    mother_occupation: str = Field(..., min_length=1, max_length=255)


class GuardianInfo(BaseModel):
    """Step 3 (optional): a guardian other than the parents. All fields or none."""

    guardian_full_name: str = Field(..., min_length=1, max_length=255)
    guardian_phone: str = Field(..., min_length=1, max_length=50)
    guardian_relation: str = Field(..., min_length=1, max_length=100)


class ApplicationSubmit(BaseModel):
    """Complete public admission submission"""

    student_info: StudentInfo
    parent_info: ParentInfo
    guardian_info: GuardianInfo | None = None
    message: str | None = Field(None, max_length=2000)
    payment_reference: str | None = Field(None, max_length=100)

    @field_validator("guardian_info", mode="before")
    @classmethod
    def empty_guardian_is_none(cls, value: Any) -> Any:
        # The form sends {} when "I have a guardian" is unchecked
        if isinstance(value, dict) and not any(value.values()):
            return None
        return value

    def to_payload(self) -> dict[str, Any]:
        student = self.student_info
        return {
            "application_type": "admission",
            "class_applied": student.class_applied,
            "message": self.message or f"Admission Application for {student.class_applied}",
            "student_info": student.model_dump(mode="json", by_alias=True),
            "parent_info": self.parent_info.model_dump(mode="json"),
            "guardian_info": self.guardian_info.model_dump(mode="json") if self.guardian_info else None,
            "payment_reference": self.payment_reference,
        }


class ApplicationUpdate(BaseModel):
    """Dashboard edits to an application. Status changes go through /transition."""

    class_applied: str | None = Field(None, min_length=1, max_length=50)
    message: str | None = Field(None, max_length=2000)
    student_info: dict[str, Any] | None = None
    parent_info: dict[str, Any] | None = None
    guardian_info: dict[str, Any] | None = None
    payment_reference: str | None = Field(None, max_length=100)


class ApplicationTransition(BaseModel):
    """Compare-and-set status change: applies only while status == expected"""

    expected: ApplicationStatus
    target: ApplicationStatus


class ApplicationSubmitted(BaseModel):
    """What an anonymous applicant gets back"""

    id: str
    reference_number: str
    status: str


class ApplicationResponse(BaseModel):
    id: str
    tenant_id: str
    reference_number: str
    application_type: str
    class_applied: str
    message: str | None
    student_info: dict[str, Any]
    parent_info: dict[str, Any]
    guardian_info: dict[str, Any] | None
    payment_reference: str | None
    status: str
    reviewed_by: str | None
    reviewed_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
