from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class TeacherCreate(BaseModel):
    """
    Teacher account form.

    school_id is accepted for compatibility with the dashboard form but must
    match the caller's own school.
    """

    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=1, max_length=255)
    phone: str | None = Field(None, max_length=50)
    subject: str | None = Field(None, max_length=100)
    qualification: str | None = Field(None, max_length=255)
    experience: str | None = Field(None, max_length=100)
    school_id: str | None = None


class TeacherResponse(BaseModel):
    id: str
    tenant_id: str
    email: str
    full_name: str
    role: str
    phone: str | None
    subject: str | None
    qualification: str | None
    experience: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
