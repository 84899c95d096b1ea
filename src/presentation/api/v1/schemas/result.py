from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ResultCreate(BaseModel):
    """The grade is computed from marks, never supplied"""

    roll_number: str = Field(..., min_length=1, max_length=64)
    class_name: str = Field(..., min_length=1, max_length=50)
    subject: str = Field(..., min_length=1, max_length=100)
    marks: float = Field(..., ge=0)
    total_marks: float = Field(100, gt=0)
    exam_type: str = Field(..., min_length=1, max_length=50, description="e.g. 'Midterm', 'Final'")

    @model_validator(mode="after")
    def marks_within_total(self) -> "ResultCreate":
        if self.marks > self.total_marks:
            raise ValueError("marks cannot exceed total_marks")
        return self


class ResultBulkCreate(BaseModel):
    """Several results saved all-or-nothing"""

    results: list[ResultCreate] = Field(..., min_length=1, max_length=500)


class ResultUpdate(BaseModel):
    marks: float | None = Field(None, ge=0)
    total_marks: float | None = Field(None, gt=0)
    exam_type: str | None = Field(None, min_length=1, max_length=50)
    subject: str | None = Field(None, min_length=1, max_length=100)


class ResultResponse(BaseModel):
    id: str
    tenant_id: str
    roll_number: str
    class_name: str
    subject: str
    marks: float
    total_marks: float
    exam_type: str
    grade: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
