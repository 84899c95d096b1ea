from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class SchoolCreate(BaseModel):
    """Schema for the create-school form"""

    school_name: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=64, description="Public URL segment, e.g. 'green-valley-school'")
    email: EmailStr = Field(..., description="Public contact email")
    phone: str | None = Field(None, max_length=50)
    address: str | None = Field(None, max_length=500)
    description: str | None = Field(None, max_length=2000)


class SlugCheckResponse(BaseModel):
    slug: str
    available: bool
    reason: str | None = None


class SchoolResponse(BaseModel):
    """Public profile of a school"""

    id: str
    slug: str
    name: str
    status: str
    settings: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_entity(cls, school) -> "SchoolResponse":
        return cls(
            id=school.id,
            slug=school.slug,
            name=school.name,
            status=school.status.value,
            settings=school.settings,
        )


class SchoolSettingsUpdate(BaseModel):
    """
    Schema for the settings page.

    Each given block replaces the stored block of the same name; omitted
    blocks are kept. The slug cannot be changed.
    """

    name: str | None = Field(None, min_length=1, max_length=255)
    theme: str | None = Field(None, max_length=50)
    description: str | None = Field(None, max_length=2000)
    contact: dict[str, Any] | None = None
    features: dict[str, bool] | None = None
    notifications: dict[str, bool] | None = None
    appearance: dict[str, Any] | None = None

    def settings_changes(self) -> dict[str, Any]:
        return self.model_dump(exclude={"name"}, exclude_none=True)
