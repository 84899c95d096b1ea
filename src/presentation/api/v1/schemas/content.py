from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.domain.enums import ContentSectionType


class ContentSectionUpdate(BaseModel):
    """Replaces the whole content document of one landing page section"""

    content: dict[str, Any] = Field(..., description="Section-specific JSON document")


class ContentSectionResponse(BaseModel):
    id: str
    tenant_id: str
    section: ContentSectionType
    content: dict[str, Any]
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
