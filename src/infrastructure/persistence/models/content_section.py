from typing import Any

from sqlalchemy import JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.domain.enums import ContentSectionType
from src.infrastructure.persistence.database import Base
from src.infrastructure.persistence.models.mixins import (MultiTenantModel,
                                                          enum_check)


class ContentSection(MultiTenantModel, Base):
    """One section of a school's public landing page (hero, about, gallery, ...)"""

    __tablename__ = "content_section"

    section: Mapped[str] = mapped_column(String, nullable=False)
    content: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    __table_args__ = (
        UniqueConstraint("tenant_id", "section", name="uq_content_tenant_section"),
        enum_check("section", ContentSectionType.values(), "content_section_check"),
    )
