from typing import Any

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from src.domain.enums import TenantStatus
from src.infrastructure.persistence.database import Base
from src.infrastructure.persistence.models.mixins import (CuidMixin,
                                                          TimestampMixin,
                                                          enum_check)


class School(CuidMixin, TimestampMixin, Base):
    """
    Root tenant entity for the multi-school architecture.

    Note: School does not have a tenant_id since it is the root of the hierarchy.
    The unique constraint on slug is what makes concurrent sign-ups with the same
    URL safe; the availability check before it is advisory only.
    """

    __tablename__ = "school"

    slug: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    owner_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=TenantStatus.PROVISIONING.value, index=True
    )
    settings: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    __table_args__ = (enum_check("status", TenantStatus.values(), "school_status_check"),)
