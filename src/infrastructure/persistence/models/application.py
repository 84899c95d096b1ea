from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.domain.enums import ApplicationStatus
from src.infrastructure.persistence.database import Base
from src.infrastructure.persistence.models.mixins import (MultiTenantModel,
                                                          enum_check)


class Application(MultiTenantModel, Base):
    """
    Admission application submitted through a school's public site.

    status only moves forward (see ApplicationStatus) and only through a
    conditional update on the expected prior status.
    """

    __tablename__ = "application"

    reference_number: Mapped[str] = mapped_column(String(64), nullable=False)
    application_type: Mapped[str] = mapped_column(String, nullable=False, default="admission")
    class_applied: Mapped[str] = mapped_column(String, nullable=False)
    message: Mapped[str | None] = mapped_column(Text)

    student_info: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    parent_info: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    guardian_info: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    payment_reference: Mapped[str | None] = mapped_column(String)

    status: Mapped[str] = mapped_column(
        String, nullable=False, default=ApplicationStatus.PENDING.value
    )
    reviewed_by: Mapped[str | None] = mapped_column(String)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        UniqueConstraint("tenant_id", "reference_number", name="uq_application_tenant_reference"),
        Index("ix_application_tenant_status", "tenant_id", "status"),
        enum_check("status", ApplicationStatus.values(), "application_status_check"),
    )
