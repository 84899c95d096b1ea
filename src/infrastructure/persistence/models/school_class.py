from typing import Any

from sqlalchemy import JSON, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.domain.enums import ClassStatus
from src.infrastructure.persistence.database import Base
from src.infrastructure.persistence.models.mixins import (MultiTenantModel,
                                                          enum_check)


class SchoolClass(MultiTenantModel, Base):
    """A class/section taught in one academic year"""

    __tablename__ = "school_class"

    name: Mapped[str] = mapped_column(String, nullable=False)
    section: Mapped[str] = mapped_column(String, nullable=False, default="A")
    academic_year: Mapped[str] = mapped_column(String, nullable=False)
    class_teacher_id: Mapped[str | None] = mapped_column(String)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=40)
    room_number: Mapped[str | None] = mapped_column(String)
    schedule: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    status: Mapped[str] = mapped_column(String, nullable=False, default=ClassStatus.ACTIVE.value)

    __table_args__ = (
        UniqueConstraint(
            "tenant_id", "name", "section", "academic_year", name="uq_class_tenant_name_year"
        ),
        enum_check("status", ClassStatus.values(), "school_class_status_check"),
    )
