from datetime import date

from sqlalchemy import Date, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.domain.enums import StudentStatus
from src.infrastructure.persistence.database import Base
from src.infrastructure.persistence.models.mixins import (MultiTenantModel,
                                                          enum_check)


class Student(MultiTenantModel, Base):
    """
    Enrolled student.

    Roll numbers are unique per school, not globally: two schools may each
    have a student "2024001".
    """

    __tablename__ = "student"

    roll_number: Mapped[str] = mapped_column(String(64), nullable=False)
    full_name: Mapped[str] = mapped_column(String, nullable=False)
    class_name: Mapped[str] = mapped_column(String, nullable=False, index=True)
    section: Mapped[str | None] = mapped_column(String)
    date_of_birth: Mapped[date | None] = mapped_column(Date)
    gender: Mapped[str | None] = mapped_column(String)
    phone: Mapped[str | None] = mapped_column(String)
    address: Mapped[str | None] = mapped_column(Text)
    photo_url: Mapped[str | None] = mapped_column(String)

    father_name: Mapped[str | None] = mapped_column(String)
    father_phone: Mapped[str | None] = mapped_column(String)
    father_occupation: Mapped[str | None] = mapped_column(String)
    mother_name: Mapped[str | None] = mapped_column(String)
    mother_phone: Mapped[str | None] = mapped_column(String)
    mother_occupation: Mapped[str | None] = mapped_column(String)
    guardian_name: Mapped[str | None] = mapped_column(String)
    guardian_phone: Mapped[str | None] = mapped_column(String)
    guardian_relation: Mapped[str | None] = mapped_column(String)

    admission_date: Mapped[date | None] = mapped_column(Date)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=StudentStatus.ACTIVE.value
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "roll_number", name="uq_student_tenant_roll_number"),
        enum_check("status", StudentStatus.values(), "student_status_check"),
    )
