from sqlalchemy import Float, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.persistence.database import Base
from src.infrastructure.persistence.models.mixins import MultiTenantModel


class Result(MultiTenantModel, Base):
    """Exam result for one student in one subject. grade is computed server side."""

    __tablename__ = "result"

    roll_number: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    class_name: Mapped[str] = mapped_column(String, nullable=False)
    subject: Mapped[str] = mapped_column(String, nullable=False)
    marks: Mapped[float] = mapped_column(Float, nullable=False)
    total_marks: Mapped[float] = mapped_column(Float, nullable=False)
    exam_type: Mapped[str] = mapped_column(String, nullable=False)
    grade: Mapped[str] = mapped_column(String(4), nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "tenant_id",
            "roll_number",
            "class_name",
            "subject",
            "exam_type",
            name="uq_result_tenant_student_exam",
        ),
    )
