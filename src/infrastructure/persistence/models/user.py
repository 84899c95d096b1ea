from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from src.domain.enums import Role
from src.infrastructure.persistence.database import Base
from src.infrastructure.persistence.models.mixins import (MultiTenantModel,
                                                          enum_check)


class User(MultiTenantModel, Base):
    """
    Principal record: an identity bound to one school with one role.

    Inherits from MultiTenantModel:
        - id: CUID primary key (set to the identity id, not generated)
        - tenant_id: Foreign key to school
        - created_at: Creation timestamp
        - updated_at: Last update timestamp
    """

    __tablename__ = "user"

    email: Mapped[str] = mapped_column(String, nullable=False)
    full_name: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[str] = mapped_column(String, nullable=False, index=True)

    # Teacher profile
    phone: Mapped[str | None] = mapped_column(String)
    subject: Mapped[str | None] = mapped_column(String)
    qualification: Mapped[str | None] = mapped_column(String)
    experience: Mapped[str | None] = mapped_column(String)

    __table_args__ = (enum_check("role", Role.values(), "user_role_check"),)
