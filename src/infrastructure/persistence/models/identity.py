from typing import Any

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.persistence.database import Base
from src.infrastructure.persistence.models.mixins import (CuidMixin,
                                                          TimestampMixin)


class Identity(CuidMixin, TimestampMixin, Base):
    """
    Login account held by the identity provider.

    Identities are global (not school-owned). A principal record in the
    user table binds an identity to one school with a role.
    """

    __tablename__ = "identity"

    email: Mapped[str] = mapped_column(String, unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String, nullable=False)
    user_metadata: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
