"""
SQLAlchemy mixins for common model patterns.

These mixins provide reusable column definitions to follow DRY principles
and ensure consistency across all models.
"""
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func

from src.shared.utils.generators import generate_cuid


class CuidMixin:
    """
    Mixin for models using CUID as primary key.

    Provides:
        - id: String primary key with automatic CUID generation
    """

    @declared_attr
    def id(cls) -> Mapped[str]:
        return mapped_column(String, primary_key=True, default=generate_cuid)


class TenantMixin:
    """
    Mixin for school-owned models.

    Provides:
        - tenant_id: Foreign key to the school table with cascade delete

    tenant_id is set once at creation and never updated; the data gateway
    strips it from every caller payload.
    """

    @declared_attr
    def tenant_id(cls) -> Mapped[str]:
        return mapped_column(
            String,
            ForeignKey("school.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )


class TimestampMixin:
    """
    Mixin for timestamp tracking.

    Provides:
        - created_at: Timestamp set on creation (server-side default)
        - updated_at: Timestamp updated on modification (server-side default + onupdate)
    """

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        )

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
            nullable=False,
        )


class MultiTenantModel(CuidMixin, TenantMixin, TimestampMixin):
    """
    Complete mixin for standard school-owned models.

    Combines:
        - CuidMixin: CUID primary key
        - TenantMixin: School foreign key
        - TimestampMixin: Created/updated timestamps
    """

    __abstract__ = True


def enum_check(column: str, values: list[str], name: str) -> CheckConstraint:
    """CHECK constraint restricting a string column to enum values"""
    quoted = ", ".join("'{}'".format(v.replace("'", "''")) for v in values)
    return CheckConstraint(f"{column} IN ({quoted})", name=name)
