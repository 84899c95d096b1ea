"""
School (tenant) domain entity.

This represents the business concept of a school, independent of
how it's stored in the database.
"""

from dataclasses import dataclass, field
from typing import Any

from src.domain.enums import TenantStatus


@dataclass
class SchoolEntity:
    """
    Domain entity for a school (SRP - business logic separate from persistence)
    """

    id: str
    slug: str
    name: str
    status: TenantStatus
    owner_id: str | None = None
    settings: dict[str, Any] = field(default_factory=dict)

    def is_public(self) -> bool:
        """
        Business rule: schools still being provisioned are never publicly resolvable.
        Suspended schools still resolve so visitors see a "disabled" page.
        """
        return self.status != TenantStatus.PROVISIONING

    def accepts_writes(self) -> bool:
        """Business rule: only ACTIVE schools accept writes"""
        return self.status == TenantStatus.ACTIVE

    def feature_enabled(self, name: str, default: bool = True) -> bool:
        features = self.settings.get("features") or {}
        value = features.get(name, default)
        return bool(value)

    def accepts_applications(self) -> bool:
        """Business rule: public admission requires an active school with applications enabled"""
        return self.accepts_writes() and self.feature_enabled("enableApplications")

    def suspend(self) -> None:
        """
        Suspend school.
        Suspended schools resolve publicly but reject every write.
        """
        if self.status == TenantStatus.PROVISIONING:
            raise ValueError("A school still being provisioned cannot be suspended")
        self.status = TenantStatus.SUSPENDED

    def activate(self) -> None:
        """Activate school."""
        self.status = TenantStatus.ACTIVE

    def to_cache(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "slug": self.slug,
            "name": self.name,
            "status": self.status.value,
            "owner_id": self.owner_id,
            "settings": self.settings,
        }

    @classmethod
    def from_cache(cls, data: dict[str, Any]) -> "SchoolEntity":
        return cls(
            id=data["id"],
            slug=data["slug"],
            name=data["name"],
            status=TenantStatus(data["status"]),
            owner_id=data.get("owner_id"),
            settings=data.get("settings") or {},
        )
