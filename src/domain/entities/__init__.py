"""Domain entities."""

from src.domain.entities.principal import (
    ANONYMOUS,
    Anonymous,
    IdentityState,
    Principal,
    UnboundIdentity,
)
from src.domain.entities.tenant import SchoolEntity

__all__ = [
    "ANONYMOUS",
    "Anonymous",
    "IdentityState",
    "Principal",
    "SchoolEntity",
    "UnboundIdentity",
]
