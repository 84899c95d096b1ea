""" Repository module for the persistence layer. """

from src.infrastructure.persistence.repositories.base import BaseRepository
from src.infrastructure.persistence.repositories.identity_repo import IdentityRepository
from src.infrastructure.persistence.repositories.school_repo import SchoolRepository
from src.infrastructure.persistence.repositories.user_repo import UserRepository

__all__ = [
    "BaseRepository",
    "IdentityRepository",
    "SchoolRepository",
    "UserRepository",
]
