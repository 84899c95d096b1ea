"""Security infrastructure - JWT and password handling."""

from src.infrastructure.security.jwt import create_access_token, verify_token
from src.infrastructure.security.password import get_password_hash, verify_password

__all__ = [
    "create_access_token",
    "verify_token",
    "verify_password",
    "get_password_hash",
]
