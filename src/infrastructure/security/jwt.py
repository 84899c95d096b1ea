"""JWT token handling for sessions issued by the local identity provider."""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from src.infrastructure.config.settings import get_settings
from src.shared.utils.generators import generate_cuid

settings = get_settings()


def create_access_token(
    data: dict[str, Any], expires_delta: timedelta | None = None
) -> str:
    """Create JWT access token. Adds exp, iat and a unique jti for revocation."""
    to_encode = data.copy()
    now = datetime.now(UTC)

    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode.update({"exp": expire, "iat": now})
    to_encode.setdefault("jti", generate_cuid())
    encoded_jwt = jwt.encode(
        to_encode, settings.secret_key, algorithm=settings.algorithm
    )
    assert isinstance(encoded_jwt, str)
    return encoded_jwt


def verify_token(token: str) -> dict[str, Any]:
    """Verify and decode JWT token, returns payload"""
    try:
        payload = jwt.decode(
            token, settings.secret_key, algorithms=[settings.algorithm]
        )
        if not isinstance(payload, dict):
            raise TypeError("Token payload must be a dictionary")
        return payload
    except JWTError as e:
        raise ValueError(f"Invalid token: {str(e)}") from e
