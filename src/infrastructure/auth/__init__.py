from src.infrastructure.auth.local_provider import LocalAuthProvider

__all__ = ["LocalAuthProvider"]
