from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_name: str = "SchoolSite"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database
    database_url: str = ""  # Loaded from environment, validated in model_validator
    database_echo: bool = False

    # Security
    secret_key: str = ""  # Loaded from environment, validated in model_validator
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 480  # 8 hours

    # CORS - comma-separated list of allowed origins
    allowed_origins: str = "http://localhost:3000,http://localhost:8080"

    # Tenancy
    slug_min_length: int = 3
    slug_max_length: int = 50
    reserved_slugs: str = "api,admin,auth,login,signup,create-school,check-slug,dashboard,schools,teachers,health,docs"

    # Redis Cache
    redis_enabled: bool = True  # Enable/disable caching
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: str | None = None

    # Cache TTL (Time-To-Live) in seconds
    cache_ttl_tenants: int = 900  # 15 minutes

    # Timeouts in seconds
    gateway_timeout_seconds: float = 15.0  # Per backend call in the data gateway
    request_timeout_seconds: float = 30.0  # Whole request

    # Rate limits (slowapi syntax)
    rate_limit_enabled: bool = True
    login_rate_limit: str = "5/minute"
    signup_rate_limit: str = "5/minute"
    application_rate_limit: str = "10/minute"

    @model_validator(mode="after")
    def validate_config(self) -> "Settings":
        """Validate required configuration and tenancy bounds"""
        if not self.database_url:
            raise ValueError("DATABASE_URL is required. Set in environment or .env file.")
        if not self.secret_key:
            raise ValueError("SECRET_KEY is required. Generate with: openssl rand -hex 32")

        if self.slug_min_length < 1 or self.slug_min_length > self.slug_max_length:
            raise ValueError(
                f"Invalid slug bounds: min={self.slug_min_length}, max={self.slug_max_length}"
            )
        if self.gateway_timeout_seconds <= 0 or self.request_timeout_seconds <= 0:
            raise ValueError("Timeouts must be positive")
        return self

    @property
    def reserved_slug_set(self) -> frozenset[str]:
        return frozenset(s.strip().lower() for s in self.reserved_slugs.split(",") if s.strip())

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="allow", case_sensitive=False
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
