import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.cache.redis_cache import CacheService
from src.infrastructure.config.settings import get_settings
from src.infrastructure.persistence.database import engine, get_db
from src.presentation.api.dependencies import get_cache_service, set_cache_service
from src.presentation.api.errors import register_exception_handlers
from src.presentation.api.v1.routes import (applications, auth, classes,
                                            content, results, schools,
                                            students, teachers)
from src.presentation.middleware.correlation import CorrelationIDMiddleware
from src.presentation.middleware.rate_limit import limiter
from src.presentation.middleware.security import (RequestSizeLimitMiddleware,
                                                  SecurityHeadersMiddleware)
from src.presentation.middleware.timeout import TimeoutMiddleware
from src.shared.telemetry.logging import setup_logging

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for application initialization and cleanup"""
    setup_logging()

    # Database schema is managed by migrations, not created here

    # Initialize Redis cache
    if settings.redis_enabled:
        try:
            cache_service = CacheService()
            await cache_service.connect()
            set_cache_service(cache_service)
            logger.info("Redis cache initialized successfully")
        except Exception as e:
            logger.warning(f"Redis cache initialization failed: {e}. Continuing without cache.")
    else:
        logger.info("Redis cache disabled in configuration")

    yield

    # Shutdown cache
    if settings.redis_enabled:
        try:
            cache = await get_cache_service()
            await cache.disconnect()
        except Exception as e:
            logger.warning(f"Error during cache shutdown: {e}")

    await engine.dispose()
    logger.info("Database engine disposed")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Configure rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Domain exceptions -> status codes
register_exception_handlers(app)

# Middleware (order matters - applied in reverse)
# 1. Request size limit (first check)
app.add_middleware(RequestSizeLimitMiddleware, max_request_size=1024 * 1024)  # 1MB

# 2. Overall request deadline
app.add_middleware(TimeoutMiddleware, timeout=settings.request_timeout_seconds)

# 3. Correlation ID for request tracing
app.add_middleware(CorrelationIDMiddleware)

# 4. Security headers
app.add_middleware(SecurityHeadersMiddleware)

# 5. CORS middleware
# Security: Using allow_credentials=True requires specific origins (not wildcard)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.allowed_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(auth.router, prefix="/auth", tags=["authentication"])
app.include_router(schools.router, prefix="/schools", tags=["schools"])
app.include_router(content.router, prefix="/schools/{slug}/content", tags=["content"])
app.include_router(
    applications.router, prefix="/schools/{slug}/applications", tags=["applications"]
)
app.include_router(students.router, prefix="/schools/{slug}/students", tags=["students"])
app.include_router(classes.router, prefix="/schools/{slug}/classes", tags=["classes"])
app.include_router(results.router, prefix="/schools/{slug}/results", tags=["results"])
app.include_router(teachers.router, prefix="/teachers", tags=["teachers"])


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint for load balancers and monitoring.

    Returns:
    - 200 OK if the database answers
    - 503 Service Unavailable otherwise

    Redis is optional; its state is reported but never fails the check.
    """
    checks: dict[str, Any] = {
        "api": True,
        "database": False,
        "cache": None,  # None = not configured, True = healthy, False = unhealthy
    }

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = True
    except Exception as e:
        logger.error("Health check database probe failed: %s", e)
        checks["error"] = "database unavailable"
        return JSONResponse(status_code=503, content={"status": "unhealthy", "checks": checks})

    if settings.redis_enabled:
        cache = await get_cache_service()
        checks["cache"] = cache.is_available()

    return {"status": "healthy", "checks": checks}
