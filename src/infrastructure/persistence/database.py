from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (AsyncEngine, AsyncSession,
                                    async_sessionmaker, create_async_engine)
from sqlalchemy.orm import DeclarativeBase

from src.infrastructure.config.settings import get_settings

settings = get_settings()


def _engine_options(database_url: str) -> dict[str, Any]:
    """Pool tuning only applies to server databases; SQLite uses its own pool"""
    if "postgresql" not in database_url:
        return {}
    return {
        "pool_pre_ping": True,
        "pool_size": 20,
        "max_overflow": 30,
        "pool_recycle": 3600,
        "connect_args": {
            "server_settings": {"jit": "off"},
            "command_timeout": 60,
        },
    }


def enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """
    Let SQLAlchemy control BEGIN on SQLite so SAVEPOINT (begin_nested) works.

    The sqlite3 driver otherwise defers BEGIN and breaks nested transactions.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")


# Create engine once at module level (not with lru_cache)
engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    **_engine_options(settings.database_url),
)

if settings.database_url.startswith("sqlite"):
    enable_sqlite_savepoints(engine)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False,
)


# Modern SQLAlchemy 2.0 pattern
class Base(DeclarativeBase):
    """Base class for all database models"""

    pass


async def get_db():
    """
    Plain database session, used by the health check.
    API routes take their session from get_session in the presentation layer.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()

