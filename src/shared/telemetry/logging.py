"""Logging configuration for the SchoolSite application"""
import logging
import sys

from src.infrastructure.config.settings import get_settings
from src.presentation.middleware.correlation import get_correlation_id

settings = get_settings()


class CorrelationIdFilter(logging.Filter):
    """Attach the current request's correlation ID to every record"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        return True


def setup_logging():
    """Configure application-wide logging"""
    log_level = logging.DEBUG if settings.debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationIdFilter())

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s",
        handlers=[handler],
    )

    # SQL echo is controlled by DATABASE_ECHO, not the root level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)