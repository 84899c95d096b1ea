"""Correlation ID middleware for request tracing"""
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

CORRELATION_HEADER = "X-Correlation-ID"

# Correlation ID of the request being handled; read by the logging filter
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Tag every request with a correlation ID.

    Accepts X-Correlation-ID from the client (e.g. the dashboard frontend),
    otherwise generates one, and echoes it on the response. Every log line
    written while handling the request carries it.
    """

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        token = correlation_id_var.set(correlation_id)
        try:
            response = await call_next(request)
        finally:
            correlation_id_var.reset(token)

        response.headers[CORRELATION_HEADER] = correlation_id
        return response


def get_correlation_id() -> str:
    """Get the correlation ID for the current request"""
    return correlation_id_var.get()
