"""Security middleware for HTTP security headers and request validation"""
import logging
from collections.abc import Callable

from fastapi import Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)

DOCS_PATHS = frozenset({"/docs", "/redoc", "/openapi.json"})

# Swagger UI and ReDoc load their assets from a CDN
DOCS_CSP = (
    "default-src 'self'; "
    "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "img-src 'self' data: https:; "
    "font-src 'self' data: https://cdn.jsdelivr.net; "
    "frame-ancestors 'none';"
)

API_CSP = (
    "default-src 'none'; "
    "img-src 'self' data: https:; "
    "frame-ancestors 'none'; "
    "base-uri 'none'; "
    "form-action 'none';"
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to every response.

    HSTS is only sent over https so local development over http keeps working.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "camera=(), geolocation=(), microphone=(), payment=()"
        response.headers["X-Permitted-Cross-Domain-Policies"] = "none"
        response.headers["Content-Security-Policy"] = (
            DOCS_CSP if request.url.path in DOCS_PATHS else API_CSP
        )

        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = "max-age=63072000; includeSubDomains"

        if "server" in response.headers:
            del response.headers["server"]

        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Reject request bodies above max_request_size (by Content-Length).

    Admission forms and content sections are JSON only; images are stored
    elsewhere and referenced by URL, so 1MB is plenty by default.
    """

    def __init__(self, app, max_request_size: int = 1024 * 1024) -> None:
        super().__init__(app)
        self.max_request_size = max_request_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("content-length")
        if content_length is None:
            return await call_next(request)

        try:
            size = int(content_length)
        except ValueError:
            logger.warning("Invalid Content-Length header: %s", content_length)
            return JSONResponse(
                status_code=400,
                content={"error": "Invalid Content-Length header", "code": "INVALID_CONTENT_LENGTH", "details": {}},
            )

        if size > self.max_request_size:
            logger.warning(
                "Request size %s exceeds limit %s from %s",
                size,
                self.max_request_size,
                request.client.host if request.client else "unknown",
            )
            return JSONResponse(
                status_code=413,
                content={
                    "error": f"Request body too large. Maximum size: {self.max_request_size} bytes",
                    "code": "PAYLOAD_TOO_LARGE",
                    "details": {"max_size_bytes": self.max_request_size},
                },
            )

        return await call_next(request)
