"""Translate domain exceptions into HTTP responses"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError

from src.domain.exceptions import (BackendTimeoutException,
                                   BackendUnavailableException,
                                   ConflictException, ForbiddenException,
                                   NotFoundException,
                                   PartialProvisioningFailure,
                                   SchoolSiteException, UnauthorizedException,
                                   ValidationException)

logger = logging.getLogger(__name__)

# Most specific first
STATUS_CODES: list[tuple[type[SchoolSiteException], int]] = [
    (ValidationException, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NotFoundException, status.HTTP_404_NOT_FOUND),
    (UnauthorizedException, status.HTTP_401_UNAUTHORIZED),
    (ForbiddenException, status.HTTP_403_FORBIDDEN),
    (ConflictException, status.HTTP_409_CONFLICT),
    (BackendTimeoutException, status.HTTP_504_GATEWAY_TIMEOUT),
    (BackendUnavailableException, status.HTTP_503_SERVICE_UNAVAILABLE),
    (PartialProvisioningFailure, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_code_for(exc: SchoolSiteException) -> int:
    for exc_type, code in STATUS_CODES:
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def school_site_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, SchoolSiteException)
    code = status_code_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.error_code, exc.message)

    headers = {"WWW-Authenticate": "Bearer"} if code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=code, content=exc.to_dict(), headers=headers)


async def database_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Driver errors that escaped a service are still reported as retryable 503s"""
    logger.error("%s %s database error: %s", request.method, request.url.path, exc)
    return await school_site_exception_handler(request, BackendUnavailableException())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SchoolSiteException, school_site_exception_handler)
    app.add_exception_handler(DBAPIError, database_error_handler)
