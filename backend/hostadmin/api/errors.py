# backend/hostadmin/api/errors.py
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from hostadmin.core.errors import (
    HostAdminError,
    HostAlreadyExists,
    HostNotFound,
    IdentityAlreadyExists,
    InvalidCredentials,
    MalformedRecord,
    NotAnAdmin,
    OptimisticConflict,
    StoreUnavailable,
)

logger = logging.getLogger(__name__)

# Looked up along the exception's MRO, so subclasses inherit their parent's status.
STATUS_BY_ERROR: dict[type[HostAdminError], int] = {
    InvalidCredentials: status.HTTP_401_UNAUTHORIZED,
    NotAnAdmin: status.HTTP_403_FORBIDDEN,
    HostNotFound: status.HTTP_404_NOT_FOUND,
    HostAlreadyExists: status.HTTP_409_CONFLICT,
    IdentityAlreadyExists: status.HTTP_409_CONFLICT,
    OptimisticConflict: status.HTTP_409_CONFLICT,
    MalformedRecord: status.HTTP_500_INTERNAL_SERVER_ERROR,
    StoreUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(exc: HostAdminError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": {"error": code, "message": message}})


async def host_admin_error_handler(request: Request, exc: HostAdminError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code}: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.code}: {exc}")
    return _error_response(status_code, exc.code, str(exc))


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, "INVALID_REQUEST", str(exc))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HostAdminError, host_admin_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)
