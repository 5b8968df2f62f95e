"""
Exception handlers.

Every failure leaves the API in the same envelope as `success_response`:

    {"status": "failure", "status_code": 403, "message": "...",
     "error": {"kind": "ForbiddenError"}}

`kind` names the failure class so clients can branch on it without
parsing messages.
"""

from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError, HTTPException
from sqlalchemy.exc import IntegrityError

from portal.utils.logger import logger
from portal.utils.exceptions import BaseAPIException, ConflictError


def failure_response(
    status_code: int,
    message: str,
    error: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "failure",
            "status_code": status_code,
            "message": message,
            "error": error or {},
        },
        headers=headers,
    )


async def base_api_exception_handler(request: Request, exc: BaseAPIException):
    """Domain failures: validation, authorization, lookup, conflict."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"{exc.kind} on {request.method} {request.url.path}: {exc.detail}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "status_code": exc.status_code,
        },
    )
    return failure_response(exc.status_code, exc.detail, {"kind": exc.kind})


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
):
    """Malformed payloads or query strings rejected by FastAPI."""
    errors = jsonable_encoder(exc.errors())
    logger.warning(
        f"Validation error on {request.method} {request.url.path}",
        extra={"errors": errors},
    )
    return failure_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Validation error",
        {"kind": "ValidationError", "details": errors},
    )


async def integrity_error_handler(request: Request, exc: IntegrityError):
    """
    Unique or foreign-key violations that slipped past the service checks,
    e.g. two admins creating the same department at once.
    """
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
    conflict = ConflictError()
    return failure_response(conflict.status_code, conflict.detail, {"kind": conflict.kind})


async def http_exception_handler(request: Request, exc: HTTPException):
    """Framework-level HTTP errors (bad bearer token, deactivated account)."""
    logger.warning(f"HTTP {exc.status_code} on {request.method} {request.url.path}: {exc.detail}")
    return failure_response(exc.status_code, exc.detail, headers=exc.headers)


async def general_exception_handler(request: Request, exc: Exception):
    """Anything unexpected. Details stay in the log."""
    logger.exception(
        f"Unhandled exception on {request.method} {request.url.path}: {str(exc)}",
        exc_info=exc,
    )
    return failure_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
