"""
Response envelope helpers.

Every successful route answers with the same envelope the exception
handlers use for failures:

    {"status": "success", "status_code": 200, "message": "...", "data": {...}}
"""

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success_response(status_code: int, message: str, data: Any = None) -> JSONResponse:
    """Wrap `data` in the success envelope."""
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "success",
            "status_code": status_code,
            "message": message,
            "data": jsonable_encoder(data) if data is not None else {},
        },
    )


def auth_response(
    status_code: int,
    message: str,
    access_token: str,
    refresh_token: str,
    data: Any = None,
) -> JSONResponse:
    """Success envelope carrying a bearer token pair next to the user payload."""
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "success",
            "status_code": status_code,
            "message": message,
            "access_token": access_token,
            "refresh_token": refresh_token,
            "token_type": "bearer",
            "data": jsonable_encoder(data) if data is not None else {},
        },
    )
