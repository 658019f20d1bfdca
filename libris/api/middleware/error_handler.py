"""
Error Handling for Libris

Centralized error handling:
- Structured error responses with a stable code
- Logging of errors
- Exception translation (LibrisError -> HTTP status)
"""

import traceback
from datetime import datetime
from typing import Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from libris.errors import LibrisError

from .logging import get_request_id


HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}


def create_error_response(
    error: str,
    code: str,
    status_code: int,
    detail: Optional[str] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    """Create standardized error response."""
    content = {
        "error": error,
        "code": code,
        "detail": detail,
        "timestamp": datetime.utcnow().isoformat(),
    }
    request_id = get_request_id()
    if request_id:
        content["request_id"] = request_id
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _libris_error_response(exc: LibrisError) -> JSONResponse:
    headers = None
    if exc.status_code == 401:
        headers = {"WWW-Authenticate": "Bearer"}
    return create_error_response(
        error=exc.message,
        code=exc.code,
        status_code=exc.status_code,
        detail=exc.detail,
        headers=headers,
    )


def setup_exception_handlers(app):
    """Register exception handlers with FastAPI app."""

    @app.exception_handler(LibrisError)
    async def libris_exception_handler(request: Request, exc: LibrisError):
        if exc.status_code >= 500:
            logger.error(f"Libris error: {exc.code} - {exc.message}: {exc.detail}")
        else:
            logger.warning(f"Libris error: {exc.code} - {exc.message}")
        return _libris_error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
        return create_error_response(
            error="Validation Error",
            code="VALIDATION_ERROR",
            status_code=422,
            detail=str(exc.errors()),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return create_error_response(
            error=str(exc.detail),
            code=HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception: {type(exc).__name__}: {str(exc)}\n{traceback.format_exc()}"
        )
        return create_error_response(
            error="Internal Server Error",
            code="INTERNAL_ERROR",
            status_code=500,
            detail="An unexpected error occurred",
        )
