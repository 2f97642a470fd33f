"""
Error Handling for Storefront

Centralized error handling:
- Structured error responses
- Logging of errors
- Exception translation
"""

import traceback
from datetime import datetime, timezone
from typing import Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ...exceptions import InternalError, StorefrontException


def create_error_response(
    error: str,
    code: str,
    status_code: int,
    detail: Optional[str] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    """Create standardized error response."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "code": code,
            "detail": detail,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
        headers=headers,
    )


def format_validation_errors(errors) -> str:
    """Flatten pydantic error entries into 'field: message; ...'."""
    parts = []
    for err in errors:
        location = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        message = err.get("msg", "Invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


def setup_exception_handlers(app):
    """Register exception handlers with FastAPI app."""

    @app.exception_handler(StorefrontException)
    async def storefront_exception_handler(request: Request, exc: StorefrontException):
        if isinstance(exc, InternalError):
            logger.error(
                f"Internal error on {request.method} {request.url.path}: {exc.message} "
                f"(cause: {type(exc.cause).__name__}: {exc.cause})"
            )
        else:
            logger.warning(f"Storefront error: {exc.code} - {exc.message}")

        return create_error_response(
            error=exc.message,
            code=exc.code,
            status_code=exc.status_code,
            detail=exc.detail,
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        detail = format_validation_errors(exc.errors())
        logger.warning(f"Request validation error on {request.url.path}: {detail}")
        return create_error_response(
            error="Validation Error",
            code="VALIDATION_ERROR",
            status_code=400,
            detail=detail,
        )

    @app.exception_handler(ValidationError)
    async def validation_exception_handler(request: Request, exc: ValidationError):
        logger.warning(f"Validation error: {str(exc)}")
        return create_error_response(
            error="Validation Error",
            code="VALIDATION_ERROR",
            status_code=400,
            detail=format_validation_errors(exc.errors()),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        codes = {404: "NOT_FOUND", 405: "METHOD_NOT_ALLOWED"}
        return create_error_response(
            error=str(exc.detail),
            code=codes.get(exc.status_code, "HTTP_ERROR"),
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
