"""
Storefront exception hierarchy.

Every error a store, guard or uploader raises derives from
StorefrontException and carries the HTTP status and machine-readable
code the error handlers turn into a response.
"""

from typing import Optional


class StorefrontException(Exception):
    """Base exception for Storefront errors."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        detail: Optional[str] = None,
        headers: Optional[dict] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.detail = detail
        self.headers = headers
        super().__init__(message)


class NotFoundError(StorefrontException):
    """Resource not found."""

    def __init__(self, resource: str, identifier):
        super().__init__(
            message=f"{resource} not found",
            code="NOT_FOUND",
            status_code=404,
            detail=f"No {resource} with identifier '{identifier}' exists",
        )


class ConflictError(StorefrontException):
    """Duplicate unique key."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(
            message=message,
            code="CONFLICT",
            status_code=409,
            detail=detail,
        )


class BadRequestError(StorefrontException):
    """Input validation failed."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            detail=detail,
        )


class UnauthorizedError(StorefrontException):
    """Missing, invalid or expired credential."""

    def __init__(self, message: str = "Unauthorized", detail: Optional[str] = None):
        super().__init__(
            message=message,
            code="UNAUTHORIZED",
            status_code=401,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(StorefrontException):
    """Authenticated but not allowed."""

    def __init__(self, message: str = "Forbidden", detail: Optional[str] = None):
        super().__init__(
            message=message,
            code="FORBIDDEN",
            status_code=403,
            detail=detail,
        )


class InternalError(StorefrontException):
    """
    Unexpected datastore or provider failure.

    The wrapped cause is kept on the exception for server-side logs;
    clients only ever see the generic detail.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(
            message=message,
            code="INTERNAL_ERROR",
            status_code=500,
            detail="An unexpected error occurred",
        )
        self.cause = cause


class ExternalServiceError(StorefrontException):
    """External service failure."""

    def __init__(self, service: str, detail: Optional[str] = None):
        super().__init__(
            message=f"{service} request failed",
            code="EXTERNAL_SERVICE_ERROR",
            status_code=502,
            detail=detail,
        )


class UploadTimeoutError(StorefrontException):
    """Storage provider did not answer within the upload deadline."""

    def __init__(self, timeout: float):
        super().__init__(
            message="Upload timed out",
            code="UPLOAD_TIMEOUT",
            status_code=504,
            detail=f"Storage provider did not respond within {timeout:g}s",
        )
