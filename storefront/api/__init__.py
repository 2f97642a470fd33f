"""
Storefront - FastAPI Backend.

HTTP API for users, catalog, orders and image uploads.
"""

from .main import app, create_app, main
from .dependencies import (
    Settings,
    get_settings,
    get_service_container,
    ServiceContainer,
)
from .guards import (
    AccessGuard,
    RoutePolicy,
    PUBLIC,
    AUTHENTICATED,
    ADMIN_ONLY,
)
from .schemas import (
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    # Application
    "app",
    "create_app",
    "main",
    # Dependencies
    "Settings",
    "get_settings",
    "get_service_container",
    "ServiceContainer",
    # Access control
    "AccessGuard",
    "RoutePolicy",
    "PUBLIC",
    "AUTHENTICATED",
    "ADMIN_ONLY",
    # Schemas
    "ErrorResponse",
    "HealthResponse",
]
