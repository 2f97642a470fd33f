"""
Storefront API

FastAPI application entry point.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from fastapi import FastAPI, Request

from .. import __version__
from .schemas import HealthResponse
from .routes import users, products, categories, orders, upload
from .middleware import (
    setup_cors,
    setup_logging,
    setup_exception_handlers,
    LoggingConfig,
    get_cors_config,
)
from .dependencies import (
    get_settings,
    ServiceContainer,
    Settings,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Application Lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown tasks:
    - Warn about placeholder secrets
    - Open the database (creates tables)
    - Close the provider client and connection pool on shutdown
    """
    settings: Settings = app.state.settings
    services: ServiceContainer = app.state.services
    logger.info(f"Starting Storefront in {settings.environment} mode")

    if settings.environment != "development":
        for name in settings.insecure_fields():
            logger.warning(f"Setting '{name}' still holds its placeholder value")

    try:
        _ = services.database
        logger.info("Storefront started successfully")

        yield

    finally:
        logger.info("Shutting down Storefront...")
        services.close()
        logger.info("Shutdown complete")


# =============================================================================
# Application Factory
# =============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, loads from environment.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="Storefront",
        description="E-commerce backend: users, catalog, orders and uploads.",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    # Services are created lazily, so building the container here is cheap
    app.state.settings = settings
    app.state.services = ServiceContainer(settings)
    app.state.started_at = time.time()

    # ==========================================================================
    # Middleware (order matters - last added = outermost)
    # ==========================================================================

    setup_exception_handlers(app)

    setup_cors(app, config=get_cors_config(settings.environment))

    setup_logging(
        app,
        config=LoggingConfig(
            enabled=True,
            log_request_body=settings.debug,
        ),
        structured=settings.environment != "development",
    )

    # ==========================================================================
    # Routers
    # ==========================================================================

    api_prefix = "/api/v1"

    for module in (users, products, categories, orders, upload):
        app.include_router(module.router, prefix=api_prefix)

    # ==========================================================================
    # Root Routes
    # ==========================================================================

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Storefront",
            "version": __version__,
            "status": "running",
            "docs": "/docs" if settings.debug else None,
        }

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    def health_check(request: Request) -> HealthResponse:
        """Health check endpoint. Pings the database."""
        services: ServiceContainer = request.app.state.services

        try:
            services.database.ping()
            database = "connected"
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            database = "unavailable"

        return HealthResponse(
            status="healthy" if database == "connected" else "degraded",
            version=__version__,
            uptime_seconds=round(time.time() - request.app.state.started_at, 2),
            database=database,
        )

    return app


# =============================================================================
# Application Instance
# =============================================================================

app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================

def main():
    """Run the application using uvicorn."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "storefront.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        workers=1 if settings.debug else 4,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
