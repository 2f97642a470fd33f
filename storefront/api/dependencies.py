"""
Dependency injection for FastAPI routes.

Provides injectable dependencies for:
- Configuration
- Stores and the order manager
- The asset uploader
"""

import os
from dataclasses import dataclass
from functools import lru_cache

from fastapi import Depends, Request

from ..security import INSECURE_SECRET_PLACEHOLDER


# =============================================================================
# Configuration
# =============================================================================

# Non-functional placeholders; a real deployment must override every one.
PLACEHOLDERS = {
    "jwt_secret": INSECURE_SECRET_PLACEHOLDER,
    "cloudinary_cloud_name": "unset-cloud-name",
    "cloudinary_api_key": "unset-api-key",
    "cloudinary_api_secret": "unset-api-secret",
}


@dataclass
class Settings:
    """Application settings loaded from environment."""

    # Database
    database_url: str = "sqlite:///./storefront.db"
    database_echo: bool = False

    # Tokens
    jwt_secret: str = PLACEHOLDERS["jwt_secret"]
    jwt_expire_minutes: int = 60

    # Object storage
    cloudinary_cloud_name: str = PLACEHOLDERS["cloudinary_cloud_name"]
    cloudinary_api_key: str = PLACEHOLDERS["cloudinary_api_key"]
    cloudinary_api_secret: str = PLACEHOLDERS["cloudinary_api_secret"]
    upload_folder: str = "uploads/images"
    upload_timeout_seconds: float = 30.0

    # File uploads
    max_upload_size_mb: int = 5
    allowed_image_types: str = "image/jpeg,image/png,image/gif"
    persist_uploads: bool = True

    # Orders
    order_verify_products: bool = False

    # Environment
    environment: str = "development"
    debug: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            database_echo=os.getenv("DATABASE_ECHO", "false").lower() == "true",
            jwt_secret=os.getenv("JWT_SECRET", cls.jwt_secret),
            jwt_expire_minutes=int(os.getenv("JWT_EXPIRE_MINUTES", cls.jwt_expire_minutes)),
            cloudinary_cloud_name=os.getenv("CLOUDINARY_CLOUD_NAME", cls.cloudinary_cloud_name),
            cloudinary_api_key=os.getenv("CLOUDINARY_API_KEY", cls.cloudinary_api_key),
            cloudinary_api_secret=os.getenv("CLOUDINARY_API_SECRET", cls.cloudinary_api_secret),
            upload_folder=os.getenv("UPLOAD_FOLDER", cls.upload_folder),
            upload_timeout_seconds=float(os.getenv("UPLOAD_TIMEOUT_SECONDS", cls.upload_timeout_seconds)),
            max_upload_size_mb=int(os.getenv("MAX_UPLOAD_SIZE_MB", cls.max_upload_size_mb)),
            allowed_image_types=os.getenv("ALLOWED_IMAGE_TYPES", cls.allowed_image_types),
            persist_uploads=os.getenv("PERSIST_UPLOADS", "true").lower() == "true",
            order_verify_products=os.getenv("ORDER_VERIFY_PRODUCTS", "false").lower() == "true",
            environment=os.getenv("STOREFRONT_ENV", cls.environment),
            debug=os.getenv("DEBUG", "true").lower() == "true",
        )

    def insecure_fields(self) -> list[str]:
        """Names of settings still holding their placeholder value."""
        return [name for name, value in PLACEHOLDERS.items() if getattr(self, name) == value]


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings.from_env()


# =============================================================================
# Service Dependencies (Lazy Loading)
# =============================================================================

class ServiceContainer:
    """
    Container for lazy-loaded service instances.

    One container is built per application in create_app and shared by
    every request.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._database = None
        self._token_issuer = None
        self._user_store = None
        self._product_store = None
        self._category_store = None
        self._order_manager = None
        self._upload_repository = None
        self._cloudinary_client = None
        self._asset_uploader = None

    @property
    def database(self):
        """Get shared database."""
        if self._database is None:
            from ..storage.database import Database
            self._database = Database(
                self.settings.database_url,
                echo=self.settings.database_echo,
            )
        return self._database

    @property
    def token_issuer(self):
        """Get token issuer instance."""
        if self._token_issuer is None:
            from ..security import TokenIssuer
            self._token_issuer = TokenIssuer(
                secret_key=self.settings.jwt_secret,
                expire_minutes=self.settings.jwt_expire_minutes,
            )
        return self._token_issuer

    @property
    def user_store(self):
        """Get user store instance."""
        if self._user_store is None:
            from ..storage.user_store import UserStore
            self._user_store = UserStore(self.database, self.token_issuer)
        return self._user_store

    @property
    def product_store(self):
        """Get product store instance."""
        if self._product_store is None:
            from ..storage.catalog_store import ProductStore
            self._product_store = ProductStore(self.database)
        return self._product_store

    @property
    def category_store(self):
        """Get category store instance."""
        if self._category_store is None:
            from ..storage.catalog_store import CategoryStore
            self._category_store = CategoryStore(self.database)
        return self._category_store

    @property
    def order_manager(self):
        """Get order manager instance."""
        if self._order_manager is None:
            from ..storage.order_manager import OrderManager
            self._order_manager = OrderManager(
                self.database,
                product_store=self.product_store,
                verify_products=self.settings.order_verify_products,
            )
        return self._order_manager

    @property
    def upload_repository(self):
        """Get upload metadata repository."""
        if self._upload_repository is None:
            from ..storage.upload_repository import UploadRepository
            self._upload_repository = UploadRepository(self.database)
        return self._upload_repository

    @property
    def cloudinary_client(self):
        """Get Cloudinary client instance."""
        if self._cloudinary_client is None:
            from ..uploads.cloudinary_client import CloudinaryClient
            self._cloudinary_client = CloudinaryClient(
                cloud_name=self.settings.cloudinary_cloud_name,
                api_key=self.settings.cloudinary_api_key,
                api_secret=self.settings.cloudinary_api_secret,
                timeout=self.settings.upload_timeout_seconds,
            )
        return self._cloudinary_client

    @property
    def asset_uploader(self):
        """Get asset uploader instance."""
        if self._asset_uploader is None:
            from ..uploads.uploader import AssetUploader, MiB
            self._asset_uploader = AssetUploader(
                client=self.cloudinary_client,
                folder=self.settings.upload_folder,
                allowed_types=[
                    t.strip() for t in self.settings.allowed_image_types.split(",") if t.strip()
                ],
                max_size_bytes=self.settings.max_upload_size_mb * MiB,
                timeout=self.settings.upload_timeout_seconds,
                repository=self.upload_repository if self.settings.persist_uploads else None,
            )
        return self._asset_uploader

    def close(self) -> None:
        """Release database connections."""
        if self._database is not None:
            self._database.dispose()


def get_service_container(request: Request) -> ServiceContainer:
    """Get the application's service container."""
    return request.app.state.services


# =============================================================================
# Individual Service Dependencies
# =============================================================================

def get_token_issuer(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for token issuer."""
    return container.token_issuer


def get_user_store(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for user store."""
    return container.user_store


def get_product_store(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for product store."""
    return container.product_store


def get_category_store(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for category store."""
    return container.category_store


def get_order_manager(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for order manager."""
    return container.order_manager


def get_asset_uploader(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for asset uploader."""
    return container.asset_uploader
