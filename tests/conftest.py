"""
Pytest configuration and fixtures for Storefront tests.
"""

import threading
import time
from typing import AsyncGenerator, Optional

import cloudinary.exceptions
import cloudinary.uploader
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from storefront.api.main import create_app
from storefront.api.dependencies import Settings
from storefront.security import TokenIssuer
from storefront.storage.catalog_store import CategoryStore, ProductStore
from storefront.storage.database import Database
from storefront.storage.models import UserRole
from storefront.storage.order_manager import OrderManager
from storefront.storage.upload_repository import UploadRepository
from storefront.storage.user_store import UserStore
from storefront.uploads.cloudinary_client import CloudinaryClient


TEST_SECRET = "test-secret-key"
PASSWORD = "s3cret-pass"


# =============================================================================
# Test Settings
# =============================================================================

def get_test_settings() -> Settings:
    """Return settings configured for testing."""
    return Settings(
        database_url="sqlite:///:memory:",
        database_echo=False,
        jwt_secret=TEST_SECRET,
        cloudinary_cloud_name="demo",
        cloudinary_api_key="test-key",
        cloudinary_api_secret="test-api-secret",
        upload_timeout_seconds=1.0,
        environment="test",
        debug=True,
    )


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


# =============================================================================
# Storage Fixtures
# =============================================================================

@pytest.fixture
def database() -> Database:
    """Fresh in-memory database per test."""
    db = Database("sqlite:///:memory:")
    yield db
    db.dispose()


@pytest.fixture
def token_issuer() -> TokenIssuer:
    return TokenIssuer(secret_key=TEST_SECRET)


@pytest.fixture
def user_store(database, token_issuer) -> UserStore:
    return UserStore(database, token_issuer)


@pytest.fixture
def product_store(database) -> ProductStore:
    return ProductStore(database)


@pytest.fixture
def category_store(database) -> CategoryStore:
    return CategoryStore(database)


@pytest.fixture
def order_manager(database) -> OrderManager:
    return OrderManager(database)


@pytest.fixture
def upload_repository(database) -> UploadRepository:
    return UploadRepository(database)


# =============================================================================
# Cloudinary Fixtures
# =============================================================================

class FakeCloudinary:
    """
    Stand-in for cloudinary.uploader.upload and cloudinary.uploader.destroy.

    Every call is recorded in .calls as (action, options). Public ids
    starting with 'missing' are reported as not found on destroy.
    """

    def __init__(self):
        self.calls: list[tuple[str, dict]] = []
        self.error: Optional[str] = None
        self.fail_upload_number: Optional[int] = None
        self.delay: float = 0.0
        self._lock = threading.Lock()

    def upload(self, file, **options) -> dict:
        with self._lock:
            self.calls.append(("upload", options))
            number = self.upload_count

        data = file.read()
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise cloudinary.exceptions.Error(self.error)
        if number == self.fail_upload_number:
            raise cloudinary.exceptions.Error("Upload failed")

        folder = options.get("folder", "uploads/images")
        return {
            "public_id": f"{folder}/asset{number}",
            "secure_url": f"https://res.cloudinary.com/demo/image/upload/asset{number}.png",
            "original_filename": f"asset{number}",
            "bytes": len(data),
            "format": "png",
            "width": 64,
            "height": 64,
            "resource_type": "image",
        }

    def destroy(self, public_id, **options) -> dict:
        with self._lock:
            self.calls.append(("destroy", {"public_id": public_id, **options}))

        if self.error:
            raise cloudinary.exceptions.Error(self.error)
        return {"result": "not found" if public_id.startswith("missing") else "ok"}

    @property
    def upload_count(self) -> int:
        return sum(1 for action, _ in self.calls if action == "upload")

    @property
    def destroyed(self) -> list[str]:
        return [options["public_id"] for action, options in self.calls if action == "destroy"]


@pytest.fixture
def fake_cloudinary(monkeypatch) -> FakeCloudinary:
    fake = FakeCloudinary()
    monkeypatch.setattr(cloudinary.uploader, "upload", fake.upload)
    monkeypatch.setattr(cloudinary.uploader, "destroy", fake.destroy)
    return fake


@pytest.fixture
def cloudinary_client(fake_cloudinary) -> CloudinaryClient:
    return CloudinaryClient(
        cloud_name="demo",
        api_key="test-key",
        api_secret="test-api-secret",
    )


@pytest.fixture
def png_bytes() -> bytes:
    """Bytes posing as a small PNG (only type and size are checked)."""
    return b"\x89PNG\r\n\x1a\n" + b"\x00" * 2040


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest_asyncio.fixture(scope="function")
async def app(fake_cloudinary):
    """Create FastAPI application for testing."""
    application = create_app(get_test_settings())

    yield application

    application.state.services.close()


@pytest_asyncio.fixture(scope="function")
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API tests."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def services(app):
    return app.state.services


@pytest.fixture
def user_token(services) -> str:
    """Token of a regular user registered straight through the store."""
    services.user_store.register(
        "user@example.com", PASSWORD, first_name="Regular", last_name="User",
    )
    return services.user_store.authenticate("user@example.com", PASSWORD)


@pytest.fixture
def admin_token(services) -> str:
    services.user_store.register(
        "admin@example.com", PASSWORD, role=UserRole.ADMIN,
        first_name="Admin", last_name="User",
    )
    return services.user_store.authenticate("admin@example.com", PASSWORD)


# =============================================================================
# Data Fixtures
# =============================================================================

@pytest.fixture
def sample_user_data() -> dict:
    return {
        "email": "ann@example.com",
        "password": PASSWORD,
        "firstName": "Ann",
        "lastName": "Lee",
        "phone": "+1 555 0100",
    }


@pytest.fixture
def sample_product_data() -> dict:
    return {
        "name": "Trail Runner",
        "price": "89.99",
        "description": "Lightweight trail running shoe",
        "brand": "Stride",
        "variants": [
            {"color": "red", "size": "42", "stock": 5},
            {"color": "blue", "size": "43", "stock": 0},
        ],
    }


@pytest.fixture
def sample_order_items() -> list[dict]:
    """Two items totalling 25.00 (2 x 10.00 + 1 x 5.00)."""
    return [
        {"productId": "prod-a", "quantity": 2, "price": "10.00"},
        {"productId": "prod-b", "quantity": 1, "price": "5.00"},
    ]
