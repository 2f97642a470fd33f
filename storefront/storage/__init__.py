"""
Storage Module for Storefront

Relational persistence through SQLAlchemy:
- Users and credentials
- Catalog (products, categories)
- Orders with transactional creation
- Upload metadata
"""

from storefront.storage.database import Database
from storefront.storage.models import (
    Base,
    UserRole,
    OrderStatus,
    PaymentMethod,
)
from storefront.storage.user_store import (
    UserStore,
    StoredUser,
)
from storefront.storage.catalog_store import (
    ProductStore,
    CategoryStore,
    StoredProduct,
    StoredCategory,
)
from storefront.storage.order_manager import (
    OrderManager,
    StoredOrder,
    StoredOrderItem,
    LineItem,
    ALLOWED_TRANSITIONS,
)
from storefront.storage.upload_repository import (
    UploadRepository,
    StoredUpload,
)

__all__ = [
    # Database
    "Database",
    "Base",
    # Enums
    "UserRole",
    "OrderStatus",
    "PaymentMethod",
    # Users
    "UserStore",
    "StoredUser",
    # Catalog
    "ProductStore",
    "CategoryStore",
    "StoredProduct",
    "StoredCategory",
    # Orders
    "OrderManager",
    "StoredOrder",
    "StoredOrderItem",
    "LineItem",
    "ALLOWED_TRANSITIONS",
    # Uploads
    "UploadRepository",
    "StoredUpload",
]
