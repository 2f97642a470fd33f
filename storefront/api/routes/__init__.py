"""
API Routes for Storefront

Route modules:
- users: Registration, login and accounts
- products: Product catalog
- categories: Category catalog
- orders: Order placement and management
- upload: Image uploads
"""

from storefront.api.routes.users import router as users_router
from storefront.api.routes.products import router as products_router
from storefront.api.routes.categories import router as categories_router
from storefront.api.routes.orders import router as orders_router
from storefront.api.routes.upload import router as upload_router

__all__ = [
    "users_router",
    "products_router",
    "categories_router",
    "orders_router",
    "upload_router",
]
