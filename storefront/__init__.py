"""
Storefront - e-commerce backend.

Subpackages:
- api: FastAPI application, routes, guards and middleware
- storage: SQLAlchemy models and stores (users, catalog, orders, uploads)
- uploads: image validation and Cloudinary forwarding
"""

__version__ = "1.0.0"
