"""
Database models for Storefront.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp (columns are stored without a zone)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_uuid() -> str:
    return str(uuid.uuid4())


# =============================================================================
# Enums
# =============================================================================

class UserRole(str, Enum):
    """Account role."""
    USER = "user"
    ADMIN = "admin"


class OrderStatus(str, Enum):
    """Order lifecycle status."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    """Accepted payment methods."""
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PAYPAL = "paypal"
    CASH_ON_DELIVERY = "cash_on_delivery"


# =============================================================================
# Tables
# =============================================================================

class UserModel(Base):
    """User model for authentication."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(50))
    address = Column(Text)
    role = Column(String(20), nullable=False, default=UserRole.USER.value)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class ProductModel(Base):
    """Catalog product with embedded variants."""
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=new_uuid)
    name = Column(String(255), nullable=False, index=True)
    price = Column(Numeric(10, 2), nullable=False)
    description = Column(Text, nullable=False)
    brand = Column(String(255), nullable=False)

    # [{"color": ..., "size": ..., "stock": ...}, ...]
    variants = Column(JSON, default=list, nullable=False)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
    )


class CategoryModel(Base):
    """Product category. Not linked to products."""
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class OrderModel(Base):
    """Order header."""
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(Integer, nullable=False, index=True)
    total_amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value)
    shipping_address = Column(Text, nullable=False)
    payment_method = Column(String(30), nullable=False)

    order_date = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    delivery_date = Column(DateTime, nullable=True)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.line_number",
    )

    __table_args__ = (
        Index("idx_orders_status_user", "status", "user_id"),
    )


class OrderItemModel(Base):
    """Order line item. Immutable after creation."""
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=new_uuid)
    order_id = Column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False)
    line_number = Column(Integer, nullable=False, default=0)
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)

    order = relationship("OrderModel", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
    )


class UploadModel(Base):
    """Metadata of an image stored at the object-storage provider."""
    __tablename__ = "uploads"

    id = Column(String(36), primary_key=True, default=new_uuid)
    public_id = Column(String(255), nullable=False, index=True)
    secure_url = Column(String(1000), nullable=False)
    original_filename = Column(String(255))
    bytes = Column(Integer)
    format = Column(String(20))
    width = Column(Integer)
    height = Column(Integer)
    created_at = Column(DateTime, default=utcnow)
