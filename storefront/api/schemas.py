"""
API Schemas for Storefront

Pydantic models for request validation and response serialization:
- User and login models
- Product and category models
- Order models
- Upload models

Design Decisions:
1. camelCase on the wire, snake_case in Python (populate_by_name accepts both)
2. Separate Request/Response: responses never carry a password field
3. Partial updates: every field of an *Update model is optional
4. Money is Decimal end to end and serialized as a string
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from ..storage.models import OrderStatus, PaymentMethod, UserRole


class CamelModel(BaseModel):
    """Base model using camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# User Schemas
# =============================================================================

class UserCreate(CamelModel):
    """Registration request. Roles other than 'user' need an admin token."""

    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=32)
    address: Optional[str] = None
    role: UserRole = UserRole.USER

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "ann@example.com",
                "password": "s3cret!",
                "firstName": "Ann",
                "lastName": "Lee",
                "phone": "+1 555 0100",
            }
        }
    )


class UserUpdate(CamelModel):
    """User update request (partial). Only admins may change role."""

    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6, max_length=72)
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=32)
    address: Optional[str] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


class LoginRequest(CamelModel):
    email: str
    password: str


class TokenResponse(CamelModel):
    token: str


class UserResponse(CamelModel):
    """User response model."""

    id: int
    email: str
    first_name: str
    last_name: str
    role: UserRole
    phone: Optional[str] = None
    address: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# Catalog Schemas
# =============================================================================

class Variant(CamelModel):
    """One color/size combination of a product."""

    color: str = Field(..., min_length=1)
    size: str = Field(..., min_length=1)
    stock: int = Field(..., ge=0)


class ProductCreate(CamelModel):
    """Product creation request."""

    name: str = Field(..., min_length=1, max_length=200)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    description: str = Field(..., min_length=1)
    brand: str = Field(..., min_length=1, max_length=100)
    variants: list[Variant] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Trail Runner",
                "price": "89.99",
                "description": "Lightweight trail running shoe",
                "brand": "Stride",
                "variants": [{"color": "red", "size": "42", "stock": 5}],
            }
        }
    )


class ProductUpdate(CamelModel):
    """Product update request (partial)."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    description: Optional[str] = Field(None, min_length=1)
    brand: Optional[str] = Field(None, min_length=1, max_length=100)
    variants: Optional[list[Variant]] = None


class ProductResponse(CamelModel):
    id: str
    name: str
    price: Decimal
    description: str
    brand: str
    variants: list[Variant] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    is_active: bool = True


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class CategoryResponse(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# Order Schemas
# =============================================================================

class OrderItemIn(CamelModel):
    """One line item of an order request."""

    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)


class OrderCreate(CamelModel):
    """
    Order creation request.

    userId defaults to the authenticated user. The total is always computed
    server-side from the items.
    """

    user_id: Optional[int] = Field(None, gt=0)
    shipping_address: str = Field(..., min_length=10)
    payment_method: PaymentMethod
    order_items: list[OrderItemIn] = Field(..., min_length=1)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "shippingAddress": "123 Main Street, Springfield",
                "paymentMethod": "credit_card",
                "orderItems": [
                    {"productId": "2f1c...", "quantity": 2, "price": "10.00"},
                    {"productId": "9ab4...", "quantity": 1, "price": "5.00"},
                ],
            }
        }
    )


class OrderUpdate(CamelModel):
    """Order header update (partial). Line items cannot be changed."""

    shipping_address: Optional[str] = Field(None, min_length=10)
    payment_method: Optional[PaymentMethod] = None
    status: Optional[OrderStatus] = None


class OrderStatusUpdate(CamelModel):
    status: OrderStatus


class OrderItemResponse(CamelModel):
    id: str
    order_id: str
    product_id: str
    quantity: int
    price: Decimal


class OrderResponse(CamelModel):
    """Order with its line items."""

    id: str
    user_id: int
    total_amount: Decimal
    status: OrderStatus
    shipping_address: str
    payment_method: PaymentMethod
    order_date: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    delivery_date: Optional[datetime] = None
    items: list[OrderItemResponse] = Field(default_factory=list)


class MessageResponse(CamelModel):
    message: str


# =============================================================================
# Upload Schemas
# =============================================================================

class DeleteUploadRequest(CamelModel):
    public_id: str = Field(..., min_length=1)


class DeleteMultipleRequest(CamelModel):
    public_ids: list[str] = Field(..., min_length=1, max_length=10)


# =============================================================================
# Error Schemas
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    detail: Optional[str] = None
    code: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "Order not found",
                "detail": "No order with ID 'abc123' exists",
                "code": "NOT_FOUND",
                "timestamp": "2025-01-20T12:00:00Z",
            }
        }
    )


# =============================================================================
# Health Check
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str
    uptime_seconds: float
    database: str = "connected"
