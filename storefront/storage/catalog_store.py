"""
Catalog Store

Products (with their embedded variant list) and categories. Plain CRUD:
updates merge the provided fields onto the stored record, deletes of
products are unconditional.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from loguru import logger
from sqlalchemy import or_

from ..exceptions import NotFoundError
from .database import Database
from .models import CategoryModel, ProductModel, utcnow

PRODUCT_FIELDS = {"name", "price", "description", "brand", "variants"}
CATEGORY_FIELDS = {"name", "description", "is_active"}


def escape_like(value: str) -> str:
    """Make % and _ in user input match literally in a LIKE pattern."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass
class StoredProduct:
    """Data class for product transfer."""

    id: str
    name: str
    price: Decimal
    description: str
    brand: str
    variants: list[dict] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, model: ProductModel) -> "StoredProduct":
        return cls(
            id=model.id,
            name=model.name,
            price=model.price,
            description=model.description,
            brand=model.brand,
            variants=list(model.variants or []),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


@dataclass
class StoredCategory:
    """Data class for category transfer."""

    id: int
    name: str
    description: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, model: CategoryModel) -> "StoredCategory":
        return cls(
            id=model.id,
            name=model.name,
            description=model.description,
            is_active=bool(model.is_active),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


class ProductStore:
    """Repository for products."""

    def __init__(self, database: Database):
        self.database = database

    def create(
        self,
        name: str,
        price: Decimal,
        description: str,
        brand: str,
        variants: Optional[list[dict]] = None,
    ) -> StoredProduct:
        """
        Create a new product.

        Args:
            name: Product name
            price: Unit price (non-negative)
            description: Long description
            brand: Brand name
            variants: [{"color", "size", "stock"}, ...]

        Returns:
            Created StoredProduct
        """
        logger.info(f"Creating product: {name}")

        with self.database.get_session() as session:
            product = ProductModel(
                name=name,
                price=price,
                description=description,
                brand=brand,
                variants=list(variants or []),
            )
            session.add(product)
            session.commit()
            session.refresh(product)

            return StoredProduct.from_model(product)

    def get(self, product_id: str) -> StoredProduct:
        """
        Get product by ID.

        Raises:
            NotFoundError: No such product
        """
        with self.database.get_session() as session:
            product = session.get(ProductModel, product_id)
            if product is None:
                raise NotFoundError("Product", product_id)
            return StoredProduct.from_model(product)

    def list_all(self) -> list[StoredProduct]:
        with self.database.get_session() as session:
            products = session.query(ProductModel).order_by(
                ProductModel.created_at.asc(),
                ProductModel.id.asc(),
            ).all()
            return [StoredProduct.from_model(p) for p in products]

    def update(self, product_id: str, **updates) -> StoredProduct:
        """
        Merge fields onto an existing product.

        Raises:
            NotFoundError: No such product
        """
        logger.info(f"Updating product: {product_id}")

        with self.database.get_session() as session:
            product = session.get(ProductModel, product_id)
            if product is None:
                raise NotFoundError("Product", product_id)

            for key, value in updates.items():
                if key in PRODUCT_FIELDS and value is not None:
                    setattr(product, key, value)

            product.updated_at = utcnow()
            session.commit()
            session.refresh(product)

            return StoredProduct.from_model(product)

    def delete(self, product_id: str) -> None:
        """Delete a product. Deleting a missing id is not an error."""
        with self.database.get_session() as session:
            deleted = session.query(ProductModel).filter(
                ProductModel.id == product_id,
            ).delete(synchronize_session=False)
            session.commit()

        logger.info(f"Deleted product {product_id} ({deleted} row)")

    def missing_ids(self, product_ids: Iterable[str]) -> set[str]:
        """Return the subset of ids with no product behind them."""
        wanted = set(product_ids)
        if not wanted:
            return set()

        with self.database.get_session() as session:
            found = session.query(ProductModel.id).filter(
                ProductModel.id.in_(wanted),
            ).all()

        return wanted - {row[0] for row in found}


class CategoryStore:
    """Repository for categories."""

    def __init__(self, database: Database):
        self.database = database

    def create(
        self,
        name: str,
        description: Optional[str] = None,
        is_active: bool = True,
    ) -> StoredCategory:
        logger.info(f"Creating category: {name}")

        with self.database.get_session() as session:
            category = CategoryModel(
                name=name,
                description=description,
                is_active=is_active,
            )
            session.add(category)
            session.commit()
            session.refresh(category)

            return StoredCategory.from_model(category)

    def get(self, category_id: int) -> StoredCategory:
        """
        Get category by ID.

        Raises:
            NotFoundError: No such category
        """
        with self.database.get_session() as session:
            category = session.get(CategoryModel, category_id)
            if category is None:
                raise NotFoundError("Category", category_id)
            return StoredCategory.from_model(category)

    def list_categories(
        self,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> list[StoredCategory]:
        """
        List categories.

        Args:
            is_active: Only categories with this flag
            search: Case-insensitive substring of name or description

        Returns:
            Matching categories ordered by name
        """
        with self.database.get_session() as session:
            query = session.query(CategoryModel)

            if is_active is not None:
                query = query.filter(CategoryModel.is_active == is_active)

            if search:
                pattern = f"%{escape_like(search)}%"
                query = query.filter(
                    or_(
                        CategoryModel.name.ilike(pattern, escape="\\"),
                        CategoryModel.description.ilike(pattern, escape="\\"),
                    )
                )

            categories = query.order_by(
                CategoryModel.name.asc(),
                CategoryModel.id.asc(),
            ).all()

            return [StoredCategory.from_model(c) for c in categories]

    def update(self, category_id: int, **updates) -> StoredCategory:
        """
        Merge fields onto an existing category.

        Raises:
            NotFoundError: No such category
        """
        logger.info(f"Updating category: {category_id}")

        with self.database.get_session() as session:
            category = session.get(CategoryModel, category_id)
            if category is None:
                raise NotFoundError("Category", category_id)

            for key, value in updates.items():
                if key in CATEGORY_FIELDS and value is not None:
                    setattr(category, key, value)

            category.updated_at = utcnow()
            session.commit()
            session.refresh(category)

            return StoredCategory.from_model(category)

    def delete(self, category_id: int) -> None:
        """
        Delete a category.

        Raises:
            NotFoundError: No such category
        """
        with self.database.get_session() as session:
            category = session.get(CategoryModel, category_id)
            if category is None:
                raise NotFoundError("Category", category_id)
            session.delete(category)
            session.commit()

        logger.info(f"Deleted category: {category_id}")
