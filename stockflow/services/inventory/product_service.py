"""
Product Service - CRUD operations for products.

The inventory core only needs ``get_product``; the rest backs the product
endpoints. Writes are flushed only; the facade owns the transaction.
"""
from __future__ import annotations

import logging
from typing import Sequence

from sqlalchemy import or_
from sqlalchemy.orm import joinedload

from stockflow.core.exceptions import DuplicateSkuError, ProductNotFoundError
from stockflow.models.inventory_models import Product
from stockflow.models.inventory_schemas import ProductCreate, ProductUpdate
from stockflow.services.inventory.base import BaseInventoryService
from stockflow.services.inventory.category_service import CategoryService

logger = logging.getLogger(__name__)


class ProductService(BaseInventoryService):
    """
    Service for product operations.

    Each channel has its own catalogue with independent SKUs.
    """

    def create_product(self, data: ProductCreate) -> Product:
        """Create a product. Stock is initialized separately by the caller."""
        sku = data.sku.strip()
        if self.get_product_by_sku(sku, include_inactive=True):
            raise DuplicateSkuError(sku)

        CategoryService(self._db, self._channel_id, self._actor_id).require_category(data.category_id)

        product = Product(
            channel_id=self._channel_id,
            sku=sku,
            name=data.name,
            description=data.description,
            category_id=data.category_id,
            cost_price=data.cost_price,
            selling_price=data.selling_price,
        )
        self._db.add(product)
        self._db.flush()  # Get the product ID
        logger.info("Created product %s (sku=%s) for channel %s", product.name, product.sku, self._channel_id)
        return product

    def get_product(self, product_id: int) -> Product | None:
        """Get an active product by ID with category and stock loaded."""
        return self._db.query(Product).options(
            joinedload(Product.category),
            joinedload(Product.inventory),
        ).filter(
            Product.id == product_id,
            Product.channel_id == self._channel_id,
            Product.is_active.is_(True),
        ).first()

    def require_product(self, product_id: int) -> Product:
        product = self.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def get_product_by_sku(self, sku: str, include_inactive: bool = False) -> Product | None:
        query = self._db.query(Product).options(
            joinedload(Product.category),
            joinedload(Product.inventory),
        ).filter(
            Product.channel_id == self._channel_id,
            Product.sku == sku,
        )
        if not include_inactive:
            query = query.filter(Product.is_active.is_(True))
        return query.first()

    def list_products(self, category_id: int | None = None, search: str | None = None) -> Sequence[Product]:
        """List active products ordered by name."""
        query = self._db.query(Product).options(
            joinedload(Product.category),
            joinedload(Product.inventory),
        ).filter(
            Product.channel_id == self._channel_id,
            Product.is_active.is_(True),
        )

        if category_id:
            query = query.filter(Product.category_id == category_id)

        if search:
            search_term = f"%{search}%"
            query = query.filter(
                or_(
                    Product.name.ilike(search_term),
                    Product.sku.ilike(search_term),
                )
            )

        return query.order_by(Product.name).all()

    def update_product(self, product_id: int, data: ProductUpdate) -> Product:
        """Update descriptive fields. SKU and quantity are not editable."""
        product = self.require_product(product_id)
        update_data = data.model_dump(exclude_unset=True)

        if update_data.get("category_id") is not None:
            CategoryService(self._db, self._channel_id, self._actor_id).require_category(update_data["category_id"])

        for key, value in update_data.items():
            if value is None and key in ("name", "category_id", "cost_price", "selling_price"):
                continue
            setattr(product, key, value)

        self._db.flush()
        logger.info("Updated product %s (id=%s)", product.name, product.id)
        return product

    def deactivate_product(self, product_id: int) -> Product:
        """Soft delete a product (set is_active=False)."""
        product = self.require_product(product_id)
        product.is_active = False
        self._db.flush()
        logger.info("Deleted product %s (id=%s)", product.name, product.id)
        return product
