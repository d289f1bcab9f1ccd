"""
Category Service - lookups and creation for product categories.

Writes are flushed only; the caller owns the transaction.
"""
from __future__ import annotations

import logging
from typing import Sequence

from stockflow.core.exceptions import CategoryNotFoundError
from stockflow.models.inventory_models import Category
from stockflow.models.inventory_schemas import CategoryCreate
from stockflow.services.inventory.base import BaseInventoryService

logger = logging.getLogger(__name__)


class CategoryService(BaseInventoryService):
    """Service for product category operations within one channel."""

    def create_category(self, data: CategoryCreate) -> Category:
        category = Category(
            channel_id=self._channel_id,
            name=data.name.strip(),
        )
        self._db.add(category)
        self._db.flush()
        logger.info("Created category %s (id=%s) for channel %s", category.name, category.id, self._channel_id)
        return category

    def get_category(self, category_id: int) -> Category | None:
        """Get an active category by ID."""
        return self._db.query(Category).filter(
            Category.id == category_id,
            Category.channel_id == self._channel_id,
            Category.is_active.is_(True),
        ).first()

    def require_category(self, category_id: int) -> Category:
        category = self.get_category(category_id)
        if category is None:
            raise CategoryNotFoundError(category_id)
        return category

    def list_categories(self) -> Sequence[Category]:
        """List active categories ordered by name."""
        return self._db.query(Category).filter(
            Category.channel_id == self._channel_id,
            Category.is_active.is_(True),
        ).order_by(Category.name).all()
