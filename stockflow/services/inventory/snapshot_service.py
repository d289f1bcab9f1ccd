"""
Stock Snapshot Service.

Holds the current quantity and low-stock threshold per product. Reads are
channel and soft-delete scoped. Quantity is written only through
``_set_quantity``, which StockMovementService calls inside the same
transaction that appends the ledger entry.
"""
from __future__ import annotations

import logging
from typing import Sequence

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload

from stockflow.core.config import settings
from stockflow.core.exceptions import (
    InvalidRequestError,
    InventoryNotFoundError,
    ProductNotFoundError,
    SnapshotAlreadyExistsError,
)
from stockflow.models.inventory_models import Product, StockSnapshot
from .base import BaseInventoryService

logger = logging.getLogger(__name__)

THRESHOLD_ERROR = "Low stock threshold must be greater than or equal to 0"


class StockSnapshotService(BaseInventoryService):
    """Service for stock snapshot reads, threshold edits and initialization."""

    # ========================================================================
    # Reads
    # ========================================================================

    def get_by_product(self, product_id: int) -> StockSnapshot:
        snapshot = self._base_query().filter(StockSnapshot.product_id == product_id).first()
        if snapshot is None:
            raise InventoryNotFoundError(product_id=product_id)
        return snapshot

    def get(self, snapshot_id: int) -> StockSnapshot:
        snapshot = self._base_query().filter(StockSnapshot.id == snapshot_id).first()
        if snapshot is None:
            raise InventoryNotFoundError(inventory_id=snapshot_id)
        return snapshot

    def list_all(self, search: str | None = None) -> Sequence[StockSnapshot]:
        """List active snapshots, optionally filtered by product name or SKU."""
        query = self._base_query().join(StockSnapshot.product)
        if search and search.strip():
            search_term = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Product.name.ilike(search_term),
                    Product.sku.ilike(search_term),
                )
            )
        return query.order_by(Product.name, StockSnapshot.id).all()

    def list_low_stock(self) -> Sequence[StockSnapshot]:
        """
        Active snapshots at or below their threshold.

        Ordered by quantity for display; callers must not depend on it.
        """
        return self._base_query().options(
            joinedload(StockSnapshot.product).joinedload(Product.category),
        ).filter(
            StockSnapshot.quantity <= StockSnapshot.low_stock_threshold,
        ).order_by(StockSnapshot.quantity, StockSnapshot.id).all()

    # ========================================================================
    # Writes
    # ========================================================================

    def update_threshold(self, product_id: int, threshold: int) -> StockSnapshot:
        """Set the low-stock threshold. Quantity is never touched."""
        self._validate_threshold(threshold)
        return self._apply_threshold(self.get_by_product(product_id), threshold)

    def update_threshold_by_id(self, snapshot_id: int, threshold: int) -> StockSnapshot:
        self._validate_threshold(threshold)
        return self._apply_threshold(self.get(snapshot_id), threshold)

    def create_for_product(self, product_id: int, threshold: int | None = None) -> StockSnapshot:
        """
        Initialize stock for a newly created product with quantity 0.

        The product must be active and belong to this channel
        (ProductNotFoundError otherwise). Raises SnapshotAlreadyExistsError
        when the product already has a snapshot, active or not.
        """
        if threshold is None:
            threshold = settings.DEFAULT_LOW_STOCK_THRESHOLD
        self._validate_threshold(threshold)

        self._require_active_product(product_id)
        existing = self._db.query(StockSnapshot.id).filter(StockSnapshot.product_id == product_id).first()
        if existing is not None:
            raise SnapshotAlreadyExistsError(product_id)

        snapshot = StockSnapshot(
            channel_id=self._channel_id,
            product_id=product_id,
            quantity=0,
            low_stock_threshold=threshold,
            created_by_id=self._actor_id,
            updated_by_id=self._actor_id,
        )
        self._db.add(snapshot)
        try:
            self._db.flush()
        except IntegrityError as exc:
            # Lost a race with another initializer on the unique product_id
            raise SnapshotAlreadyExistsError(product_id) from exc
        logger.info("Initialized inventory for product %s (threshold=%s)", product_id, threshold)
        return snapshot

    def lock_for_product(self, product_id: int) -> StockSnapshot | None:
        """
        Read the snapshot with a row lock held until the transaction ends.

        Refreshes any copy already in the session so quantity and version
        come from the locked row.
        """
        return self._db.query(StockSnapshot).filter(
            StockSnapshot.product_id == product_id,
            StockSnapshot.channel_id == self._channel_id,
            StockSnapshot.is_active.is_(True),
        ).populate_existing().with_for_update().first()

    def _set_quantity(self, snapshot: StockSnapshot, new_quantity: int) -> None:
        """
        Write the quantity. Only StockMovementService may call this, and only
        after appending the ledger entry in the same transaction.

        The flush issues a versioned UPDATE; a concurrent writer surfaces here
        as StaleDataError.
        """
        snapshot.quantity = new_quantity
        snapshot.updated_by_id = self._actor_id
        self._db.flush()

    def deactivate_for_product(self, product_id: int) -> StockSnapshot | None:
        """Soft delete alongside the product. Ledger rows are left alone."""
        snapshot = self._base_query().filter(StockSnapshot.product_id == product_id).first()
        if snapshot is None:
            return None
        snapshot.is_active = False
        snapshot.updated_by_id = self._actor_id
        self._db.flush()
        return snapshot

    # ========================================================================
    # Private Helpers
    # ========================================================================

    def _base_query(self):
        return self._db.query(StockSnapshot).options(
            joinedload(StockSnapshot.product),
        ).filter(
            StockSnapshot.channel_id == self._channel_id,
            StockSnapshot.is_active.is_(True),
        )

    def _apply_threshold(self, snapshot: StockSnapshot, threshold: int) -> StockSnapshot:
        previous = snapshot.low_stock_threshold
        snapshot.low_stock_threshold = threshold
        snapshot.updated_by_id = self._actor_id
        self._db.flush()
        logger.info(
            "Low stock threshold for product %s: %s -> %s",
            snapshot.product_id, previous, threshold,
        )
        return snapshot

    @staticmethod
    def _validate_threshold(threshold: int) -> None:
        if threshold < 0:
            raise InvalidRequestError(THRESHOLD_ERROR, details={"low_stock_threshold": threshold})

    def _require_active_product(self, product_id: int) -> None:
        # Column query so no Product instance lands in the identity map
        found = self._db.query(Product.id).filter(
            Product.id == product_id,
            Product.channel_id == self._channel_id,
            Product.is_active.is_(True),
        ).first()
        if found is None:
            raise ProductNotFoundError(product_id)
