"""
Inventory Service Module.

InventoryService is a facade that composes the specialized services and owns
the transaction boundary for every write except stock movements, which
StockMovementService commits itself (it may need several attempts).

Usage:
    from stockflow.services.inventory import build_inventory_service

    service = build_inventory_service(db, channel_id, actor_id)

    product = service.create_product(data)       # product + zero-stock snapshot
    result = service.apply_movement(request)     # ledger entry + snapshot, atomically
    alerts = service.list_low_stock()
    check = service.reconcile(product.id)        # replay ledger against snapshot
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from stockflow import metrics
from stockflow.core.audit import log_audit_event
from stockflow.core.exceptions import (
    ConcurrentUpdateError,
    DuplicateSkuError,
    ProductNotFoundError,
    StorageError,
)
from stockflow.db.session import transaction
from stockflow.models.inventory_models import Category, Product, StockLedgerEntry, StockSnapshot
from stockflow.models.inventory_schemas import (
    CategoryCreate,
    LowStockItem,
    ProductCreate,
    ProductUpdate,
    ReconciliationOut,
    StockMovementRequest,
)

from .category_service import CategoryService
from .ledger_service import StockLedgerService
from .product_service import ProductService
from .snapshot_service import StockSnapshotService
from .stock_service import MovementResult, StockMovementService

logger = logging.getLogger(__name__)


class InventoryService:
    """
    Facade for inventory operations.

    Composes specialized services to provide a unified API while
    maintaining separation of concerns internally.
    """

    def __init__(self, db: Session, channel_id: int, actor_id: int | None = None):
        self._db = db
        self._channel_id = channel_id
        self._actor_id = actor_id

        self._categories = CategoryService(db, channel_id, actor_id)
        self._products = ProductService(db, channel_id, actor_id)
        self._snapshots = StockSnapshotService(db, channel_id, actor_id)
        self._ledger = StockLedgerService(db, channel_id, actor_id)
        self._stock = StockMovementService(db, channel_id, actor_id)

    # ========================================================================
    # Category Operations
    # ========================================================================

    def create_category(self, data: CategoryCreate) -> Category:
        with self._unit_of_work("create category"):
            return self._categories.create_category(data)

    def list_categories(self) -> Sequence[Category]:
        return self._categories.list_categories()

    # ========================================================================
    # Product Operations
    # ========================================================================

    def create_product(self, data: ProductCreate) -> Product:
        """
        Create a product and initialize its inventory in one transaction.

        The two steps stay separate calls so snapshot initialization can be
        exercised on its own; either both rows exist afterwards or neither.
        """
        try:
            with self._unit_of_work("create product"):
                product = self._products.create_product(data)
                snapshot = self._snapshots.create_for_product(product.id, data.low_stock_threshold)
        except StorageError as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise DuplicateSkuError(data.sku.strip()) from exc.__cause__
            raise

        log_audit_event(
            "inventory.initialize",
            user_id=self._actor_id,
            channel_id=self._channel_id,
            product_id=product.id,
            sku=product.sku,
            low_stock_threshold=snapshot.low_stock_threshold,
        )
        return self._products.require_product(product.id)

    def get_product(self, product_id: int) -> Product:
        return self._products.require_product(product_id)

    def get_product_by_sku(self, sku: str) -> Product:
        product = self._products.get_product_by_sku(sku)
        if product is None:
            raise ProductNotFoundError(sku)
        return product

    def list_products(self, category_id: int | None = None, search: str | None = None) -> Sequence[Product]:
        return self._products.list_products(category_id=category_id, search=search)

    def update_product(self, product_id: int, data: ProductUpdate) -> Product:
        with self._unit_of_work("update product"):
            product = self._products.update_product(product_id, data)
        return self._products.require_product(product.id)

    def delete_product(self, product_id: int) -> None:
        """Soft delete the product and its snapshot. Ledger history stays."""
        with self._unit_of_work("delete product"):
            self._products.deactivate_product(product_id)
            self._snapshots.deactivate_for_product(product_id)

    # ========================================================================
    # Stock Snapshot Operations
    # ========================================================================

    def get_inventory(self, snapshot_id: int) -> StockSnapshot:
        return self._snapshots.get(snapshot_id)

    def get_inventory_by_product(self, product_id: int) -> StockSnapshot:
        return self._snapshots.get_by_product(product_id)

    def list_inventory(self, search: str | None = None) -> Sequence[StockSnapshot]:
        return self._snapshots.list_all(search)

    def list_low_stock(self) -> list[LowStockItem]:
        return [self._build_low_stock_item(s) for s in self._snapshots.list_low_stock()]

    def update_threshold(self, product_id: int, threshold: int) -> StockSnapshot:
        with self._unit_of_work("update low stock threshold"):
            snapshot = self._snapshots.update_threshold(product_id, threshold)
        self._threshold_updated(snapshot)
        return snapshot

    def update_threshold_by_id(self, snapshot_id: int, threshold: int) -> StockSnapshot:
        with self._unit_of_work("update low stock threshold"):
            snapshot = self._snapshots.update_threshold_by_id(snapshot_id, threshold)
        self._threshold_updated(snapshot)
        return snapshot

    def reconcile(self, product_id: int) -> ReconciliationOut:
        """Compare the snapshot with a full replay of its ledger. Read only."""
        snapshot = self._snapshots.get_by_product(product_id)
        ledger_quantity, entry_count = self._ledger.replay(product_id)
        if ledger_quantity != snapshot.quantity:
            logger.error(
                "Stock drift for product %s: snapshot=%s ledger=%s",
                product_id, snapshot.quantity, ledger_quantity,
            )
        return ReconciliationOut(
            product_id=product_id,
            snapshot_quantity=snapshot.quantity,
            ledger_quantity=ledger_quantity,
            entry_count=entry_count,
            in_sync=ledger_quantity == snapshot.quantity,
        )

    # ========================================================================
    # Stock Movement Operations
    # ========================================================================

    def apply_movement(self, request: StockMovementRequest) -> MovementResult:
        return self._stock.apply(request)

    # ========================================================================
    # Ledger Operations
    # ========================================================================

    def get_log(self, entry_id: int) -> StockLedgerEntry:
        return self._ledger.get(entry_id)

    def list_logs(self) -> Sequence[StockLedgerEntry]:
        return self._ledger.list_all()

    def list_logs_by_product(self, product_id: int) -> Sequence[StockLedgerEntry]:
        return self._ledger.list_by_product(product_id)

    def list_logs_by_change_type(self, change_type: str) -> Sequence[StockLedgerEntry]:
        return self._ledger.list_by_change_type(change_type)

    def list_logs_by_date_range(self, start: str | None, end: str | None) -> Sequence[StockLedgerEntry]:
        return self._ledger.list_by_date_range(start, end)

    # ========================================================================
    # Private Helpers
    # ========================================================================

    @contextmanager
    def _unit_of_work(self, operation: str) -> Iterator[None]:
        """Commit on success. Version clashes become ConcurrentUpdateError, other storage failures StorageError."""
        try:
            with transaction(self._db):
                yield
        except StaleDataError as exc:
            logger.warning("Concurrent update while trying to %s", operation)
            raise ConcurrentUpdateError(operation) from exc
        except SQLAlchemyError as exc:
            logger.exception("Failed to %s", operation)
            raise StorageError(operation, reason=type(exc).__name__) from exc

    def _threshold_updated(self, snapshot: StockSnapshot) -> None:
        metrics.threshold_updated()
        log_audit_event(
            "inventory.threshold.update",
            user_id=self._actor_id,
            channel_id=self._channel_id,
            product_id=snapshot.product_id,
            low_stock_threshold=snapshot.low_stock_threshold,
        )

    @staticmethod
    def _build_low_stock_item(snapshot: StockSnapshot) -> LowStockItem:
        product = snapshot.product
        return LowStockItem(
            product_id=snapshot.product_id,
            product_name=product.name,
            product_sku=product.sku,
            current_stock=snapshot.quantity,
            low_stock_threshold=snapshot.low_stock_threshold,
            category_name=product.category.name if product.category else None,
        )


def build_inventory_service(db: Session, channel_id: int, actor_id: int | None = None) -> InventoryService:
    """Factory function to create an InventoryService instance."""
    return InventoryService(db, channel_id, actor_id)


__all__ = [
    "InventoryService",
    "MovementResult",
    "build_inventory_service",
]
