"""
Stock Movement Service.

The only path through which a snapshot quantity changes. A movement is
validated without touching storage, then applied as one unit of work:

    lock snapshot -> compute new quantity -> guard OUT -> append ledger
    entry -> write snapshot -> commit

The snapshot row is read ``FOR UPDATE`` and its UPDATE is versioned. If the
version check still fails (another writer got in first), the whole unit of
work is rolled back and replayed, up to STOCK_MOVEMENT_MAX_ATTEMPTS times.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from stockflow import metrics
from stockflow.core.audit import log_audit_event, log_failure
from stockflow.core.config import settings
from stockflow.core.exceptions import (
    InsufficientStockError,
    InvalidRequestError,
    InventoryNotFoundError,
    StockContentionError,
    StorageError,
)
from stockflow.db.session import transaction
from stockflow.models.inventory_models import StockChangeType
from stockflow.models.inventory_schemas import StockMovementRequest
from .base import BaseInventoryService
from .ledger_service import StockLedgerService, parse_change_type
from .snapshot_service import StockSnapshotService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Movement:
    """A validated movement request."""
    product_id: int
    change_type: StockChangeType
    signed_change: int
    reason: str
    notes: str | None = None
    admin_override: bool = False

    @property
    def magnitude(self) -> int:
        return abs(self.signed_change)


@dataclass(frozen=True)
class MovementResult:
    product_id: int
    change_type: StockChangeType
    previous_quantity: int
    new_quantity: int
    signed_change: int
    entry_id: int

    @property
    def message(self) -> str:
        return f"Stock {self.change_type.value} recorded successfully"


class StockMovementService(BaseInventoryService):
    """Service that applies stock movements."""

    # ========================================================================
    # Apply
    # ========================================================================

    def apply(self, request: StockMovementRequest) -> MovementResult:
        """
        Apply one movement atomically.

        Raises:
            InvalidRequestError: bad quantity, change type or reason, or an
                OUT that would go negative without admin_override
            InventoryNotFoundError: the product has no active snapshot
            StockContentionError: version conflicts outlasted every retry
            StorageError: any other persistence failure
        """
        movement = self.validate(request)

        max_attempts = settings.STOCK_MOVEMENT_MAX_ATTEMPTS
        with metrics.time_stock_movement():
            for attempt in range(1, max_attempts + 1):
                try:
                    with transaction(self._db):
                        result = self._apply_once(movement)
                    break
                except StaleDataError:
                    metrics.stock_movement_conflict()
                    logger.warning(
                        "Concurrent update on stock for product %s (attempt %s/%s)",
                        movement.product_id, attempt, max_attempts,
                    )
                except InventoryNotFoundError:
                    self._reject(movement, "not_found")
                    raise
                except InsufficientStockError as exc:
                    self._reject(movement, "insufficient_stock", available=exc.available)
                    raise
                except SQLAlchemyError as exc:
                    logger.exception("Stock movement failed for product %s", movement.product_id)
                    self._reject(movement, "storage_error")
                    raise StorageError("record stock movement", reason=type(exc).__name__) from exc
            else:
                self._reject(movement, "contention")
                raise StockContentionError(movement.product_id, max_attempts)

        metrics.stock_movement_recorded(movement.change_type.value)
        log_audit_event(
            "inventory.movement",
            user_id=self._actor_id,
            channel_id=self._channel_id,
            product_id=result.product_id,
            change_type=result.change_type.value,
            quantity=movement.magnitude,
            previous_quantity=result.previous_quantity,
            new_quantity=result.new_quantity,
            ledger_entry_id=result.entry_id,
            admin_override=movement.admin_override,
        )
        logger.info(
            "Stock %s for product %s: %s -> %s (change: %s)",
            result.change_type.value, result.product_id,
            result.previous_quantity, result.new_quantity, result.signed_change,
        )
        return result

    def validate(self, request: StockMovementRequest) -> Movement:
        """
        Check a request without any storage access. First failure wins:
        quantity, then change type, then reason.

        IN and OUT take a positive quantity. ADJUST takes a signed, non-zero
        quantity whose sign is the direction.
        """
        raw_type = (request.change_type or "").strip().upper()
        quantity = request.quantity

        if quantity == 0 or (quantity < 0 and raw_type != StockChangeType.ADJUST.value):
            message = (
                "Quantity must not be zero for ADJUST"
                if raw_type == StockChangeType.ADJUST.value
                else "Quantity must be greater than 0"
            )
            self._reject_request(request, "invalid_quantity")
            raise InvalidRequestError(message, details={"quantity": quantity})

        try:
            change_type = parse_change_type(raw_type)
        except InvalidRequestError:
            self._reject_request(request, "invalid_change_type")
            raise

        reason = (request.reason or "").strip()
        if not reason:
            self._reject_request(request, "missing_reason")
            raise InvalidRequestError("Reason is required")

        if change_type is StockChangeType.IN:
            signed_change = quantity
        elif change_type is StockChangeType.OUT:
            signed_change = -quantity
        else:
            signed_change = quantity

        return Movement(
            product_id=request.product_id,
            change_type=change_type,
            signed_change=signed_change,
            reason=reason,
            notes=request.notes,
            admin_override=request.admin_override,
        )

    # ========================================================================
    # Private Helpers
    # ========================================================================

    def _apply_once(self, movement: Movement) -> MovementResult:
        snapshots = StockSnapshotService(self._db, self._channel_id, self._actor_id)
        ledger = StockLedgerService(self._db, self._channel_id, self._actor_id)

        snapshot = snapshots.lock_for_product(movement.product_id)
        if snapshot is None:
            raise InventoryNotFoundError(product_id=movement.product_id)

        previous = snapshot.quantity
        new_quantity = previous + movement.signed_change

        if (
            movement.change_type is StockChangeType.OUT
            and new_quantity < 0
            and not movement.admin_override
        ):
            raise InsufficientStockError(movement.product_id, available=previous, requested=movement.magnitude)

        entry = ledger.append(
            product_id=movement.product_id,
            change_type=movement.change_type,
            quantity=movement.magnitude,
            net_change=movement.signed_change,
            quantity_before=previous,
            quantity_after=new_quantity,
            reason=movement.reason,
            notes=movement.notes,
        )
        snapshots._set_quantity(snapshot, new_quantity)

        return MovementResult(
            product_id=movement.product_id,
            change_type=movement.change_type,
            previous_quantity=previous,
            new_quantity=new_quantity,
            signed_change=movement.signed_change,
            entry_id=entry.id,
        )

    def _reject(self, movement: Movement, reason: str, **extra) -> None:
        metrics.stock_movement_rejected(reason)
        log_failure(
            "inventory.movement",
            user_id=self._actor_id,
            error=reason,
            channel_id=self._channel_id,
            product_id=movement.product_id,
            change_type=movement.change_type.value,
            quantity=movement.magnitude,
            **extra,
        )

    def _reject_request(self, request: StockMovementRequest, reason: str) -> None:
        metrics.stock_movement_rejected(reason)
        log_failure(
            "inventory.movement",
            user_id=self._actor_id,
            error=reason,
            channel_id=self._channel_id,
            product_id=request.product_id,
            change_type=request.change_type,
            quantity=request.quantity,
        )
