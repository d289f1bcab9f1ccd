"""Custom exception hierarchy for StockFlow.

Every error the inventory core raises derives from StockFlowException so the
API layer can translate it in one place. The categories mirror how a caller
should react:

- INVALID_REQUEST: fix the input, never retried
- NOT_FOUND: the referenced product/inventory/ledger row does not exist
- CONFLICT: uniqueness or concurrent-write clash, contention is retryable
- STORAGE: persistence failure, fatal to the current request

Error codes follow pattern: [CATEGORY][NUMBER]
- INV1xx: invalid request
- INV2xx: not found
- INV3xx: conflict
- SYS4xx: system/storage errors
"""

from __future__ import annotations

from typing import Any


class StockFlowException(Exception):
    """Base exception for all StockFlow application errors."""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        """Initialize exception with a human-readable message and metadata.

        Args:
            message: Message safe to show to the caller
            code: Unique error code (e.g., "INV101")
            status_code: HTTP status code (default: 400 Bad Request)
            details: Optional additional context
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response format."""
        return {
            "error": self.message,
            "code": self.code,
            "details": self.details,
        }


# ============================================================================
# INVALID REQUEST (INV100-199)
# ============================================================================

class InvalidRequestError(StockFlowException):
    """Malformed or semantically invalid input."""

    def __init__(self, message: str, details: dict[str, Any] | None = None, code: str = "INV100"):
        super().__init__(message=message, code=code, status_code=400, details=details)


class InsufficientStockError(InvalidRequestError):
    """OUT movement would take stock below zero without an admin override."""

    def __init__(self, product_id: int, available: int, requested: int):
        super().__init__(
            message=f"Insufficient stock. Available: {available}, Requested: {requested}",
            code="INV101",
            details={"product_id": product_id, "available": available, "requested": requested},
        )
        self.available = available
        self.requested = requested


# ============================================================================
# NOT FOUND (INV200-299)
# ============================================================================

class NotFoundError(StockFlowException):
    """Base class for missing resources."""

    def __init__(self, message: str, code: str, details: dict[str, Any] | None = None):
        super().__init__(message=message, code=code, status_code=404, details=details)


class InventoryNotFoundError(NotFoundError):
    """Product has no active stock snapshot, or the snapshot id is unknown."""

    def __init__(self, product_id: int | None = None, inventory_id: int | None = None):
        details: dict[str, Any] = {}
        if product_id is not None:
            details["product_id"] = product_id
        if inventory_id is not None:
            details["inventory_id"] = inventory_id
        message = "Product inventory not found" if inventory_id is None else "Inventory not found"
        super().__init__(message=message, code="INV200", details=details)


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: int | str | None = None):
        message = "Product not found" if product_id is None else f"Product {product_id} not found"
        super().__init__(
            message=message,
            code="INV201",
            details={"product_id": product_id} if product_id is not None else {},
        )


class CategoryNotFoundError(NotFoundError):
    def __init__(self, category_id: int):
        super().__init__(
            message=f"Category {category_id} not found",
            code="INV202",
            details={"category_id": category_id},
        )


class LedgerEntryNotFoundError(NotFoundError):
    def __init__(self, entry_id: int):
        super().__init__(
            message=f"Inventory log {entry_id} not found",
            code="INV203",
            details={"entry_id": entry_id},
        )


# ============================================================================
# CONFLICT (INV300-399)
# ============================================================================

class ConflictError(StockFlowException):
    """Base class for uniqueness and concurrency conflicts."""

    def __init__(self, message: str, code: str, details: dict[str, Any] | None = None):
        super().__init__(message=message, code=code, status_code=409, details=details)


class SnapshotAlreadyExistsError(ConflictError):
    def __init__(self, product_id: int):
        super().__init__(
            message=f"Inventory already initialized for product {product_id}",
            code="INV301",
            details={"product_id": product_id},
        )


class DuplicateSkuError(ConflictError):
    def __init__(self, sku: str):
        super().__init__(
            message=f"Product with SKU '{sku}' already exists",
            code="INV302",
            details={"sku": sku},
        )


class StockContentionError(ConflictError):
    """Concurrent writers kept invalidating the snapshot; safe to retry later."""

    def __init__(self, product_id: int, attempts: int):
        super().__init__(
            message=f"Stock for product {product_id} is being updated concurrently, please retry",
            code="INV303",
            details={"product_id": product_id, "attempts": attempts},
        )
        self.attempts = attempts


class ConcurrentUpdateError(ConflictError):
    """A snapshot changed between read and write; the caller may retry."""

    def __init__(self, operation: str):
        super().__init__(
            message=f"Could not {operation}: inventory was modified concurrently, please retry",
            code="INV304",
            details={"operation": operation},
        )


# ============================================================================
# SYSTEM ERRORS (SYS400-499)
# ============================================================================

class StorageError(StockFlowException):
    """Underlying persistence failure. Nothing from the request was committed."""

    def __init__(self, operation: str, reason: str | None = None):
        message = f"Failed to {operation}"
        super().__init__(
            message=message,
            code="SYS400",
            status_code=500,
            details={"operation": operation, "reason": reason} if reason else {"operation": operation},
        )
