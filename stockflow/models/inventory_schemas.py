"""
Pydantic schemas for the Inventory API.

Field names are snake_case in Python and camelCase on the wire; requests
accept either spelling.
"""
from __future__ import annotations

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# ============================================================================
# Category Schemas
# ============================================================================

class CategoryCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)


class CategoryOut(ApiModel):
    id: int
    name: str
    is_active: bool = True


# ============================================================================
# Product Schemas
# ============================================================================

class ProductCreate(ApiModel):
    """Schema for creating a product. Inventory is initialized alongside it."""
    sku: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    category_id: int
    description: str | None = None
    cost_price: Decimal = Field(..., ge=0)
    selling_price: Decimal = Field(..., ge=0)
    low_stock_threshold: int | None = None  # Falls back to DEFAULT_LOW_STOCK_THRESHOLD


class ProductUpdate(ApiModel):
    """Schema for updating a product. SKU and stock are not editable here."""
    name: str | None = Field(None, min_length=1, max_length=200)
    category_id: int | None = None
    description: str | None = None
    cost_price: Decimal | None = Field(None, ge=0)
    selling_price: Decimal | None = Field(None, ge=0)


class ProductOut(ApiModel):
    id: int
    sku: str
    name: str
    description: str | None = None
    category_id: int
    category_name: str | None = None
    cost_price: Decimal
    selling_price: Decimal
    is_active: bool = True

    # From the stock snapshot
    current_stock: int = 0
    is_low_stock: bool = False

    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


# ============================================================================
# Inventory (Stock Snapshot) Schemas
# ============================================================================

class InventoryOut(ApiModel):
    id: int
    product_id: int
    quantity: int
    low_stock_threshold: int
    is_low_stock: bool
    is_active: bool = True

    # Denormalized for display
    product_name: str | None = None
    product_sku: str | None = None

    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None
    created_by_id: int | None = None
    updated_by_id: int | None = None


class ThresholdUpdate(ApiModel):
    # Range is checked by the service so the caller gets INVALID_REQUEST, not 422
    low_stock_threshold: int


class LowStockItem(ApiModel):
    product_id: int
    product_name: str
    product_sku: str
    current_stock: int
    low_stock_threshold: int
    category_name: str | None = None


class ReconciliationOut(ApiModel):
    product_id: int
    snapshot_quantity: int
    ledger_quantity: int
    entry_count: int
    in_sync: bool


# ============================================================================
# Stock Movement Schemas
# ============================================================================

class StockMovementRequest(ApiModel):
    """
    Request to move stock.

    ``quantity`` is a positive magnitude for IN and OUT and a signed amount
    for ADJUST. Business validation happens in StockMovementService so every
    rule reports as INVALID_REQUEST in a fixed order.
    """
    product_id: int
    change_type: str
    quantity: int
    reason: str = ""
    notes: str | None = None
    admin_override: bool = False


class StockMovementResponse(ApiModel):
    success: bool = True
    message: str
    product_id: int
    previous_stock: int
    new_stock: int
    change_amount: int


# ============================================================================
# Inventory Log (Ledger) Schemas
# ============================================================================

class InventoryLogOut(ApiModel):
    id: int
    product_id: int
    product_name: str | None = None
    product_sku: str | None = None

    change_type: str
    quantity: int
    net_change: int
    stock_after: int

    reason: str
    notes: str | None = None

    logged_at: dt.datetime
    actor_id: int | None = None


class ActionResult(ApiModel):
    success: bool = True
    message: str
