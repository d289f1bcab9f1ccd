"""
Inventory models: product catalogue anchors plus the stock ledger and the
per-product stock snapshot derived from it.

The ledger (StockLedgerEntry) is the source of truth and is append-only.
The snapshot (StockSnapshot) is a materialized current quantity, written only
by the stock movement processor in the same transaction as the ledger row
that explains the change.
"""
from __future__ import annotations

import datetime as dt
import enum
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from stockflow.db.base_class import Base


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class StockChangeType(str, enum.Enum):
    """Direction of a stock movement."""
    IN = "IN"           # Stock received
    OUT = "OUT"         # Stock issued / sold
    ADJUST = "ADJUST"   # Signed correction (count, damage, found stock)


class Category(Base):
    """Product category, scoped to a channel."""
    __tablename__ = "category"
    __table_args__ = (
        Index("ix_category_channel_name", "channel_id", "name"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    channel_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=true())
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )

    products: Mapped[list[Product]] = relationship("Product", back_populates="category")

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name='{self.name}')>"


class Product(Base):
    """
    Product identity anchor.

    Owned by the product CRUD layer; the inventory core only reads it by id.
    SKU is unique per channel and never changes after creation.
    """
    __tablename__ = "product"
    __table_args__ = (
        Index("ix_product_channel_sku", "channel_id", "sku", unique=True),
        Index("ix_product_channel_name", "channel_id", "name"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    channel_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    category_id: Mapped[int] = mapped_column(ForeignKey("category.id"), nullable=False, index=True)

    sku: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    cost_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    selling_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=true())
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[dt.datetime | None] = mapped_column(
        DateTime(timezone=True),
        onupdate=utcnow,
        nullable=True,
    )

    category: Mapped[Category] = relationship("Category", back_populates="products")
    inventory: Mapped[StockSnapshot | None] = relationship(
        "StockSnapshot",
        back_populates="product",
        uselist=False,
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, sku='{self.sku}', name='{self.name}')>"


class StockSnapshot(Base):
    """
    Current stock quantity for one product.

    Exactly one row per product (unique product_id). ``quantity`` is only ever
    written by StockMovementService together with a StockLedgerEntry; the
    threshold may be edited on its own. ``version_id`` turns every UPDATE into
    a compare-and-set so a concurrent writer cannot silently overwrite it.
    """
    __tablename__ = "stock_snapshot"

    id: Mapped[int] = mapped_column(primary_key=True)
    channel_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("product.id"), nullable=False, unique=True)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    low_stock_threshold: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=true())
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[dt.datetime | None] = mapped_column(
        DateTime(timezone=True),
        onupdate=utcnow,
        nullable=True,
    )
    created_by_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    updated_by_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    product: Mapped[Product] = relationship("Product", back_populates="inventory")

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return (
            f"<StockSnapshot(id={self.id}, product_id={self.product_id}, "
            f"qty={self.quantity}, threshold={self.low_stock_threshold})>"
        )

    @property
    def is_low_stock(self) -> bool:
        """Low when current stock is at or below the threshold."""
        return self.quantity <= self.low_stock_threshold


class StockLedgerEntry(Base):
    """
    Immutable record of one accepted stock movement.

    ``quantity`` is the magnitude the caller asked for and is always positive;
    ``net_change`` carries the direction. Summing ``net_change`` per product
    reproduces the snapshot quantity. No code path updates or deletes rows.
    """
    __tablename__ = "stock_ledger_entry"
    __table_args__ = (
        Index("ix_stock_ledger_channel_product_logged", "channel_id", "product_id", "logged_at"),
        Index("ix_stock_ledger_channel_logged", "channel_id", "logged_at"),
        CheckConstraint("quantity > 0", name="ck_stock_ledger_entry_quantity_positive"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    channel_id: Mapped[int] = mapped_column(Integer, nullable=False)
    product_id: Mapped[int] = mapped_column(ForeignKey("product.id"), nullable=False, index=True)

    change_type: Mapped[StockChangeType] = mapped_column(
        Enum(StockChangeType, name="stockchangetype", values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        index=True,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    net_change: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity_before: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity_after: Mapped[int] = mapped_column(Integer, nullable=False)

    reason: Mapped[str] = mapped_column(Text, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    logged_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    actor_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    product: Mapped[Product] = relationship("Product")

    def __repr__(self) -> str:
        return (
            f"<StockLedgerEntry(id={self.id}, product_id={self.product_id}, "
            f"type={self.change_type.value}, net={self.net_change})>"
        )
