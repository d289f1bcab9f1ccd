"""
Stock Ledger Service.

Append-only history of stock movements. There is intentionally no update or
delete method. List reads are channel scoped and newest first, ties broken
by id so entries logged in the same instant keep insertion order reversed.
"""
from __future__ import annotations

import datetime as dt
import logging
from typing import Sequence

from sqlalchemy import func
from sqlalchemy.orm import joinedload

from stockflow.core.exceptions import InvalidRequestError, LedgerEntryNotFoundError
from stockflow.models.inventory_models import StockChangeType, StockLedgerEntry, utcnow
from .base import BaseInventoryService

logger = logging.getLogger(__name__)

_SIGN = {
    StockChangeType.IN: 1,
    StockChangeType.OUT: -1,
}


def parse_change_type(value: str | StockChangeType) -> StockChangeType:
    """Boundary conversion from the wire string to the closed enum."""
    if isinstance(value, StockChangeType):
        return value
    try:
        return StockChangeType((value or "").strip().upper())
    except ValueError:
        raise InvalidRequestError(
            "Invalid change type. Must be IN, OUT, or ADJUST",
            details={"change_type": value},
        ) from None


def _parse_date(value: str | dt.date | None, field: str) -> dt.date | None:
    if value is None or isinstance(value, dt.date):
        return value
    value = value.strip()
    if not value:
        return None
    try:
        return dt.date.fromisoformat(value)
    except ValueError:
        raise InvalidRequestError(
            f"Invalid {field}, expected YYYY-MM-DD",
            details={field: value},
        ) from None


class StockLedgerService(BaseInventoryService):
    """Service for appending and querying ledger entries."""

    def append(
        self,
        *,
        product_id: int,
        change_type: StockChangeType,
        quantity: int,
        net_change: int,
        quantity_before: int,
        quantity_after: int,
        reason: str,
        notes: str | None = None,
        logged_at: dt.datetime | None = None,
    ) -> StockLedgerEntry:
        """
        Insert one immutable entry and flush to obtain its id.

        ``logged_at`` defaults to the current time. A caller-supplied value is
        only meant for backfills and goes through the same checks.
        """
        if not isinstance(change_type, StockChangeType):
            raise InvalidRequestError("Invalid change type. Must be IN, OUT, or ADJUST")
        if quantity <= 0:
            raise InvalidRequestError("Quantity must be greater than 0")
        sign = _SIGN.get(change_type)  # ADJUST may go either way
        if abs(net_change) != quantity or (sign is not None and net_change * sign < 0):
            raise InvalidRequestError(
                "Net change does not match change type and quantity",
                details={"change_type": change_type.value, "quantity": quantity, "net_change": net_change},
            )
        if quantity_after != quantity_before + net_change:
            raise InvalidRequestError("Quantity after does not equal quantity before plus net change")
        if not reason or not reason.strip():
            raise InvalidRequestError("Reason is required")

        entry = StockLedgerEntry(
            channel_id=self._channel_id,
            product_id=product_id,
            change_type=change_type,
            quantity=quantity,
            net_change=net_change,
            quantity_before=quantity_before,
            quantity_after=quantity_after,
            reason=reason.strip(),
            notes=notes,
            logged_at=logged_at or utcnow(),
            actor_id=self._actor_id,
        )
        self._db.add(entry)
        self._db.flush()
        return entry

    def get(self, entry_id: int) -> StockLedgerEntry:
        entry = self._base_query().filter(StockLedgerEntry.id == entry_id).first()
        if entry is None:
            raise LedgerEntryNotFoundError(entry_id)
        return entry

    def list_all(self) -> Sequence[StockLedgerEntry]:
        return self._ordered(self._base_query())

    def list_by_product(self, product_id: int) -> Sequence[StockLedgerEntry]:
        return self._ordered(self._base_query().filter(StockLedgerEntry.product_id == product_id))

    def list_by_change_type(self, change_type: str | StockChangeType) -> Sequence[StockLedgerEntry]:
        parsed = parse_change_type(change_type)
        return self._ordered(self._base_query().filter(StockLedgerEntry.change_type == parsed))

    def list_by_date_range(
        self,
        start: str | dt.date | None = None,
        end: str | dt.date | None = None,
    ) -> Sequence[StockLedgerEntry]:
        """
        Entries logged between two calendar dates (UTC), both inclusive.

        Either bound may be omitted. A start after the end yields nothing.
        """
        start_date = _parse_date(start, "startDate")
        end_date = _parse_date(end, "endDate")

        query = self._base_query()
        if start_date is not None:
            lower = dt.datetime.combine(start_date, dt.time.min, tzinfo=dt.timezone.utc)
            query = query.filter(StockLedgerEntry.logged_at >= lower)
        if end_date is not None:
            upper = dt.datetime.combine(end_date + dt.timedelta(days=1), dt.time.min, tzinfo=dt.timezone.utc)
            query = query.filter(StockLedgerEntry.logged_at < upper)
        return self._ordered(query)

    def replay(self, product_id: int) -> tuple[int, int]:
        """Sum of net changes and entry count for one product, from zero."""
        total, count = self._db.query(
            func.coalesce(func.sum(StockLedgerEntry.net_change), 0),
            func.count(StockLedgerEntry.id),
        ).filter(
            StockLedgerEntry.channel_id == self._channel_id,
            StockLedgerEntry.product_id == product_id,
        ).one()
        return int(total), int(count)

    # ========================================================================
    # Private Helpers
    # ========================================================================

    def _base_query(self):
        return self._db.query(StockLedgerEntry).options(
            joinedload(StockLedgerEntry.product),
        ).filter(StockLedgerEntry.channel_id == self._channel_id)

    @staticmethod
    def _ordered(query) -> Sequence[StockLedgerEntry]:
        return query.order_by(StockLedgerEntry.logged_at.desc(), StockLedgerEntry.id.desc()).all()
