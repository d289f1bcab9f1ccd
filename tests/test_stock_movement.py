"""Stock movement processing: validation, the OUT guard, atomicity and contention."""
from unittest.mock import MagicMock

import pytest
from prometheus_client import REGISTRY
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from stockflow.core.config import settings
from stockflow.core.exceptions import (
    InsufficientStockError,
    InvalidRequestError,
    InventoryNotFoundError,
    StockContentionError,
    StorageError,
)
from stockflow.models.inventory_models import StockChangeType, StockLedgerEntry
from stockflow.models.inventory_schemas import StockMovementRequest
from stockflow.services.inventory import build_inventory_service
from stockflow.services.inventory.snapshot_service import StockSnapshotService
from stockflow.services.inventory.stock_service import StockMovementService


def _move(product_id, change_type, quantity, reason="test", **kwargs):
    return StockMovementRequest(
        product_id=product_id,
        change_type=change_type,
        quantity=quantity,
        reason=reason,
        **kwargs,
    )


def _ledger_count(db, product_id):
    return db.query(StockLedgerEntry).filter(StockLedgerEntry.product_id == product_id).count()


def _sample(name, labels=None):
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------

def test_in_movement_adds_stock_and_logs_entry(service, make_product, db_session):
    product = make_product(quantity=100, threshold=20)

    result = service.apply_movement(_move(product.id, "IN", 50, reason="purchase"))

    assert result.previous_quantity == 100
    assert result.new_quantity == 150
    assert result.signed_change == 50
    assert result.message == "Stock IN recorded successfully"
    assert service.get_inventory_by_product(product.id).quantity == 150

    entry = service.get_log(result.entry_id)
    assert entry.change_type is StockChangeType.IN
    assert entry.quantity == 50
    assert entry.net_change == 50
    assert entry.reason == "purchase"
    assert entry.actor_id == 7


def test_out_beyond_stock_without_override_is_rejected(service, make_product, db_session):
    product = make_product(quantity=10, threshold=20)
    entries_before = _ledger_count(db_session, product.id)

    with pytest.raises(InsufficientStockError) as exc_info:
        service.apply_movement(_move(product.id, "OUT", 50, reason="sale"))

    err = exc_info.value
    assert isinstance(err, InvalidRequestError)
    assert "Available: 10" in err.message
    assert "Requested: 50" in err.message
    assert err.details == {"product_id": product.id, "available": 10, "requested": 50}
    assert service.get_inventory_by_product(product.id).quantity == 10
    assert _ledger_count(db_session, product.id) == entries_before


def test_out_beyond_stock_with_admin_override_goes_negative(service, make_product):
    product = make_product(quantity=10, threshold=20)

    result = service.apply_movement(_move(product.id, "OUT", 50, reason="sale", admin_override=True))

    assert result.previous_quantity == 10
    assert result.new_quantity == -40
    assert result.signed_change == -50
    assert service.get_inventory_by_product(product.id).quantity == -40


def test_out_down_to_exactly_zero_is_allowed(service, make_product):
    product = make_product(quantity=5)

    result = service.apply_movement(_move(product.id, "OUT", 5, reason="sale"))

    assert result.new_quantity == 0


def test_restock_removes_product_from_low_stock(service, make_product):
    product = make_product(quantity=5, threshold=10)
    make_product(quantity=50, threshold=10)

    assert [i.product_id for i in service.list_low_stock()] == [product.id]

    result = service.apply_movement(_move(product.id, "IN", 10, reason="restock"))

    assert result.new_quantity == 15
    assert product.id not in [i.product_id for i in service.list_low_stock()]


@pytest.mark.parametrize(
    "change_type,quantity,message",
    [
        ("IN", 0, "Quantity must be greater than 0"),
        ("OUT", -3, "Quantity must be greater than 0"),
        ("BOGUS", 0, "Quantity must be greater than 0"),
        ("ADJUST", 0, "Quantity must not be zero for ADJUST"),
        ("BOGUS", 5, "Invalid change type. Must be IN, OUT, or ADJUST"),
    ],
)
def test_invalid_requests_fail_before_storage_access(change_type, quantity, message):
    db = MagicMock()
    processor = StockMovementService(db, channel_id=1, actor_id=7)

    with pytest.raises(InvalidRequestError) as exc_info:
        processor.apply(_move(1, change_type, quantity))

    assert exc_info.value.message == message
    assert exc_info.value.status_code == 400
    assert db.mock_calls == []


def test_blank_reason_is_rejected_before_lookup():
    db = MagicMock()
    processor = StockMovementService(db, channel_id=1, actor_id=7)

    with pytest.raises(InvalidRequestError, match="Reason is required"):
        processor.apply(_move(999, "IN", 5, reason="   "))

    assert db.mock_calls == []


def test_change_type_is_checked_before_reason():
    processor = StockMovementService(MagicMock(), channel_id=1, actor_id=7)

    with pytest.raises(InvalidRequestError, match="Invalid change type"):
        processor.apply(_move(1, "SIDEWAYS", 5, reason=""))


def test_change_type_is_case_insensitive(service, make_product):
    product = make_product(quantity=1)

    result = service.apply_movement(_move(product.id, " in ", 2))

    assert result.change_type is StockChangeType.IN
    assert result.new_quantity == 3


def test_unknown_product_is_not_found(service):
    with pytest.raises(InventoryNotFoundError) as exc_info:
        service.apply_movement(_move(999, "IN", 5))

    assert exc_info.value.message == "Product inventory not found"
    assert exc_info.value.status_code == 404


def test_other_channel_cannot_move_stock(db_session, make_product):
    product = make_product(quantity=10)
    other = build_inventory_service(db_session, channel_id=2, actor_id=8)

    with pytest.raises(InventoryNotFoundError):
        other.apply_movement(_move(product.id, "OUT", 1))


def test_deleted_product_has_no_inventory(service, make_product):
    product = make_product(quantity=10)
    service.delete_product(product.id)

    with pytest.raises(InventoryNotFoundError):
        service.apply_movement(_move(product.id, "IN", 1))


# ---------------------------------------------------------------------------
# ADJUST carries a signed quantity
# ---------------------------------------------------------------------------

def test_positive_adjust_adds_stock(service, make_product):
    product = make_product(quantity=10)

    result = service.apply_movement(_move(product.id, "ADJUST", 4, reason="recount"))

    assert result.signed_change == 4
    assert result.new_quantity == 14


def test_negative_adjust_removes_stock_and_stores_magnitude(service, make_product):
    product = make_product(quantity=10)

    result = service.apply_movement(_move(product.id, "ADJUST", -3, reason="damaged"))

    assert result.signed_change == -3
    assert result.new_quantity == 7
    entry = service.get_log(result.entry_id)
    assert entry.quantity == 3
    assert entry.net_change == -3
    assert entry.quantity_before == 10
    assert entry.quantity_after == 7


def test_negative_adjust_is_not_guarded_against_going_below_zero(service, make_product):
    # Only OUT is guarded; a corrective ADJUST records what was actually counted.
    product = make_product(quantity=2)

    result = service.apply_movement(_move(product.id, "ADJUST", -5, reason="shrinkage"))

    assert result.new_quantity == -3


# ---------------------------------------------------------------------------
# Ledger and snapshot stay in step
# ---------------------------------------------------------------------------

def test_snapshot_equals_ledger_replay_after_mixed_movements(service, make_product):
    product = make_product()
    movements = [
        ("IN", 40, False),
        ("OUT", 15, False),
        ("ADJUST", -5, False),
        ("OUT", 30, True),
        ("ADJUST", 12, False),
        ("IN", 3, False),
    ]
    for change_type, quantity, override in movements:
        service.apply_movement(_move(product.id, change_type, quantity, admin_override=override))

    # A rejected movement leaves no trace
    with pytest.raises(InsufficientStockError):
        service.apply_movement(_move(product.id, "OUT", 1000))

    check = service.reconcile(product.id)
    assert check.snapshot_quantity == 40 - 15 - 5 - 30 + 12 + 3
    assert check.ledger_quantity == check.snapshot_quantity
    assert check.entry_count == len(movements)
    assert check.in_sync is True


def test_ledger_entries_chain_quantity_before_and_after(service, make_product):
    product = make_product()
    for change_type, quantity in [("IN", 10), ("OUT", 4), ("ADJUST", 2)]:
        service.apply_movement(_move(product.id, change_type, quantity))

    entries = list(reversed(service.list_logs_by_product(product.id)))
    running = 0
    for entry in entries:
        assert entry.quantity_before == running
        running += entry.net_change
        assert entry.quantity_after == running
    assert running == service.get_inventory_by_product(product.id).quantity


def test_storage_failure_rolls_back_ledger_and_snapshot(service, make_product, db_session, monkeypatch):
    product = make_product(quantity=20)
    entries_before = _ledger_count(db_session, product.id)

    def failing_set_quantity(self, snapshot, new_quantity):
        raise SQLAlchemyError("disk I/O error")

    monkeypatch.setattr(StockSnapshotService, "_set_quantity", failing_set_quantity)

    with pytest.raises(StorageError) as exc_info:
        service.apply_movement(_move(product.id, "OUT", 5))

    assert exc_info.value.status_code == 500
    assert exc_info.value.code == "SYS400"
    assert _ledger_count(db_session, product.id) == entries_before
    assert service.get_inventory_by_product(product.id).quantity == 20


def test_rejected_request_is_counted():
    before = _sample("stock_movements_rejected_total", {"reason": "invalid_quantity"})

    with pytest.raises(InvalidRequestError):
        StockMovementService(MagicMock(), channel_id=1).apply(_move(1, "IN", 0))

    assert _sample("stock_movements_rejected_total", {"reason": "invalid_quantity"}) == before + 1


# ---------------------------------------------------------------------------
# Concurrency: versioned snapshot updates are retried
# ---------------------------------------------------------------------------

def _interfere_on_lock(monkeypatch, times):
    """Bump the snapshot version right after it is read, like a concurrent writer would."""
    real_lock = StockSnapshotService.lock_for_product
    calls = {"n": 0}

    def lock_then_interfere(self, product_id):
        snapshot = real_lock(self, product_id)
        calls["n"] += 1
        if calls["n"] <= times:
            self.db.execute(
                text("UPDATE stock_snapshot SET version_id = version_id + 1 WHERE product_id = :pid"),
                {"pid": product_id},
            )
        return snapshot

    monkeypatch.setattr(StockSnapshotService, "lock_for_product", lock_then_interfere)
    return calls


def test_version_conflict_is_retried_and_applied_once(service, make_product, db_session, monkeypatch):
    product = make_product(quantity=10)
    entries_before = _ledger_count(db_session, product.id)
    conflicts_before = _sample("stock_movement_conflicts_total")
    calls = _interfere_on_lock(monkeypatch, times=1)

    result = service.apply_movement(_move(product.id, "IN", 5))

    assert calls["n"] == 2
    assert result.previous_quantity == 10
    assert result.new_quantity == 15
    assert _ledger_count(db_session, product.id) == entries_before + 1
    assert _sample("stock_movement_conflicts_total") == conflicts_before + 1
    assert service.reconcile(product.id).in_sync


def test_persistent_conflict_surfaces_contention(service, make_product, db_session, monkeypatch):
    product = make_product(quantity=10)
    entries_before = _ledger_count(db_session, product.id)
    monkeypatch.setattr(settings, "STOCK_MOVEMENT_MAX_ATTEMPTS", 2)
    calls = _interfere_on_lock(monkeypatch, times=99)

    with pytest.raises(StockContentionError) as exc_info:
        service.apply_movement(_move(product.id, "OUT", 1))

    assert calls["n"] == 2
    assert exc_info.value.status_code == 409
    assert exc_info.value.details["attempts"] == 2
    assert _ledger_count(db_session, product.id) == entries_before
    assert service.get_inventory_by_product(product.id).quantity == 10
