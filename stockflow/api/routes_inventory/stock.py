"""Stock snapshot and movement endpoints."""
from fastapi import APIRouter, Query, status

from stockflow.models import inventory_schemas as schemas
from .dependencies import InventoryServiceDep
from .helpers import movement_to_out, snapshot_to_out

router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.post("/movement", response_model=schemas.StockMovementResponse, status_code=status.HTTP_201_CREATED)
def record_movement(data: schemas.StockMovementRequest, service: InventoryServiceDep):
    """
    Record a stock movement.

    IN and OUT take a positive quantity. ADJUST takes a signed quantity:
    positive to add stock (found, recount up), negative to remove it.
    OUT below zero requires ``adminOverride``.
    """
    result = service.apply_movement(data)
    return movement_to_out(result)


@router.get("", response_model=list[schemas.InventoryOut])
def list_inventory(
    service: InventoryServiceDep,
    search: str | None = Query(None, description="Match product name or SKU"),
):
    return [snapshot_to_out(s) for s in service.list_inventory(search)]


@router.get("/low-stock", response_model=list[schemas.LowStockItem])
def list_low_stock(service: InventoryServiceDep):
    """Products at or below their low-stock threshold."""
    return service.list_low_stock()


@router.get("/product/{product_id}", response_model=schemas.InventoryOut)
def get_inventory_by_product(product_id: int, service: InventoryServiceDep):
    return snapshot_to_out(service.get_inventory_by_product(product_id))


@router.get("/product/{product_id}/reconcile", response_model=schemas.ReconciliationOut)
def reconcile_inventory(product_id: int, service: InventoryServiceDep):
    """Replay the product's ledger and compare it with the stored quantity."""
    return service.reconcile(product_id)


@router.put(
    "/product/{product_id}/threshold",
    response_model=schemas.ActionResult,
    status_code=status.HTTP_202_ACCEPTED,
)
def update_threshold_by_product(product_id: int, data: schemas.ThresholdUpdate, service: InventoryServiceDep):
    service.update_threshold(product_id, data.low_stock_threshold)
    return schemas.ActionResult(message="Threshold updated successfully")


@router.get("/{inventory_id}", response_model=schemas.InventoryOut)
def get_inventory(inventory_id: int, service: InventoryServiceDep):
    return snapshot_to_out(service.get_inventory(inventory_id))


@router.put(
    "/{inventory_id}/threshold",
    response_model=schemas.ActionResult,
    status_code=status.HTTP_202_ACCEPTED,
)
def update_threshold(inventory_id: int, data: schemas.ThresholdUpdate, service: InventoryServiceDep):
    service.update_threshold_by_id(inventory_id, data.low_stock_threshold)
    return schemas.ActionResult(message="Threshold updated successfully")
