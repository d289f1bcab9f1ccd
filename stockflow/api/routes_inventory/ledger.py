"""Inventory log (stock ledger) endpoints. Read only; newest entries first."""
from fastapi import APIRouter, Query

from stockflow.models import inventory_schemas as schemas
from .dependencies import InventoryServiceDep
from .helpers import entry_to_out

router = APIRouter(prefix="/inventory-log", tags=["inventory-log"])


@router.get("", response_model=list[schemas.InventoryLogOut])
def list_logs(service: InventoryServiceDep):
    return [entry_to_out(e) for e in service.list_logs()]


@router.get("/change-type", response_model=list[schemas.InventoryLogOut])
def list_logs_by_change_type(
    service: InventoryServiceDep,
    change_type: str = Query(..., alias="changeType", description="IN, OUT or ADJUST"),
):
    return [entry_to_out(e) for e in service.list_logs_by_change_type(change_type)]


@router.get("/date-range", response_model=list[schemas.InventoryLogOut])
def list_logs_by_date_range(
    service: InventoryServiceDep,
    start_date: str | None = Query(None, alias="startDate", description="YYYY-MM-DD, inclusive"),
    end_date: str | None = Query(None, alias="endDate", description="YYYY-MM-DD, inclusive"),
):
    return [entry_to_out(e) for e in service.list_logs_by_date_range(start_date, end_date)]


@router.get("/product/{product_id}", response_model=list[schemas.InventoryLogOut])
def list_logs_by_product(product_id: int, service: InventoryServiceDep):
    return [entry_to_out(e) for e in service.list_logs_by_product(product_id)]


@router.get("/{entry_id}", response_model=schemas.InventoryLogOut)
def get_log(entry_id: int, service: InventoryServiceDep):
    return entry_to_out(service.get_log(entry_id))
