"""Product endpoints."""
from fastapi import APIRouter, Query

from stockflow.models import inventory_schemas as schemas
from .dependencies import InventoryServiceDep
from .helpers import product_to_out

router = APIRouter(tags=["products"])


@router.post("/products", response_model=schemas.ProductOut, status_code=201)
def create_product(
    data: schemas.ProductCreate,
    service: InventoryServiceDep,
):
    """Create a new product with its inventory initialized at zero stock."""
    product = service.create_product(data)
    return product_to_out(product)


@router.get("/products", response_model=list[schemas.ProductOut])
def list_products(
    service: InventoryServiceDep,
    category_id: int | None = Query(None, alias="categoryId", description="Filter by category"),
    search: str | None = Query(None, description="Search by name or SKU"),
):
    products = service.list_products(category_id=category_id, search=search)
    return [product_to_out(p) for p in products]


@router.get("/products/sku/{sku}", response_model=schemas.ProductOut)
def get_product_by_sku(
    sku: str,
    service: InventoryServiceDep,
):
    return product_to_out(service.get_product_by_sku(sku))


@router.get("/products/{product_id}", response_model=schemas.ProductOut)
def get_product(
    product_id: int,
    service: InventoryServiceDep,
):
    return product_to_out(service.get_product(product_id))


@router.patch("/products/{product_id}", response_model=schemas.ProductOut)
def update_product(
    product_id: int,
    data: schemas.ProductUpdate,
    service: InventoryServiceDep,
):
    """Update a product. SKU and stock quantity cannot be changed here."""
    return product_to_out(service.update_product(product_id, data))


@router.delete("/products/{product_id}", status_code=204)
def delete_product(
    product_id: int,
    service: InventoryServiceDep,
):
    """Delete a product (soft delete). Its inventory is deactivated with it."""
    service.delete_product(product_id)
