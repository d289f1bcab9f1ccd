"""Product category endpoints."""
from fastapi import APIRouter

from stockflow.models import inventory_schemas as schemas

from .dependencies import InventoryServiceDep

router = APIRouter(tags=["categories"])


@router.post("/categories", response_model=schemas.CategoryOut, status_code=201)
def create_category(
    data: schemas.CategoryCreate,
    service: InventoryServiceDep,
):
    category = service.create_category(data)
    return schemas.CategoryOut(id=category.id, name=category.name, is_active=category.is_active)


@router.get("/categories", response_model=list[schemas.CategoryOut])
def list_categories(service: InventoryServiceDep):
    return [
        schemas.CategoryOut(id=c.id, name=c.name, is_active=c.is_active)
        for c in service.list_categories()
    ]
