"""Common dependencies for inventory routes."""
from typing import Annotated, TypeAlias

from fastapi import Depends

from stockflow.api.dependencies import DbDep, RequestContextDep
from stockflow.services.inventory import InventoryService, build_inventory_service


def get_inventory_service(context: RequestContextDep, db: DbDep) -> InventoryService:
    """InventoryService scoped to the caller's channel."""
    return build_inventory_service(db, channel_id=context.channel_id, actor_id=context.actor_id)


InventoryServiceDep: TypeAlias = Annotated[InventoryService, Depends(get_inventory_service)]
