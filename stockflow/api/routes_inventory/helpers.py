"""Helper functions for inventory routes."""
from stockflow.models import inventory_schemas as schemas


def product_to_out(product) -> schemas.ProductOut:
    """Convert Product model to ProductOut schema."""
    inventory = product.inventory
    return schemas.ProductOut(
        id=product.id,
        sku=product.sku,
        name=product.name,
        description=product.description,
        category_id=product.category_id,
        category_name=product.category.name if product.category else None,
        cost_price=product.cost_price,
        selling_price=product.selling_price,
        is_active=product.is_active,
        current_stock=inventory.quantity if inventory else 0,
        is_low_stock=inventory.is_low_stock if inventory else False,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


def snapshot_to_out(snapshot) -> schemas.InventoryOut:
    """Convert StockSnapshot model to InventoryOut schema."""
    return schemas.InventoryOut(
        id=snapshot.id,
        product_id=snapshot.product_id,
        quantity=snapshot.quantity,
        low_stock_threshold=snapshot.low_stock_threshold,
        is_low_stock=snapshot.is_low_stock,
        is_active=snapshot.is_active,
        product_name=snapshot.product.name if snapshot.product else None,
        product_sku=snapshot.product.sku if snapshot.product else None,
        created_at=snapshot.created_at,
        updated_at=snapshot.updated_at,
        created_by_id=snapshot.created_by_id,
        updated_by_id=snapshot.updated_by_id,
    )


def entry_to_out(entry) -> schemas.InventoryLogOut:
    """Convert StockLedgerEntry model to InventoryLogOut schema."""
    return schemas.InventoryLogOut(
        id=entry.id,
        product_id=entry.product_id,
        product_name=entry.product.name if entry.product else None,
        product_sku=entry.product.sku if entry.product else None,
        change_type=entry.change_type.value,
        quantity=entry.quantity,
        net_change=entry.net_change,
        stock_after=entry.quantity_after,
        reason=entry.reason,
        notes=entry.notes,
        logged_at=entry.logged_at,
        actor_id=entry.actor_id,
    )


def movement_to_out(result) -> schemas.StockMovementResponse:
    """Convert a MovementResult to the movement response payload."""
    return schemas.StockMovementResponse(
        success=True,
        message=result.message,
        product_id=result.product_id,
        previous_stock=result.previous_quantity,
        new_stock=result.new_quantity,
        change_amount=result.signed_change,
    )
