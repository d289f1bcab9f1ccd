"""
Inventory API Routes.

RESTful endpoints for inventory management:
- Categories and products (catalogue the stock hangs off)
- Inventory (stock snapshots, thresholds, low-stock list, movements)
- Inventory log (read-only stock ledger)
"""
from fastapi import APIRouter

from .categories import router as categories_router
from .ledger import router as ledger_router
from .products import router as products_router
from .stock import router as stock_router

# Create main router and include sub-routers
router = APIRouter()
router.include_router(categories_router)
router.include_router(products_router)
router.include_router(stock_router)
router.include_router(ledger_router)

__all__ = ["router"]
