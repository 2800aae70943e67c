"""API route modules."""

from boxstock.api.routes.audits import router as audits_router
from boxstock.api.routes.health import router as health_router
from boxstock.api.routes.products import router as products_router
from boxstock.api.routes.sales import router as sales_router
from boxstock.api.routes.stock_movements import router as stock_movements_router

__all__ = [
    "health_router",
    "products_router",
    "sales_router",
    "audits_router",
    "stock_movements_router",
]
