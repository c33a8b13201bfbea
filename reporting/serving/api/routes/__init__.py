"""
API Routes Module
"""
from .health import router as health_router
from .dashboard import router as dashboard_router
from .orders import router as orders_router
from .customers import router as customers_router
from .companies import router as companies_router
from .contacts import router as contacts_router
from .products import router as products_router
from .breakdowns import router as breakdowns_router
from .inventory import router as inventory_router
from .inventory import reorder_router
from .quality import router as quality_router

__all__ = [
    "health_router",
    "dashboard_router",
    "orders_router",
    "customers_router",
    "companies_router",
    "contacts_router",
    "products_router",
    "breakdowns_router",
    "inventory_router",
    "reorder_router",
    "quality_router",
]
