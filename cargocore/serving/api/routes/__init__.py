"""
API Routes Module
"""
from .health import router as health_router
from .dashboard import router as dashboard_router
from .analytics import router as analytics_router
from .costs import router as costs_router
from .orders import router as orders_router
from .warehouses import router as warehouses_router
from .inventory import router as inventory_router
from .ai import router as ai_router

__all__ = [
    "health_router",
    "dashboard_router",
    "analytics_router",
    "costs_router",
    "orders_router",
    "warehouses_router",
    "inventory_router",
    "ai_router",
]
