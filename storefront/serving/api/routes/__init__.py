"""
API Routes Module
"""
from .auth import router as auth_router
from .discounts import router as discounts_router
from .health import router as health_router
from .orders import router as orders_router
from .products import router as products_router

__all__ = [
    "auth_router",
    "discounts_router",
    "health_router",
    "orders_router",
    "products_router",
]
