"""
Routers for Shopfront
"""

from .auth import router as auth_router
from .products import router as products_router
from .orders import router as orders_router
from .pages import router as pages_router

__all__ = ["auth_router", "products_router", "orders_router", "pages_router"]
