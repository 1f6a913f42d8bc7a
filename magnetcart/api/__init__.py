from magnetcart.api.cart import router as cart_router
from magnetcart.api.catalog import router as catalog_router
from magnetcart.api.checkout import router as checkout_router
from magnetcart.api.health import router as health_router
from magnetcart.api.orders import router as orders_router
from magnetcart.api.uploads import router as uploads_router

__all__ = [
    "cart_router",
    "catalog_router",
    "checkout_router",
    "health_router",
    "orders_router",
    "uploads_router",
]
