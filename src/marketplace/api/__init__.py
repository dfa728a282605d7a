from marketplace.api.errors import register_checkout_exception_handlers
from marketplace.api.routes import (
    analytics_router,
    cart_router,
    checkout_router,
    order_router,
    stock_router,
)

__all__ = [
    "analytics_router",
    "cart_router",
    "checkout_router",
    "order_router",
    "stock_router",
    "register_checkout_exception_handlers",
]
