"""Marketplace FastAPI application.

Web server for the buyer checkout and the admin/supplier order screens.
Commands are processed synchronously; every marketplace request runs inside
the marketplace domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay in marketplace/domain.toml.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from marketplace.domain import marketplace  # noqa: E402
from marketplace.utils import settings
from protean.integrations.fastapi import register_exception_handlers

marketplace.init()

# ---------------------------------------------------------------------------
# Route-to-domain mapping
# ---------------------------------------------------------------------------
_ROUTE_DOMAIN_MAP = {
    "/carts": marketplace,
    "/checkout": marketplace,
    "/orders": marketplace,
    "/stock": marketplace,
    "/analytics": marketplace,
}


def _resolve_domain(path: str):
    """Return the domain for the given request path, or None."""
    for prefix, domain in _ROUTE_DOMAIN_MAP.items():
        if path.startswith(prefix):
            return domain
    return None


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Marketplace API",
    description="Multi-supplier marketplace — checkout, orders, stock and supplier fulfillment",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the marketplace domain context for domain routes."""
    domain = _resolve_domain(request.url.path)
    if domain is not None:
        with domain.domain_context():
            response = await call_next(request)
        return response
    # Payment callbacks, health check, docs
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers & exception handlers
# ---------------------------------------------------------------------------
from marketplace.api import (  # noqa: E402
    analytics_router,
    cart_router,
    checkout_router,
    order_router,
    register_checkout_exception_handlers,
    stock_router,
)
from payments.api import payment_router  # noqa: E402

register_exception_handlers(app)
register_checkout_exception_handlers(app)

app.include_router(cart_router)
app.include_router(checkout_router)
app.include_router(order_router)
app.include_router(stock_router)
app.include_router(analytics_router)
app.include_router(payment_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domain": marketplace.name,
            "payment_gateway": settings.PAYMENT_GATEWAY,
        }
    )
