import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from marketplace.api import (
    analytics_router,
    cart_router,
    checkout_router,
    order_router,
    register_checkout_exception_handlers,
    stock_router,
)
from payments.api import payment_router
from protean.integrations.fastapi import register_exception_handlers


@pytest.fixture()
def client(marketplace_bed):
    from marketplace.domain import marketplace

    app = FastAPI()

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        with marketplace.domain_context():
            return await call_next(request)

    register_exception_handlers(app)
    register_checkout_exception_handlers(app)
    app.include_router(cart_router)
    app.include_router(checkout_router)
    app.include_router(order_router)
    app.include_router(stock_router)
    app.include_router(analytics_router)
    app.include_router(payment_router)
    return TestClient(app)


SHIPPING = {
    "name": "Ama Mensah",
    "email": "ama@example.com",
    "phone": "0241234567",
    "address_line1": "12 Oxford Street",
    "city": "Accra",
    "region": "greater-accra",
}


@pytest.fixture()
def shipping():
    return dict(SHIPPING)


@pytest.fixture()
def cart_id(client):
    """A cart holding the two-supplier scenario basket."""
    response = client.post("/carts", json={"buyer_id": "buyer-001"})
    assert response.status_code == 201
    cart_id = response.json()["cart_id"]
    for item in (
        {"product_id": "prod-a", "supplier_id": "farmer-a", "unit_price": 10.0, "quantity": 2},
        {"product_id": "prod-b", "supplier_id": "farmer-b", "unit_price": 5.0, "quantity": 1},
    ):
        assert client.post(f"/carts/{cart_id}/items", json=item).status_code == 200
    return cart_id
