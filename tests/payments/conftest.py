import pytest
from payments.gateway import reset_gateway, set_gateway
from payments.gateway.callbacks import CallbackRegistry
from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.paystack_adapter import PaystackGateway

SECRET_KEY = "sk_test_marketplace"


@pytest.fixture()
def registry():
    return CallbackRegistry()


@pytest.fixture()
def fake_gateway():
    gateway = FakeGateway()
    set_gateway(gateway)
    yield gateway
    reset_gateway()


@pytest.fixture()
def paystack(registry):
    gateway = PaystackGateway(
        secret_key=SECRET_KEY,
        base_url="https://paystack.test",
        currency="GHS",
        callback_url="https://shop.test/checkout/return",
        registry=registry,
    )
    set_gateway(gateway)
    yield gateway
    reset_gateway()
