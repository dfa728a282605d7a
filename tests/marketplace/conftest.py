import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def marketplace_bed():
    from marketplace.domain import marketplace

    bed = DomainFixture(marketplace)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(marketplace_bed):
    with marketplace_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def ledger():
    """A fresh in-memory stock ledger for every test."""
    from marketplace.inventory.ledger import reset_stock_ledger, set_stock_ledger
    from marketplace.inventory.ledger.memory_adapter import MemoryStockLedger

    ledger = MemoryStockLedger()
    set_stock_ledger(ledger)
    yield ledger
    reset_stock_ledger()


@pytest.fixture(autouse=True)
def gateway():
    """A fresh fake payment gateway for every test."""
    from payments.gateway import reset_gateway, set_gateway
    from payments.gateway.fake_adapter import FakeGateway

    gateway = FakeGateway()
    set_gateway(gateway)
    yield gateway
    reset_gateway()


@pytest.fixture(autouse=True)
def _checkout_sessions():
    from marketplace.checkout.flow import checkout_sessions

    yield
    checkout_sessions.clear()
