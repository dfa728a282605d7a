"""Tests for the in-memory stock ledger."""

import threading

import pytest
from marketplace.errors import StockReadError
from marketplace.inventory.ledger.memory_adapter import MemoryStockLedger


@pytest.fixture()
def memory_ledger():
    ledger = MemoryStockLedger()
    ledger.set_stock("prod-a", stock=10, unit_price=4.5, supplier_id="farmer-a")
    return ledger


class TestMemoryStockLedger:
    def test_get(self, memory_ledger):
        level = memory_ledger.get("prod-a")
        assert level.stock == 10
        assert level.unit_price == 4.5
        assert level.supplier_id == "farmer-a"

    def test_unknown_product(self, memory_ledger):
        with pytest.raises(StockReadError) as exc:
            memory_ledger.get("prod-z")
        assert exc.value.product_id == "prod-z"

    def test_negative_stock_rejected(self, memory_ledger):
        with pytest.raises(ValueError):
            memory_ledger.set_stock("prod-a", stock=-1)

    def test_decrement(self, memory_ledger):
        change = memory_ledger.decrement("prod-a", 3)
        assert change.previous_stock == 10
        assert change.new_stock == 7
        assert change.shortfall == 0
        assert memory_ledger.get("prod-a").stock == 7

    def test_decrement_clamps_at_zero(self, memory_ledger):
        change = memory_ledger.decrement("prod-a", 15)
        assert change.new_stock == 0
        assert change.shortfall == 5

    def test_decrement_unknown_product(self, memory_ledger):
        with pytest.raises(StockReadError):
            memory_ledger.decrement("prod-z", 1)

    def test_decrement_for_an_order_applies_once(self, memory_ledger):
        first = memory_ledger.decrement("prod-a", 3, order_id="order-1")
        again = memory_ledger.decrement("prod-a", 3, order_id="order-1")

        assert again == first
        assert memory_ledger.get("prod-a").stock == 7

    def test_decrements_for_different_orders_both_apply(self, memory_ledger):
        memory_ledger.decrement("prod-a", 3, order_id="order-1")
        change = memory_ledger.decrement("prod-a", 3, order_id="order-2")

        assert change.previous_stock == 7
        assert memory_ledger.get("prod-a").stock == 4

    def test_concurrent_decrements_are_not_lost(self):
        ledger = MemoryStockLedger()
        ledger.set_stock("prod-a", stock=1000)

        def buy():
            for _ in range(50):
                ledger.decrement("prod-a", 1)

        threads = [threading.Thread(target=buy) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert ledger.get("prod-a").stock == 600

    def test_clear(self, memory_ledger):
        memory_ledger.clear()
        with pytest.raises(StockReadError):
            memory_ledger.get("prod-a")
