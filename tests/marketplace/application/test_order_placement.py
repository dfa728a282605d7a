"""Application tests for order placement via domain.process() and the persistence service."""

import json

import pytest
from marketplace.checkout.shipping_info import ShippingInfo
from marketplace.errors import PersistenceError
from marketplace.fulfillment.supplier_fulfillment import SupplierFulfillment
from marketplace.inventory.adjustment import StockAdjustment, StockAdjustmentRepository
from marketplace.order.order import Order, OrderStatus
from marketplace.order import placement
from marketplace.order.placement import OrderPersistenceService, PlaceOrder
from protean import current_domain
from protean.exceptions import ValidationError

ADDRESS = {
    "name": "Ama Mensah",
    "email": "ama@example.com",
    "phone": "0241234567",
    "address_line1": "12 Oxford Street",
    "city": "Accra",
    "region": "greater-accra",
}

CART_ITEMS = [
    {"product_id": "prod-a", "supplier_id": "farmer-a", "unit_price": 10.0, "quantity": 2},
    {"product_id": "prod-b", "supplier_id": "farmer-b", "unit_price": 5.0, "quantity": 1},
]


class _UnavailableStore:
    def process(self, *args, **kwargs):
        raise RuntimeError("database is down")


def _shipping_info(**overrides):
    info = ShippingInfo(**ADDRESS)
    info.update(**overrides)
    return info


def _place_order(**overrides):
    defaults = {
        "buyer_id": "buyer-001",
        "items": json.dumps(CART_ITEMS),
        "shipping_address": json.dumps(ADDRESS),
        "payment_method": "card",
        "payment_status": "completed",
        "payment_reference": "mkt_ref_1",
        "idempotency_key": "idem-001",
    }
    defaults.update(overrides)
    return current_domain.process(PlaceOrder(**defaults), asynchronous=False)


class TestPlaceOrderCommand:
    def test_persists_order(self):
        order_id = _place_order()
        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == OrderStatus.PENDING.value
        assert order.subtotal == 25.0
        assert order.total == 30.99
        assert len(order.items) == 2

    def test_shipping_fee_comes_from_region(self):
        order_id = _place_order(shipping_address=json.dumps({**ADDRESS, "region": "upper-west"}))
        order = current_domain.repository_for(Order).get(order_id)
        assert order.shipping_fee == 28.99
        assert order.total == 53.99

    def test_same_idempotency_key_returns_same_order(self):
        first = _place_order()
        second = _place_order()
        assert first == second
        assert len(current_domain.repository_for(Order).all_orders()) == 1

    def test_different_keys_create_different_orders(self):
        first = _place_order(idempotency_key="idem-001")
        second = _place_order(idempotency_key="idem-002")
        assert first != second

    def test_empty_items_rejected(self):
        with pytest.raises(ValidationError):
            _place_order(items=json.dumps([]))

    def test_unknown_payment_method_rejected(self):
        with pytest.raises(ValidationError):
            _place_order(payment_method="cheque")


class TestOrderPersistenceService:
    def test_submit_order_runs_follow_up_steps(self, ledger):
        ledger.set_stock("prod-a", stock=10)
        ledger.set_stock("prod-b", stock=3)

        order_id = OrderPersistenceService().submit_order(
            cart_items=CART_ITEMS,
            shipping_info=_shipping_info(notes="Leave at the gate"),
            payment_method="card",
            reference="mkt_ref_1",
            payment_status="completed",
            buyer_id="buyer-001",
            idempotency_key="idem-001",
        )

        order = current_domain.repository_for(Order).get(order_id)
        assert order.notes == "Leave at the gate"
        assert order.payment_reference == "mkt_ref_1"

        assert ledger.get("prod-a").stock == 8
        assert ledger.get("prod-b").stock == 2

        adjustment = current_domain.repository_for(StockAdjustment).find_for_order(order_id)
        assert adjustment is not None
        assert len(adjustment.lines) == 2

        fulfillments = current_domain.repository_for(SupplierFulfillment).find_for_order(order_id)
        assert {ff.supplier_id for ff in fulfillments} == {"farmer-a", "farmer-b"}

    def test_resubmitting_does_not_duplicate(self, ledger):
        ledger.set_stock("prod-a", stock=10)
        ledger.set_stock("prod-b", stock=3)
        service = OrderPersistenceService()
        kwargs = {
            "cart_items": CART_ITEMS,
            "shipping_info": _shipping_info(),
            "payment_method": "card",
            "reference": "mkt_ref_1",
            "payment_status": "completed",
            "idempotency_key": "idem-001",
        }

        first = service.submit_order(**kwargs)
        second = service.submit_order(**kwargs)

        assert first == second
        assert ledger.get("prod-a").stock == 8
        assert len(current_domain.repository_for(SupplierFulfillment).find_for_order(first)) == 2

    def test_retry_after_failed_stock_record_does_not_decrement_again(self, ledger, monkeypatch):
        ledger.set_stock("prod-a", stock=10)
        ledger.set_stock("prod-b", stock=3)
        service = OrderPersistenceService()
        kwargs = {
            "cart_items": CART_ITEMS,
            "shipping_info": _shipping_info(),
            "payment_method": "card",
            "reference": "mkt_ref_1",
            "payment_status": "completed",
            "idempotency_key": "idem-001",
        }

        original_add = StockAdjustmentRepository.add
        attempts = []

        def add_failing_once(self, aggregate, *args, **kwargs):
            attempts.append(aggregate.order_id)
            if len(attempts) == 1:
                raise RuntimeError("store unavailable")
            return original_add(self, aggregate, *args, **kwargs)

        monkeypatch.setattr(StockAdjustmentRepository, "add", add_failing_once)

        with pytest.raises(PersistenceError) as exc:
            service.submit_order(**kwargs)
        order_id = exc.value.order_id
        assert order_id is not None
        assert current_domain.repository_for(StockAdjustment).find_for_order(order_id) is None

        assert service.submit_order(**kwargs) == order_id

        assert ledger.get("prod-a").stock == 8
        assert ledger.get("prod-b").stock == 2
        adjustment = current_domain.repository_for(StockAdjustment).find_for_order(order_id)
        by_product = {line.product_id: line for line in adjustment.lines}
        assert by_product["prod-a"].previous_stock == 10
        assert by_product["prod-a"].new_stock == 8

    def test_validation_errors_pass_through(self):
        with pytest.raises(ValidationError):
            OrderPersistenceService().submit_order(
                cart_items=[],
                shipping_info=_shipping_info(),
                payment_method="card",
            )

    def test_store_failure_becomes_persistence_error(self, monkeypatch):
        monkeypatch.setattr(placement, "current_domain", _UnavailableStore())
        with pytest.raises(PersistenceError) as exc:
            OrderPersistenceService().submit_order(
                cart_items=CART_ITEMS,
                shipping_info=_shipping_info(),
                payment_method="card",
            )
        assert isinstance(exc.value.__cause__, RuntimeError)
        assert "try again" in str(exc.value)
