"""Tests for the Order aggregate: placement, invariants and state machine."""

import pytest
from marketplace.order.events import OrderCancelled, OrderPaymentStatusChanged, OrderPlaced, OrderStatusChanged
from marketplace.order.order import (
    Order,
    OrderLineItem,
    OrderStatus,
    PaymentStatus,
    present_status,
)
from protean.exceptions import ValidationError

ADDRESS = {
    "name": "Ama Mensah",
    "email": "ama@example.com",
    "phone": "0241234567",
    "address_line1": "12 Oxford Street",
    "city": "Accra",
    "region": "greater-accra",
}

ITEMS = [
    {"product_id": "prod-a", "supplier_id": "farmer-a", "quantity": 2, "unit_price": 10.0},
    {"product_id": "prod-b", "supplier_id": "farmer-b", "quantity": 1, "unit_price": 5.0},
]


def _place(**overrides):
    defaults = {
        "buyer_id": "buyer-001",
        "items_data": ITEMS,
        "shipping_address": ADDRESS,
        "shipping_fee": 5.99,
        "payment_method": "card",
        "payment_status": PaymentStatus.COMPLETED.value,
        "payment_reference": "mkt_ref_1",
    }
    defaults.update(overrides)
    return Order.place(**defaults)


class TestOrderPlacement:
    def test_totals(self):
        order = _place()
        assert order.subtotal == 25.0
        assert order.shipping_fee == 5.99
        assert order.total == 30.99

    def test_line_totals(self):
        order = _place()
        assert [item.line_total for item in order.items] == [20.0, 5.0]

    def test_starts_pending(self):
        order = _place()
        assert order.status == OrderStatus.PENDING.value
        assert order.created_at is not None

    def test_keeps_payment_details(self):
        order = _place()
        assert order.payment_status == PaymentStatus.COMPLETED.value
        assert order.payment_reference == "mkt_ref_1"

    def test_snapshots_shipping_address(self):
        order = _place()
        assert order.shipping_address.name == "Ama Mensah"
        assert order.shipping_address.region == "greater-accra"

    def test_raises_order_placed(self):
        order = _place()
        events = [e for e in order._events if isinstance(e, OrderPlaced)]
        assert len(events) == 1
        assert events[0].total == 30.99
        assert events[0].item_count == 2

    def test_needs_items(self):
        with pytest.raises(ValidationError) as exc:
            _place(items_data=[])
        assert "items" in exc.value.messages

    def test_fractional_prices_round_to_cents(self):
        order = _place(
            items_data=[{"product_id": "p", "supplier_id": "s", "quantity": 3, "unit_price": 0.1}],
            shipping_fee=0.0,
        )
        assert order.subtotal == 0.3
        assert order.total == 0.3

    def test_supplier_ids_in_first_seen_order(self):
        order = _place(
            items_data=[
                {"product_id": "p1", "supplier_id": "s2", "quantity": 1, "unit_price": 1.0},
                {"product_id": "p2", "supplier_id": "s1", "quantity": 1, "unit_price": 1.0},
                {"product_id": "p3", "supplier_id": "s2", "quantity": 1, "unit_price": 1.0},
            ]
        )
        assert order.supplier_ids == ["s2", "s1"]


class TestOrderInvariants:
    def test_line_total_must_match(self):
        with pytest.raises(ValidationError) as exc:
            OrderLineItem(product_id="p", supplier_id="s", quantity=2, unit_price=10.0, line_total=15.0)
        assert "line_total" in exc.value.messages

    def test_total_must_equal_subtotal_plus_fee(self):
        order = _place()
        with pytest.raises(ValidationError) as exc:
            order.total = 99.0
        assert "total" in exc.value.messages

    def test_subtotal_must_equal_sum_of_lines(self):
        order = _place()
        with pytest.raises(ValidationError) as exc:
            order.subtotal = 1.0
        assert "subtotal" in exc.value.messages


class TestOrderStateMachine:
    def test_happy_path(self):
        order = _place()
        order.confirm()
        order.mark_processing()
        order.mark_shipped()
        order.mark_delivered()
        assert order.status == OrderStatus.DELIVERED.value

    def test_transition_raises_event(self):
        order = _place()
        order.confirm()
        event = order._events[-1]
        assert isinstance(event, OrderStatusChanged)
        assert event.previous_status == "Pending"
        assert event.new_status == "Confirmed"

    def test_cannot_skip_steps(self):
        order = _place()
        with pytest.raises(ValidationError) as exc:
            order.mark_shipped()
        assert "status" in exc.value.messages

    @pytest.mark.parametrize("steps", [[], ["confirm"], ["confirm", "mark_processing"]])
    def test_cancel_before_delivery(self, steps):
        order = _place()
        for step in steps:
            getattr(order, step)()
        order.cancel(reason="Buyer changed their mind")
        assert order.status == OrderStatus.CANCELLED.value
        assert order.cancellation_reason == "Buyer changed their mind"
        assert isinstance(order._events[-1], OrderCancelled)

    def test_cannot_cancel_delivered(self):
        order = _place()
        order.confirm()
        order.mark_processing()
        order.mark_shipped()
        order.mark_delivered()
        with pytest.raises(ValidationError):
            order.cancel()

    def test_cancelled_is_terminal(self):
        order = _place()
        order.cancel()
        with pytest.raises(ValidationError):
            order.confirm()


class TestPaymentStatus:
    def test_moves_forward(self):
        order = _place()
        order.record_payment_status(PaymentStatus.PAID.value)
        assert order.payment_status == "paid"
        assert isinstance(order._events[-1], OrderPaymentStatusChanged)

    def test_cash_on_delivery_can_jump_to_paid(self):
        order = _place(payment_method="cash_on_delivery", payment_status="pending", payment_reference=None)
        order.record_payment_status("paid")
        assert order.payment_status == "paid"

    def test_never_moves_back(self):
        order = _place()
        with pytest.raises(ValidationError) as exc:
            order.record_payment_status(PaymentStatus.PENDING.value)
        assert "payment_status" in exc.value.messages

    def test_same_status_is_a_no_op(self):
        order = _place()
        count = len(order._events)
        order.record_payment_status(PaymentStatus.COMPLETED.value)
        assert len(order._events) == count

    def test_unknown_status(self):
        order = _place()
        with pytest.raises(ValidationError):
            order.record_payment_status("refunded")


class TestStatusPresentation:
    @pytest.mark.parametrize(
        "status, label, badge",
        [
            ("Pending", "Pending", "purple"),
            ("Confirmed", "Confirmed", "indigo"),
            ("Processing", "Processing", "yellow"),
            ("Shipped", "Shipped", "blue"),
            ("Delivered", "Delivered", "green"),
            ("Cancelled", "Cancelled", "red"),
        ],
    )
    def test_known_statuses(self, status, label, badge):
        presentation = present_status(status)
        assert presentation.label == label
        assert presentation.badge == badge

    def test_unknown_status_is_gray(self):
        assert present_status("Lost").badge == "gray"
