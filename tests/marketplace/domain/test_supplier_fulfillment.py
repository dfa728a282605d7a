"""Tests for the SupplierFulfillment aggregate."""

import pytest
from marketplace.fulfillment.events import SupplierFulfillmentOpened, SupplierPaid, SupplierShipmentUpdated
from marketplace.fulfillment.supplier_fulfillment import PayoutStatus, ShipmentStatus, SupplierFulfillment
from protean.exceptions import ValidationError


def _open():
    return SupplierFulfillment.open(order_id="ord-001", supplier_id="farmer-a", item_count=2, subtotal=20.0)


class TestOpen:
    def test_starts_prepared_and_unpaid(self):
        ff = _open()
        assert ff.status == ShipmentStatus.PREPARED.value
        assert ff.payout_status == PayoutStatus.UNPAID.value
        assert ff.subtotal == 20.0

    def test_raises_opened_event(self):
        ff = _open()
        assert isinstance(ff._events[-1], SupplierFulfillmentOpened)


class TestShipment:
    def test_ship_then_deliver(self):
        ff = _open()
        ff.mark_shipped()
        ff.mark_delivered()
        assert ff.status == ShipmentStatus.DELIVERED.value
        assert ff.shipped_at is not None
        assert ff.delivered_at is not None

    def test_transition_event(self):
        ff = _open()
        ff.mark_shipped()
        event = ff._events[-1]
        assert isinstance(event, SupplierShipmentUpdated)
        assert event.previous_status == "Prepared"
        assert event.new_status == "Shipped"

    def test_cannot_deliver_before_shipping(self):
        ff = _open()
        with pytest.raises(ValidationError):
            ff.mark_delivered()

    def test_cancel_before_delivery(self):
        ff = _open()
        ff.mark_shipped()
        ff.cancel(reason="Out of stock")
        assert ff.status == ShipmentStatus.CANCELLED.value
        assert ff.cancellation_reason == "Out of stock"

    def test_cannot_cancel_delivered(self):
        ff = _open()
        ff.mark_shipped()
        ff.mark_delivered()
        with pytest.raises(ValidationError):
            ff.cancel()


class TestPayout:
    def test_pay_after_delivery(self):
        ff = _open()
        ff.mark_shipped()
        ff.mark_delivered()
        ff.pay()
        assert ff.is_paid
        assert ff.paid_at is not None
        event = ff._events[-1]
        assert isinstance(event, SupplierPaid)
        assert event.amount == 20.0

    def test_cannot_pay_before_delivery(self):
        ff = _open()
        with pytest.raises(ValidationError) as exc:
            ff.pay()
        assert "payout_status" in exc.value.messages

    def test_cannot_pay_twice(self):
        ff = _open()
        ff.mark_shipped()
        ff.mark_delivered()
        ff.pay()
        with pytest.raises(ValidationError):
            ff.pay()
