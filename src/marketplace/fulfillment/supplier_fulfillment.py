"""SupplierFulfillment aggregate (CQRS) — one supplier's share of one order.

A multi-supplier order ships in several parcels and each supplier is paid
separately, so shipment and payout are tracked per (order, supplier).

State Machine:
    PREPARED → SHIPPED → DELIVERED
    {PREPARED, SHIPPED} → CANCELLED

Payout:
    UNPAID → PAID  (only once DELIVERED)
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String

from marketplace.domain import marketplace
from marketplace.fulfillment.events import (
    SupplierFulfillmentOpened,
    SupplierPaid,
    SupplierShipmentUpdated,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class ShipmentStatus(Enum):
    PREPARED = "Prepared"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class PayoutStatus(Enum):
    UNPAID = "Unpaid"
    PAID = "Paid"


_VALID_TRANSITIONS = {
    ShipmentStatus.PREPARED: {ShipmentStatus.SHIPPED, ShipmentStatus.CANCELLED},
    ShipmentStatus.SHIPPED: {ShipmentStatus.DELIVERED, ShipmentStatus.CANCELLED},
    ShipmentStatus.DELIVERED: set(),  # terminal
    ShipmentStatus.CANCELLED: set(),  # terminal
}

CANCELLABLE_STATUSES = {
    ShipmentStatus.PREPARED,
    ShipmentStatus.SHIPPED,
}


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@marketplace.aggregate
class SupplierFulfillment:
    order_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    status = String(
        choices=ShipmentStatus,
        default=ShipmentStatus.PREPARED.value,
    )
    payout_status = String(
        choices=PayoutStatus,
        default=PayoutStatus.UNPAID.value,
    )
    item_count = Integer(default=0, min_value=0)
    subtotal = Float(default=0.0, min_value=0.0)
    cancellation_reason = String(max_length=500)
    shipped_at = DateTime()
    delivered_at = DateTime()
    paid_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def open(cls, order_id: str, supplier_id: str, item_count: int, subtotal: float):
        """Open a supplier's share of a newly placed order."""
        now = datetime.now(UTC)
        ff = cls(
            order_id=order_id,
            supplier_id=supplier_id,
            status=ShipmentStatus.PREPARED.value,
            payout_status=PayoutStatus.UNPAID.value,
            item_count=item_count,
            subtotal=round(subtotal, 2),
            created_at=now,
            updated_at=now,
        )
        ff.raise_(
            SupplierFulfillmentOpened(
                fulfillment_id=str(ff.id),
                order_id=str(order_id),
                supplier_id=str(supplier_id),
                item_count=item_count,
                subtotal=ff.subtotal,
                opened_at=now,
            )
        )
        return ff

    # -------------------------------------------------------------------
    # State transition helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status: ShipmentStatus) -> None:
        current = ShipmentStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def _transition(self, target_status: ShipmentStatus, reason: str | None = None) -> datetime:
        self._assert_can_transition(target_status)
        previous = self.status
        now = datetime.now(UTC)
        self.status = target_status.value
        self.updated_at = now
        self.raise_(
            SupplierShipmentUpdated(
                fulfillment_id=str(self.id),
                order_id=str(self.order_id),
                supplier_id=str(self.supplier_id),
                previous_status=previous,
                new_status=target_status.value,
                reason=reason,
                changed_at=now,
            )
        )
        return now

    # -------------------------------------------------------------------
    # Shipment
    # -------------------------------------------------------------------
    def mark_shipped(self) -> None:
        self.shipped_at = self._transition(ShipmentStatus.SHIPPED)

    def mark_delivered(self) -> None:
        self.delivered_at = self._transition(ShipmentStatus.DELIVERED)

    def cancel(self, reason: str | None = None) -> None:
        self.cancellation_reason = reason
        self._transition(ShipmentStatus.CANCELLED, reason=reason)

    # -------------------------------------------------------------------
    # Payout
    # -------------------------------------------------------------------
    @property
    def is_paid(self) -> bool:
        return self.payout_status == PayoutStatus.PAID.value

    def pay(self) -> None:
        """Pay the supplier out. Only delivered shares can be paid, and only once."""
        if self.is_paid:
            raise ValidationError({"payout_status": ["Supplier has already been paid for this order"]})
        if ShipmentStatus(self.status) != ShipmentStatus.DELIVERED:
            raise ValidationError({"payout_status": ["Supplier can only be paid once their items are delivered"]})

        now = datetime.now(UTC)
        self.payout_status = PayoutStatus.PAID.value
        self.paid_at = now
        self.updated_at = now
        self.raise_(
            SupplierPaid(
                fulfillment_id=str(self.id),
                order_id=str(self.order_id),
                supplier_id=str(self.supplier_id),
                amount=self.subtotal,
                paid_at=now,
            )
        )


@marketplace.repository(part_of=SupplierFulfillment)
class SupplierFulfillmentRepository:
    def find_for_order(self, order_id) -> list[SupplierFulfillment]:
        return self._dao.query.filter(order_id=str(order_id)).all().items

    def find_for_supplier(self, order_id, supplier_id) -> SupplierFulfillment | None:
        results = self._dao.query.filter(order_id=str(order_id), supplier_id=str(supplier_id)).all()
        return results.first if results.items else None
