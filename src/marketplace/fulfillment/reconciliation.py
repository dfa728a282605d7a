"""Split an order by supplier for shipment and payout tracking.

``group_by_supplier`` is a pure view over an order. Without persisted
fulfillment records a group's statuses are derived from the order; once
``SupplierFulfillment`` records exist, their own states win.
"""

from dataclasses import dataclass, field

from protean.utils.globals import current_domain

from marketplace.fulfillment.payout import PaySupplier
from marketplace.fulfillment.supplier_fulfillment import PayoutStatus, SupplierFulfillment
from marketplace.order.order import Order, OrderStatus, PaymentStatus, round_money


class GroupShipmentStatus:
    PREPARED = "prepared"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class GroupPaymentStatus:
    PAID = "paid"
    UNPAID = "unpaid"


@dataclass
class SupplierGroup:
    supplier_id: str
    items: list = field(default_factory=list)
    subtotal: float = 0.0
    shipment_status: str = GroupShipmentStatus.PREPARED
    payment_status: str = GroupPaymentStatus.UNPAID
    fulfillment_id: str | None = None

    def to_dict(self) -> dict:
        return {
            "supplier_id": self.supplier_id,
            "items": [
                {
                    "product_id": str(item.product_id),
                    "quantity": item.quantity,
                    "unit_price": item.unit_price,
                    "line_total": item.line_total,
                }
                for item in self.items
            ],
            "subtotal": self.subtotal,
            "shipment_status": self.shipment_status,
            "payment_status": self.payment_status,
            "fulfillment_id": self.fulfillment_id,
        }


def _derived_shipment_status(order: Order) -> str:
    status = OrderStatus(order.status)
    if status == OrderStatus.DELIVERED:
        return GroupShipmentStatus.DELIVERED
    if status == OrderStatus.SHIPPED:
        return GroupShipmentStatus.SHIPPED
    return GroupShipmentStatus.PREPARED


def _derived_payment_status(order: Order) -> str:
    if order.payment_status == PaymentStatus.PAID.value:
        return GroupPaymentStatus.PAID
    return GroupPaymentStatus.UNPAID


def group_by_supplier(
    order: Order,
    fulfillments: list[SupplierFulfillment] | None = None,
) -> list[SupplierGroup]:
    """Partition the order's line items by supplier, in first-seen order."""
    groups: dict[str, SupplierGroup] = {}
    for item in order.items:
        supplier_id = str(item.supplier_id)
        group = groups.get(supplier_id)
        if group is None:
            group = SupplierGroup(
                supplier_id=supplier_id,
                shipment_status=_derived_shipment_status(order),
                payment_status=_derived_payment_status(order),
            )
            groups[supplier_id] = group
        group.items.append(item)
        group.subtotal = round_money(group.subtotal + item.line_total)

    for ff in fulfillments or []:
        group = groups.get(str(ff.supplier_id))
        if group is None:
            continue
        group.fulfillment_id = str(ff.id)
        group.shipment_status = ff.status.lower()
        group.payment_status = (
            GroupPaymentStatus.PAID if ff.payout_status == PayoutStatus.PAID.value else GroupPaymentStatus.UNPAID
        )

    return list(groups.values())


def supplier_groups(order_id: str) -> list[SupplierGroup]:
    """Load an order and its fulfillment records and group them."""
    order = current_domain.repository_for(Order).get(order_id)
    fulfillments = current_domain.repository_for(SupplierFulfillment).find_for_order(order_id)
    return group_by_supplier(order, fulfillments)


def pay_supplier(order_id: str, supplier_id: str) -> None:
    """Mark one supplier paid; the order becomes ``paid`` once every supplier is."""
    current_domain.process(PaySupplier(order_id=order_id, supplier_id=supplier_id), asynchronous=False)
