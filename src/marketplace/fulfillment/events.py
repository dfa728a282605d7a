"""Domain events for the SupplierFulfillment aggregate.

Shipment and payout changes are the notification seam for suppliers: they
carry enough to tell a supplier what happened to their part of an order.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="SupplierFulfillment")
class SupplierFulfillmentOpened:
    """A supplier's share of a new order is waiting to be prepared."""

    __version__ = 1

    fulfillment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    item_count = Integer(required=True)
    subtotal = Float(required=True)
    opened_at = DateTime(required=True)


@marketplace.event(part_of="SupplierFulfillment")
class SupplierShipmentUpdated:
    """A supplier's share moved between Prepared, Shipped, Delivered and Cancelled."""

    __version__ = 1

    fulfillment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    reason = String()
    changed_at = DateTime(required=True)


@marketplace.event(part_of="SupplierFulfillment")
class SupplierPaid:
    """A supplier was paid out for their share of an order."""

    __version__ = 1

    fulfillment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    amount = Float(required=True)
    paid_at = DateTime(required=True)
