"""Domain events for the Order aggregate.

All events are versioned, immutable facts representing state changes of a
placed order. The supplier split and stock adjustment are driven off the
same order id but live on their own aggregates.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Order")
class OrderPlaced:
    """A buyer's cart was turned into a persisted order."""

    __version__ = 1

    order_id = Identifier(required=True)
    buyer_id = Identifier()
    item_count = Integer(required=True)
    subtotal = Float(required=True)
    shipping_fee = Float(required=True)
    total = Float(required=True)
    payment_method = String(required=True)
    payment_status = String(required=True)
    payment_reference = String()
    placed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderStatusChanged:
    """The order moved along Pending -> Confirmed -> Processing -> Shipped -> Delivered."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled before it was delivered."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String()
    cancelled_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderPaymentStatusChanged:
    """Payment moved between pending, completed (captured) and paid (suppliers paid out)."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_payment_status = String(required=True)
    new_payment_status = String(required=True)
    changed_at = DateTime(required=True)
