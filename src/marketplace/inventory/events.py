"""Domain events for stock adjustments."""

from protean.fields import DateTime, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="StockAdjustment")
class StockChanged:
    """A product's stock was decremented for an order."""

    __version__ = 1

    adjustment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    changed_at = DateTime(required=True)


@marketplace.event(part_of="StockAdjustment")
class StockAdjustmentSkipped:
    """A product's stock could not be read, so the order went through without decrementing it."""

    __version__ = 1

    adjustment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    reason = String(required=True)
    skipped_at = DateTime(required=True)
