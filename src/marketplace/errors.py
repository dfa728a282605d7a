"""Marketplace error taxonomy.

Field validation uses Protean's ``ValidationError`` and gateway failures live
with the gateway port (``payments.gateway.port.GatewayError``). The two below
cover the store side of checkout.
"""


class PersistenceError(Exception):
    """A write against the store failed while placing or updating an order.

    The message is safe to show to the buyer; the original exception is
    chained as ``__cause__``.
    """

    def __init__(self, message: str = "We could not save your order. Please try again.", order_id: str | None = None):
        super().__init__(message)
        self.order_id = order_id


class StockReadError(Exception):
    """A product's stock could not be read or written during adjustment."""

    def __init__(self, product_id: str, reason: str):
        super().__init__(f"Stock unavailable for product {product_id}: {reason}")
        self.product_id = product_id
        self.reason = reason
