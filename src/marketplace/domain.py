"""Marketplace bounded context — Checkout, Orders, Stock and Supplier Fulfillment.

Handles the buyer checkout flow that turns a cart into a persisted order,
per-product stock depletion, and the per-supplier ("farmer") split of an
order used to track shipment and payout independently.
"""

from protean.domain import Domain

from marketplace.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
marketplace = Domain(name="marketplace")
