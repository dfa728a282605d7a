"""Event handlers for supplier fulfillment.

Supplier shipment and payout events are where supplier notifications hook
in; for now they are logged. Cancelling an order cancels every supplier
share that has not been delivered yet.
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from marketplace.domain import marketplace
from marketplace.fulfillment.events import SupplierPaid, SupplierShipmentUpdated
from marketplace.fulfillment.supplier_fulfillment import (
    CANCELLABLE_STATUSES,
    ShipmentStatus,
    SupplierFulfillment,
)
from marketplace.order.events import OrderCancelled

logger = structlog.get_logger(__name__)


@marketplace.event_handler(part_of=SupplierFulfillment)
class SupplierNotificationHandler:
    """Tells suppliers about changes to their share of an order."""

    @handle(SupplierShipmentUpdated)
    def on_shipment_updated(self, event: SupplierShipmentUpdated) -> None:
        logger.info(
            "Supplier shipment updated",
            order_id=str(event.order_id),
            supplier_id=str(event.supplier_id),
            previous_status=event.previous_status,
            new_status=event.new_status,
        )

    @handle(SupplierPaid)
    def on_supplier_paid(self, event: SupplierPaid) -> None:
        logger.info(
            "Supplier paid",
            order_id=str(event.order_id),
            supplier_id=str(event.supplier_id),
            amount=event.amount,
        )


@marketplace.event_handler(part_of=SupplierFulfillment, stream_category="marketplace::order")
class OrderEventHandler:
    """Reacts to order events on behalf of suppliers."""

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        repo = current_domain.repository_for(SupplierFulfillment)
        for ff in repo.find_for_order(event.order_id):
            if ShipmentStatus(ff.status) not in CANCELLABLE_STATUSES:
                logger.warning(
                    "Cannot cancel supplier fulfillment",
                    order_id=str(event.order_id),
                    supplier_id=str(ff.supplier_id),
                    status=ff.status,
                )
                continue
            ff.cancel(reason=f"Order cancelled: {event.reason or 'no reason given'}")
            repo.add(ff)
