"""Supplier payout — command and handler.

Paying the last unpaid supplier of an order moves the order's payment
status to ``paid``. Cancelled supplier shares are not paid and do not hold
the order back.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.fulfillment.shipment import load_supplier_fulfillment
from marketplace.fulfillment.supplier_fulfillment import ShipmentStatus, SupplierFulfillment
from marketplace.order.order import Order, PaymentStatus

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="SupplierFulfillment")
class PaySupplier:
    order_id = Identifier(required=True)
    supplier_id = Identifier(required=True)


@marketplace.command_handler(part_of=SupplierFulfillment)
class SupplierPayoutHandler:
    @handle(PaySupplier)
    def pay_supplier(self, command):
        repo = current_domain.repository_for(SupplierFulfillment)
        ff = load_supplier_fulfillment(command.order_id, command.supplier_id)
        ff.pay()
        repo.add(ff)

        others = [
            other
            for other in repo.find_for_order(command.order_id)
            if str(other.supplier_id) != str(command.supplier_id)
            and other.status != ShipmentStatus.CANCELLED.value
        ]
        if all(other.is_paid for other in others):
            order_repo = current_domain.repository_for(Order)
            order = order_repo.get(command.order_id)
            order.record_payment_status(PaymentStatus.PAID.value)
            order_repo.add(order)
            logger.info("All suppliers paid", order_id=str(command.order_id))
