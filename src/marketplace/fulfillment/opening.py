"""Open per-supplier fulfillment records for a placed order — command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.fulfillment.reconciliation import group_by_supplier
from marketplace.fulfillment.supplier_fulfillment import SupplierFulfillment
from marketplace.order.order import Order

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="SupplierFulfillment")
class OpenSupplierFulfillments:
    order_id = Identifier(required=True)


@marketplace.command_handler(part_of=SupplierFulfillment)
class OpenSupplierFulfillmentsHandler:
    @handle(OpenSupplierFulfillments)
    def open_supplier_fulfillments(self, command):
        order = current_domain.repository_for(Order).get(command.order_id)
        repo = current_domain.repository_for(SupplierFulfillment)

        existing = {str(ff.supplier_id) for ff in repo.find_for_order(command.order_id)}
        opened = []
        for group in group_by_supplier(order):
            if group.supplier_id in existing:
                continue
            ff = SupplierFulfillment.open(
                order_id=str(order.id),
                supplier_id=group.supplier_id,
                item_count=len(group.items),
                subtotal=group.subtotal,
            )
            repo.add(ff)
            opened.append(str(ff.id))

        logger.info(
            "Supplier fulfillments opened",
            order_id=str(order.id),
            opened=len(opened),
            already_open=len(existing),
        )
        return opened
