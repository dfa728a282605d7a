"""Per-supplier shipment updates — commands and handler."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.fulfillment.supplier_fulfillment import SupplierFulfillment


@marketplace.command(part_of="SupplierFulfillment")
class MarkSupplierShipped:
    order_id = Identifier(required=True)
    supplier_id = Identifier(required=True)


@marketplace.command(part_of="SupplierFulfillment")
class MarkSupplierDelivered:
    order_id = Identifier(required=True)
    supplier_id = Identifier(required=True)


@marketplace.command(part_of="SupplierFulfillment")
class CancelSupplierFulfillment:
    order_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    reason = String(max_length=500)


def load_supplier_fulfillment(order_id, supplier_id) -> SupplierFulfillment:
    ff = current_domain.repository_for(SupplierFulfillment).find_for_supplier(order_id, supplier_id)
    if ff is None:
        raise ObjectNotFoundError(f"No fulfillment for supplier {supplier_id} on order {order_id}")
    return ff


@marketplace.command_handler(part_of=SupplierFulfillment)
class SupplierShipmentHandler:
    @handle(MarkSupplierShipped)
    def mark_shipped(self, command):
        ff = load_supplier_fulfillment(command.order_id, command.supplier_id)
        ff.mark_shipped()
        current_domain.repository_for(SupplierFulfillment).add(ff)

    @handle(MarkSupplierDelivered)
    def mark_delivered(self, command):
        ff = load_supplier_fulfillment(command.order_id, command.supplier_id)
        ff.mark_delivered()
        current_domain.repository_for(SupplierFulfillment).add(ff)

    @handle(CancelSupplierFulfillment)
    def cancel(self, command):
        ff = load_supplier_fulfillment(command.order_id, command.supplier_id)
        ff.cancel(reason=command.reason)
        current_domain.repository_for(SupplierFulfillment).add(ff)
