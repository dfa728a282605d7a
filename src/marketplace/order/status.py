"""Order status transitions — commands and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order, PaymentStatus


@marketplace.command(part_of="Order")
class ConfirmOrder:
    order_id = Identifier(required=True)


@marketplace.command(part_of="Order")
class MarkOrderProcessing:
    order_id = Identifier(required=True)


@marketplace.command(part_of="Order")
class MarkOrderShipped:
    order_id = Identifier(required=True)


@marketplace.command(part_of="Order")
class MarkOrderDelivered:
    order_id = Identifier(required=True)


@marketplace.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)


@marketplace.command(part_of="Order")
class RecordPaymentStatus:
    order_id = Identifier(required=True)
    payment_status = String(required=True, choices=PaymentStatus)


@marketplace.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(ConfirmOrder)
    def confirm_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.confirm()
        repo.add(order)

    @handle(MarkOrderProcessing)
    def mark_processing(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_processing()
        repo.add(order)

    @handle(MarkOrderShipped)
    def mark_shipped(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_shipped()
        repo.add(order)

    @handle(MarkOrderDelivered)
    def mark_delivered(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_delivered()
        repo.add(order)

    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.cancel(reason=command.reason)
        repo.add(order)

    @handle(RecordPaymentStatus)
    def record_payment_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_payment_status(command.payment_status)
        repo.add(order)
