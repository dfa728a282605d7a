"""Order placement — command, handler and the persistence service checkout calls.

Placing an order is three steps, each its own unit of work:

1. ``PlaceOrder``: write the order header and all line items as one aggregate
2. ``AdjustStockForOrder``: decrement stock for every line item
3. ``OpenSupplierFulfillments``: open one fulfillment record per supplier

Steps 2 and 3 are keyed by order id and skip work already done, so calling
``submit_order`` again with the same idempotency key finishes a partially
placed order instead of duplicating it.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.checkout.shipping_info import ShippingInfo
from marketplace.domain import marketplace
from marketplace.errors import PersistenceError
from marketplace.fulfillment.opening import OpenSupplierFulfillments
from marketplace.inventory.adjustment import AdjustStockForOrder
from marketplace.order.order import Order, PaymentMethod, PaymentStatus
from marketplace.shipping.fees import shipping_fee

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class PlaceOrder:
    buyer_id = Identifier()
    items = Text(required=True)  # JSON: list of {product_id, supplier_id, quantity, unit_price}
    shipping_address = Text(required=True)  # JSON: address dict
    payment_method = String(required=True, choices=PaymentMethod)
    mobile_money_provider = String(max_length=20)
    payment_status = String(default=PaymentStatus.PENDING.value)
    payment_reference = String(max_length=255)
    idempotency_key = String(max_length=255)
    notes = Text()


@marketplace.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        repo = current_domain.repository_for(Order)

        existing = repo.find_by_idempotency_key(command.idempotency_key)
        if existing is not None:
            logger.info(
                "Order already placed for idempotency key",
                order_id=str(existing.id),
                idempotency_key=command.idempotency_key,
            )
            return str(existing.id)

        items_data = json.loads(command.items) if isinstance(command.items, str) else command.items
        shipping_address = (
            json.loads(command.shipping_address)
            if isinstance(command.shipping_address, str)
            else command.shipping_address
        )

        order = Order.place(
            buyer_id=command.buyer_id,
            items_data=items_data,
            shipping_address=shipping_address,
            shipping_fee=shipping_fee(shipping_address.get("region")),
            payment_method=command.payment_method,
            payment_status=command.payment_status or PaymentStatus.PENDING.value,
            payment_reference=command.payment_reference,
            mobile_money_provider=command.mobile_money_provider,
            idempotency_key=command.idempotency_key,
            notes=command.notes,
        )
        repo.add(order)
        return str(order.id)


class OrderPersistenceService:
    """Writes a checkout's order and runs the follow-up stock and supplier steps."""

    def submit_order(
        self,
        cart_items: list[dict],
        shipping_info: ShippingInfo,
        payment_method: str,
        reference: str | None = None,
        payment_status: str = PaymentStatus.PENDING.value,
        buyer_id: str | None = None,
        idempotency_key: str | None = None,
        mobile_money_provider: str | None = None,
    ) -> str:
        """Persist the order and return its id.

        Raises ``ValidationError`` for bad input and ``PersistenceError`` when
        any store write fails.
        """
        items = [
            {
                "product_id": str(item["product_id"]),
                "supplier_id": str(item["supplier_id"]),
                "quantity": int(item["quantity"]),
                "unit_price": float(item["unit_price"]),
            }
            for item in cart_items
        ]
        address = shipping_info.to_address()

        order_id = None
        try:
            order_id = current_domain.process(
                PlaceOrder(
                    buyer_id=buyer_id,
                    items=json.dumps(items),
                    shipping_address=json.dumps(address),
                    payment_method=payment_method,
                    mobile_money_provider=mobile_money_provider,
                    payment_status=payment_status,
                    payment_reference=reference,
                    idempotency_key=idempotency_key,
                    notes=shipping_info.notes,
                ),
                asynchronous=False,
            )
            current_domain.process(AdjustStockForOrder(order_id=order_id), asynchronous=False)
            current_domain.process(OpenSupplierFulfillments(order_id=order_id), asynchronous=False)
        except ValidationError:
            raise
        except Exception as exc:
            logger.error(
                "Order persistence failed",
                order_id=order_id,
                idempotency_key=idempotency_key,
                error=str(exc),
            )
            raise PersistenceError(order_id=order_id) from exc

        logger.info(
            "Order placed",
            order_id=order_id,
            payment_method=payment_method,
            payment_status=payment_status,
            item_count=len(items),
        )
        return order_id


order_persistence = OrderPersistenceService()
