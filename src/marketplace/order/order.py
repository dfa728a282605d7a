"""Order aggregate (CQRS) — a buyer's placed order.

An order is written once at checkout with all of its line items and is never
deleted afterwards. The only changes it accepts are status transitions and
payment-status transitions.

State Machine:
    PENDING → CONFIRMED → PROCESSING → SHIPPED → DELIVERED
    {PENDING, CONFIRMED, PROCESSING, SHIPPED} → CANCELLED

Payment status:
    pending → completed → paid
    pending  - cash on delivery, nothing collected yet
    completed - captured by the payment gateway
    paid     - every supplier on the order has been paid out
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from marketplace.domain import marketplace
from marketplace.order.events import (
    OrderCancelled,
    OrderPaymentStatusChanged,
    OrderPlaced,
    OrderStatusChanged,
)

# Money comparisons allow for float rounding below half a pesewa
_MONEY_TOLERANCE = 0.005


def round_money(amount: float) -> float:
    return round(amount, 2)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class PaymentMethod(Enum):
    CARD = "card"
    MOBILE_MONEY = "mobile_money"
    CASH_ON_DELIVERY = "cash_on_delivery"


class MobileMoneyProvider(Enum):
    MTN = "mtn"
    VODAFONE = "vodafone"
    AIRTELTIGO = "airteltigo"


class PaymentStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    PAID = "paid"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),  # terminal
    OrderStatus.CANCELLED: set(),  # terminal
}

_PAYMENT_STATUS_RANK = {
    PaymentStatus.PENDING: 0,
    PaymentStatus.COMPLETED: 1,
    PaymentStatus.PAID: 2,
}


@dataclass(frozen=True)
class StatusPresentation:
    label: str
    badge: str


ORDER_STATUS_PRESENTATION = {
    OrderStatus.PENDING: StatusPresentation("Pending", "purple"),
    OrderStatus.CONFIRMED: StatusPresentation("Confirmed", "indigo"),
    OrderStatus.PROCESSING: StatusPresentation("Processing", "yellow"),
    OrderStatus.SHIPPED: StatusPresentation("Shipped", "blue"),
    OrderStatus.DELIVERED: StatusPresentation("Delivered", "green"),
    OrderStatus.CANCELLED: StatusPresentation("Cancelled", "red"),
}


def present_status(status: str) -> StatusPresentation:
    """Label and badge colour for a stored status value."""
    try:
        return ORDER_STATUS_PRESENTATION[OrderStatus(status)]
    except ValueError:
        return StatusPresentation(str(status), "gray")


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@marketplace.value_object(part_of="Order")
class ShippingAddress:
    """Where and to whom the order is delivered, captured at checkout.

    Later changes to the buyer's saved address never touch placed orders.
    """

    name = String(required=True, max_length=255)
    email = String(required=True, max_length=254)
    phone = String(required=True, max_length=30)
    address_line1 = String(required=True, max_length=255)
    address_line2 = String(max_length=255)
    city = String(required=True, max_length=100)
    region = String(required=True, max_length=50)
    postal_code = String(max_length=20)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Order")
class OrderLineItem:
    """One product on the order, with the price it was bought at."""

    product_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    line_total = Float(required=True, min_value=0.0)

    @invariant.post
    def line_total_matches_price_and_quantity(self):
        if self.unit_price is None or self.quantity is None or self.line_total is None:
            return
        expected = round_money(self.unit_price * self.quantity)
        if abs(self.line_total - expected) > _MONEY_TOLERANCE:
            raise ValidationError({"line_total": ["Line total must equal unit price times quantity"]})


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Order:
    buyer_id = Identifier()
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    items = HasMany(OrderLineItem)
    shipping_address = ValueObject(ShippingAddress)
    subtotal = Float(default=0.0, min_value=0.0)
    shipping_fee = Float(default=0.0, min_value=0.0)
    total = Float(default=0.0, min_value=0.0)
    payment_method = String(choices=PaymentMethod, required=True)
    mobile_money_provider = String(choices=MobileMoneyProvider)
    payment_status = String(
        choices=PaymentStatus,
        default=PaymentStatus.PENDING.value,
    )
    payment_reference = String(max_length=255)
    idempotency_key = String(max_length=255)
    notes = Text()
    cancellation_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def subtotal_is_sum_of_line_totals(self):
        line_sum = round_money(sum(item.line_total or 0.0 for item in self.items))
        if abs(line_sum - (self.subtotal or 0.0)) > _MONEY_TOLERANCE:
            raise ValidationError({"subtotal": ["Subtotal must equal the sum of line totals"]})

    @invariant.post
    def total_is_subtotal_plus_shipping(self):
        expected = round_money((self.subtotal or 0.0) + (self.shipping_fee or 0.0))
        if abs(expected - (self.total or 0.0)) > _MONEY_TOLERANCE:
            raise ValidationError({"total": ["Total must equal subtotal plus shipping fee"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        buyer_id,
        items_data: list[dict],
        shipping_address: dict,
        shipping_fee: float,
        payment_method: str,
        payment_status: str = PaymentStatus.PENDING.value,
        payment_reference: str | None = None,
        mobile_money_provider: str | None = None,
        idempotency_key: str | None = None,
        notes: str | None = None,
    ):
        """Build an order from cart line data.

        ``items_data`` entries carry ``product_id``, ``supplier_id``,
        ``quantity`` and ``unit_price``; line totals and order totals are
        computed here.
        """
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        shipping_fee = round_money(shipping_fee or 0.0)
        order = cls(
            buyer_id=buyer_id,
            status=OrderStatus.PENDING.value,
            shipping_address=ShippingAddress(**shipping_address),
            subtotal=0.0,
            shipping_fee=shipping_fee,
            total=shipping_fee,
            payment_method=payment_method,
            mobile_money_provider=mobile_money_provider,
            payment_status=payment_status,
            payment_reference=payment_reference,
            idempotency_key=idempotency_key,
            notes=notes,
            created_at=now,
            updated_at=now,
        )

        with atomic_change(order):
            subtotal = 0.0
            for data in items_data:
                line_total = round_money(data["unit_price"] * data["quantity"])
                order.add_items(
                    OrderLineItem(
                        product_id=data["product_id"],
                        supplier_id=data["supplier_id"],
                        quantity=data["quantity"],
                        unit_price=data["unit_price"],
                        line_total=line_total,
                    )
                )
                subtotal += line_total
            order.subtotal = round_money(subtotal)
            order.total = round_money(order.subtotal + shipping_fee)

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                buyer_id=str(buyer_id) if buyer_id else None,
                item_count=len(order.items),
                subtotal=order.subtotal,
                shipping_fee=order.shipping_fee,
                total=order.total,
                payment_method=payment_method,
                payment_status=payment_status,
                payment_reference=payment_reference,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def supplier_ids(self) -> list[str]:
        """Suppliers on this order, in the order they first appear."""
        seen = []
        for item in self.items:
            if str(item.supplier_id) not in seen:
                seen.append(str(item.supplier_id))
        return seen

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def presentation(self) -> StatusPresentation:
        return present_status(self.status)

    # -------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status: OrderStatus) -> None:
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def _transition(self, target_status: OrderStatus) -> None:
        self._assert_can_transition(target_status)
        previous = self.status
        now = datetime.now(UTC)
        self.status = target_status.value
        self.updated_at = now
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                new_status=target_status.value,
                changed_at=now,
            )
        )

    def confirm(self) -> None:
        self._transition(OrderStatus.CONFIRMED)

    def mark_processing(self) -> None:
        self._transition(OrderStatus.PROCESSING)

    def mark_shipped(self) -> None:
        self._transition(OrderStatus.SHIPPED)

    def mark_delivered(self) -> None:
        self._transition(OrderStatus.DELIVERED)

    def cancel(self, reason: str | None = None) -> None:
        """Cancel the order. Delivered and already-cancelled orders cannot be cancelled."""
        self._assert_can_transition(OrderStatus.CANCELLED)
        previous = self.status
        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.updated_at = now
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                previous_status=previous,
                reason=reason,
                cancelled_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def record_payment_status(self, payment_status: str) -> None:
        """Move the payment status forward (pending → completed → paid)."""
        try:
            target = PaymentStatus(payment_status)
        except ValueError:
            raise ValidationError({"payment_status": [f"Unknown payment status {payment_status}"]}) from None

        current = PaymentStatus(self.payment_status)
        if target == current:
            return
        if _PAYMENT_STATUS_RANK[target] < _PAYMENT_STATUS_RANK[current]:
            raise ValidationError({"payment_status": [f"Cannot change payment status from {current.value} to {target.value}"]})

        now = datetime.now(UTC)
        self.payment_status = target.value
        self.updated_at = now
        self.raise_(
            OrderPaymentStatusChanged(
                order_id=str(self.id),
                previous_payment_status=current.value,
                new_payment_status=target.value,
                changed_at=now,
            )
        )


@marketplace.repository(part_of=Order)
class OrderRepository:
    def find_by_idempotency_key(self, idempotency_key: str) -> Order | None:
        if not idempotency_key:
            return None
        results = self._dao.query.filter(idempotency_key=idempotency_key).all()
        return results.first if results.items else None

    def all_orders(self) -> list[Order]:
        return self._dao.query.all().items
