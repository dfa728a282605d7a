"""Checkout state machine — SHIPPING → DELIVERY → PAYMENT → CONFIRMATION.

A ``CheckoutFlow`` is one buyer's walk through checkout for one cart. It
lives in memory and writes nothing until payment has resolved; the order,
stock adjustment, supplier split, cart clearing and saved address all
happen in ``submit()``.

Each flow owns a single idempotency key for its whole life. Retrying
``submit()`` after a failure reuses it, and reuses the payment reference
if the gateway already captured the money, so a buyer is never charged or
ordered twice for one checkout.

Only one ``submit()`` runs at a time. Once money is captured the flow is
locked to that amount. It can no longer go back or change its shipping and
payment details, and a retry whose total differs from the captured amount
is rejected rather than placing an order for a different total.
"""

import json
from dataclasses import dataclass
from enum import Enum
from uuid import uuid4

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from marketplace.cart.cart import ShoppingCart
from marketplace.cart.management import ClearCart
from marketplace.checkout.addresses import SaveDefaultAddress
from marketplace.checkout.shipping_info import ShippingInfo
from marketplace.errors import PersistenceError
from marketplace.order.order import MobileMoneyProvider, PaymentMethod, PaymentStatus
from marketplace.order.placement import OrderPersistenceService, order_persistence
from marketplace.shipping.fees import order_total, region_label, shipping_fee
from payments.gateway import get_gateway, new_reference
from payments.gateway.port import GatewayError, PaymentGateway

logger = structlog.get_logger(__name__)


class CheckoutStep(Enum):
    SHIPPING = "shipping"
    DELIVERY = "delivery"
    PAYMENT = "payment"
    CONFIRMATION = "confirmation"


_STEP_ORDER = [
    CheckoutStep.SHIPPING,
    CheckoutStep.DELIVERY,
    CheckoutStep.PAYMENT,
    CheckoutStep.CONFIRMATION,
]


@dataclass
class PaymentSelection:
    method: str = PaymentMethod.CARD.value
    provider: str | None = None
    payer_phone: str | None = None

    def validate(self) -> None:
        if self.method not in {m.value for m in PaymentMethod}:
            raise ValidationError({"payment_method": [f"Unknown payment method {self.method}"]})
        if self.method != PaymentMethod.MOBILE_MONEY.value:
            return

        errors = {}
        if self.provider not in {p.value for p in MobileMoneyProvider}:
            errors["provider"] = ["Choose MTN, Vodafone or AirtelTigo"]
        if not (self.payer_phone or "").strip():
            errors["payer_phone"] = ["Mobile money number is required"]
        if errors:
            raise ValidationError(errors)


@dataclass(frozen=True)
class OrderPlacedNotice:
    order_id: str
    total: float
    item_count: int


class CheckoutFlow:
    """One buyer's checkout of one cart."""

    def __init__(
        self,
        cart_id: str,
        buyer_id: str | None = None,
        gateway: PaymentGateway | None = None,
        persistence: OrderPersistenceService | None = None,
    ) -> None:
        self.id = str(uuid4())
        self.cart_id = str(cart_id)
        self.buyer_id = buyer_id
        self.step = CheckoutStep.SHIPPING
        self.shipping = ShippingInfo()
        self.payment = PaymentSelection()
        self.idempotency_key = str(uuid4())
        self.captured_reference: str | None = None
        self.captured_amount: int | None = None
        self.submitting = False
        self.order_id: str | None = None
        self.notice: OrderPlacedNotice | None = None
        self._gateway = gateway
        self._persistence = persistence or order_persistence

    @property
    def gateway(self) -> PaymentGateway:
        return self._gateway or get_gateway()

    @property
    def is_complete(self) -> bool:
        return self.step == CheckoutStep.CONFIRMATION

    def cart(self) -> ShoppingCart:
        return current_domain.repository_for(ShoppingCart).get(self.cart_id)

    def _assert_open(self) -> None:
        if self.is_complete:
            raise ValidationError({"checkout": ["This checkout is already complete"]})
        if self.submitting:
            raise ValidationError({"checkout": ["Payment is in progress"]})

    def _assert_not_paid(self) -> None:
        if self.captured_reference:
            raise ValidationError({"checkout": ["Payment has been taken; submit again to finish placing the order"]})

    # -------------------------------------------------------------------
    # Inputs
    # -------------------------------------------------------------------
    def update_shipping(self, **changes) -> None:
        self._assert_open()
        self._assert_not_paid()
        self.shipping.update(**changes)

    def select_payment(self, method: str, provider: str | None = None, payer_phone: str | None = None) -> None:
        self._assert_open()
        self._assert_not_paid()
        selection = PaymentSelection(method=method, provider=provider, payer_phone=payer_phone)
        selection.validate()
        self.payment = selection

    def summary(self) -> dict:
        """What the DELIVERY step shows: subtotal, fee for the chosen region and total."""
        cart = self.cart()
        subtotal = cart.subtotal()
        return {
            "region": self.shipping.region or None,
            "region_label": region_label(self.shipping.region),
            "item_count": len(cart.items),
            "subtotal": subtotal,
            "shipping_fee": shipping_fee(self.shipping.region),
            "total": order_total(subtotal, self.shipping.region),
        }

    # -------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------
    def advance(self) -> CheckoutStep:
        """Move to the next step. The PAYMENT step is left only through ``submit()``."""
        self._assert_open()

        if self.step == CheckoutStep.SHIPPING:
            self.shipping.validate()
            if self.cart().is_empty:
                raise ValidationError({"cart": ["Your cart is empty"]})
        elif self.step == CheckoutStep.PAYMENT:
            raise ValidationError({"checkout": ["Submit payment to place the order"]})

        self.step = _STEP_ORDER[_STEP_ORDER.index(self.step) + 1]
        return self.step

    def back(self) -> CheckoutStep:
        """Go back one step. A no-op on SHIPPING."""
        self._assert_open()
        self._assert_not_paid()
        if self.step != CheckoutStep.SHIPPING:
            self.step = _STEP_ORDER[_STEP_ORDER.index(self.step) - 1]
        return self.step

    # -------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------
    async def submit(self) -> str:
        """Take payment and place the order; returns the order id.

        Raises ``GatewayError`` if the payment did not go through and
        ``PersistenceError`` if the order could not be saved. Either way the
        flow stays on PAYMENT with the cart untouched. A second call while one
        is still running raises ``ValidationError``.
        """
        if self.step != CheckoutStep.PAYMENT:
            raise ValidationError({"checkout": ["Orders can only be submitted from the payment step"]})
        if self.submitting:
            raise ValidationError({"checkout": ["Payment is in progress"]})

        self.submitting = True
        try:
            return await self._submit()
        finally:
            self.submitting = False

    async def _submit(self) -> str:
        self.payment.validate()
        self.shipping.validate()
        cart = self.cart()
        if cart.is_empty:
            raise ValidationError({"cart": ["Your cart is empty"]})

        cart_items = cart.line_items()
        total = order_total(cart.subtotal(), self.shipping.region)

        if self.payment.method == PaymentMethod.CASH_ON_DELIVERY.value:
            reference = None
            payment_status = PaymentStatus.PENDING.value
        else:
            reference = await self._capture_payment(total)
            payment_status = PaymentStatus.COMPLETED.value

        order_id = self._persistence.submit_order(
            cart_items=cart_items,
            shipping_info=self.shipping,
            payment_method=self.payment.method,
            reference=reference,
            payment_status=payment_status,
            buyer_id=self.buyer_id,
            idempotency_key=self.idempotency_key,
            mobile_money_provider=self.payment.provider,
        )

        try:
            current_domain.process(ClearCart(cart_id=self.cart_id, order_id=order_id), asynchronous=False)
            if self.shipping.save_as_default and self.buyer_id:
                current_domain.process(
                    SaveDefaultAddress(buyer_id=self.buyer_id, address=json.dumps(self.shipping.to_address())),
                    asynchronous=False,
                )
        except ValidationError:
            raise
        except Exception as exc:
            logger.error("Post-order bookkeeping failed", order_id=order_id, error=str(exc))
            raise PersistenceError(order_id=order_id) from exc

        self.order_id = order_id
        self.step = CheckoutStep.CONFIRMATION
        self.notice = OrderPlacedNotice(order_id=order_id, total=total, item_count=len(cart_items))
        logger.info(
            "Checkout complete",
            checkout_id=self.id,
            order_id=order_id,
            total=total,
            item_count=len(cart_items),
        )
        return order_id

    async def _capture_payment(self, total: float) -> str:
        amount = round(total * 100)
        if self.captured_reference:
            if amount != self.captured_amount:
                logger.warning(
                    "Cart total changed after payment",
                    checkout_id=self.id,
                    reference=self.captured_reference,
                    captured_amount=self.captured_amount,
                    amount=amount,
                )
                raise ValidationError(
                    {"cart": ["Your cart changed after payment was taken; restore it to finish placing the order"]}
                )
            logger.info(
                "Reusing captured payment",
                checkout_id=self.id,
                reference=self.captured_reference,
            )
            return self.captured_reference

        reference = new_reference()
        try:
            attempt = await self.gateway.attempt(
                amount_minor_units=amount,
                payer_email=self.shipping.email,
                channel=self.payment.method,
                metadata={
                    "checkout_id": self.id,
                    "cart_id": self.cart_id,
                    "provider": self.payment.provider,
                    "payer_phone": self.payment.payer_phone,
                },
                reference=reference,
            )
        except GatewayError as exc:
            logger.warning(
                "Payment not completed",
                checkout_id=self.id,
                reference=reference,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise

        self.captured_reference = attempt.reference
        self.captured_amount = amount
        return attempt.reference


class CheckoutSessions:
    """Checkout flows in progress, keyed by flow id."""

    def __init__(self) -> None:
        self._flows: dict[str, CheckoutFlow] = {}

    def start(self, cart_id: str, buyer_id: str | None = None) -> CheckoutFlow:
        current_domain.repository_for(ShoppingCart).get(cart_id)
        flow = CheckoutFlow(cart_id=cart_id, buyer_id=buyer_id)
        self._flows[flow.id] = flow
        return flow

    def get(self, checkout_id: str) -> CheckoutFlow:
        flow = self._flows.get(checkout_id)
        if flow is None:
            raise ObjectNotFoundError(f"Checkout {checkout_id} does not exist")
        return flow

    def clear(self) -> None:
        self._flows.clear()


checkout_sessions = CheckoutSessions()
