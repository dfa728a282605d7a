"""Shared BDD fixtures and step definitions for the checkout scenarios."""

import asyncio

import pytest
from marketplace.cart.cart import ShoppingCart
from marketplace.cart.items import AddToCart
from marketplace.cart.management import CreateCart
from marketplace.checkout.flow import CheckoutFlow
from marketplace.fulfillment.reconciliation import pay_supplier, supplier_groups
from marketplace.fulfillment.shipment import MarkSupplierDelivered, MarkSupplierShipped
from marketplace.order.order import Order
from payments.gateway.fake_adapter import FakeOutcome
from payments.gateway.port import GatewayError
from protean import current_domain
from pytest_bdd import given, parsers, then, when

SHIPPING = {
    "name": "Ama Mensah",
    "email": "ama@example.com",
    "phone": "0241234567",
    "address_line1": "12 Oxford Street",
    "city": "Accra",
}

MOBILE_MONEY = {"provider": "mtn", "payer_phone": "0241234567"}


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def checkout():
    """Container for the flow and what came out of it."""
    return {"flow": None, "order_id": None, "error": None}


def _add(cart_id, quantity, product_id, supplier_id, price):
    current_domain.process(
        AddToCart(
            cart_id=cart_id,
            product_id=product_id,
            supplier_id=supplier_id,
            unit_price=price,
            quantity=quantity,
        ),
        asynchronous=False,
    )


def _order(checkout):
    return current_domain.repository_for(Order).get(checkout["order_id"])


def _pay(checkout, method):
    flow = checkout["flow"]
    flow.update_shipping(**SHIPPING)
    flow.advance()
    flow.advance()
    flow.select_payment(method=method, **(MOBILE_MONEY if method == "mobile_money" else {}))
    return asyncio.run(flow.submit())


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse('a cart with {quantity:d} of "{product_id}" from "{supplier_id}" at {price:f}'),
    target_fixture="cart_id",
)
def cart_with_item(quantity, product_id, supplier_id, price, checkout):
    cart_id = current_domain.process(CreateCart(buyer_id="buyer-001"), asynchronous=False)
    _add(cart_id, quantity, product_id, supplier_id, price)
    checkout["flow"] = CheckoutFlow(cart_id=cart_id, buyer_id="buyer-001")
    return cart_id


@given(parsers.cfparse('the cart also has {quantity:d} of "{product_id}" from "{supplier_id}" at {price:f}'))
def cart_also_has(cart_id, quantity, product_id, supplier_id, price):
    _add(cart_id, quantity, product_id, supplier_id, price)


@given(parsers.cfparse('the buyer ships to "{region}"'))
def buyer_ships_to(checkout, region):
    checkout["flow"].update_shipping(region=region)


@given("the buyer will cancel the payment")
def buyer_will_cancel(gateway):
    gateway.configure(FakeOutcome.CANCEL)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the buyer pays by "{method}"'))
def buyer_pays(checkout, method):
    checkout["order_id"] = _pay(checkout, method)


@when(parsers.cfparse('the buyer tries to pay by "{method}"'))
def buyer_tries_to_pay(checkout, method):
    try:
        checkout["order_id"] = _pay(checkout, method)
    except GatewayError as exc:
        checkout["error"] = exc


@when(parsers.cfparse('supplier "{supplier_id}" delivers and is paid'))
def supplier_delivers_and_is_paid(checkout, supplier_id):
    order_id = checkout["order_id"]
    current_domain.process(MarkSupplierShipped(order_id=order_id, supplier_id=supplier_id), asynchronous=False)
    current_domain.process(MarkSupplierDelivered(order_id=order_id, supplier_id=supplier_id), asynchronous=False)
    pay_supplier(order_id, supplier_id)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("an order is placed with subtotal {subtotal:f} and total {total:f}"))
def order_placed(checkout, subtotal, total):
    order = _order(checkout)
    assert order.subtotal == pytest.approx(subtotal)
    assert order.total == pytest.approx(total)


@then(parsers.cfparse("the order has {count:d} line items"))
def order_line_items(checkout, count):
    assert len(_order(checkout).items) == count


@then(parsers.cfparse('the order payment status is "{status}"'))
def order_payment_status(checkout, status):
    assert _order(checkout).payment_status == status


@then(parsers.cfparse('supplier "{supplier_id}" is owed {amount:f}'))
def supplier_owed(checkout, supplier_id, amount):
    groups = {g.supplier_id: g for g in supplier_groups(checkout["order_id"])}
    assert groups[supplier_id].subtotal == pytest.approx(amount)


@then("the cart is empty")
def cart_is_empty(cart_id):
    assert current_domain.repository_for(ShoppingCart).get(cart_id).is_empty


@then(parsers.cfparse("the cart still has {count:d} items"))
def cart_still_has(cart_id, count):
    assert len(current_domain.repository_for(ShoppingCart).get(cart_id).items) == count


@then(parsers.cfparse("the payment gateway was charged {amount:d}"))
def gateway_charged(gateway, amount):
    assert [call["amount_minor_units"] for call in gateway.calls] == [amount]


@then("the payment gateway was not called")
def gateway_not_called(gateway):
    assert gateway.calls == []


@then("no order is placed")
def no_order(checkout):
    assert checkout["order_id"] is None
    assert checkout["error"] is not None
    assert current_domain.repository_for(Order).all_orders() == []
