"""FastAPI routes for the Marketplace domain — carts, checkout, orders, stock and analytics."""

from datetime import UTC, datetime

from fastapi import APIRouter, Query
from fastapi.responses import HTMLResponse, Response
from protean.utils.globals import current_domain

from marketplace.analytics.growth import TimeRange, supplier_growth_report
from marketplace.api.schemas import (
    AddToCartRequest,
    CancelOrderRequest,
    CartIdResponse,
    CartItemResponse,
    CartResponse,
    CheckoutResponse,
    CheckoutSummary,
    CreateCartRequest,
    GrowthResponse,
    OrderLineItemResponse,
    OrderPlacedResponse,
    OrderResponse,
    PaymentSelectionRequest,
    SetStockRequest,
    ShippingInfoRequest,
    StartCheckoutRequest,
    StatusResponse,
    StockResponse,
    SupplierGroupResponse,
    UpdateCartQuantityRequest,
    AddressResponse,
)
from marketplace.cart.cart import ShoppingCart
from marketplace.cart.items import AddToCart, RemoveFromCart, UpdateCartQuantity
from marketplace.cart.management import ClearCart, CreateCart
from marketplace.checkout.flow import CheckoutFlow, CheckoutStep, checkout_sessions
from marketplace.fulfillment.reconciliation import pay_supplier, supplier_groups
from marketplace.fulfillment.shipment import MarkSupplierDelivered, MarkSupplierShipped
from marketplace.inventory.ledger import get_stock_ledger
from marketplace.order.export import csv_filename, orders_to_csv, render_invoice
from marketplace.order.order import Order
from marketplace.order.status import (
    CancelOrder,
    ConfirmOrder,
    MarkOrderDelivered,
    MarkOrderProcessing,
    MarkOrderShipped,
)
from marketplace.utils.logging import log_context

# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


def _cart_response(cart: ShoppingCart) -> CartResponse:
    return CartResponse(
        cart_id=str(cart.id),
        buyer_id=str(cart.buyer_id) if cart.buyer_id else None,
        items=[
            CartItemResponse(
                item_id=str(item.id),
                product_id=str(item.product_id),
                supplier_id=str(item.supplier_id),
                unit_price=item.unit_price,
                quantity=item.quantity,
            )
            for item in cart.items
        ],
        subtotal=cart.subtotal(),
    )


@cart_router.post("", status_code=201, response_model=CartIdResponse)
async def create_cart(body: CreateCartRequest) -> CartIdResponse:
    command = CreateCart(
        buyer_id=body.buyer_id,
        session_id=body.session_id,
    )
    result = current_domain.process(command, asynchronous=False)
    return CartIdResponse(cart_id=result)


@cart_router.get("/{cart_id}", response_model=CartResponse)
async def get_cart(cart_id: str) -> CartResponse:
    cart = current_domain.repository_for(ShoppingCart).get(cart_id)
    return _cart_response(cart)


@cart_router.post("/{cart_id}/items", response_model=StatusResponse)
async def add_cart_item(cart_id: str, body: AddToCartRequest) -> StatusResponse:
    command = AddToCart(
        cart_id=cart_id,
        product_id=body.product_id,
        supplier_id=body.supplier_id,
        unit_price=body.unit_price,
        quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.put("/{cart_id}/items/{item_id}", response_model=StatusResponse)
async def update_cart_item(cart_id: str, item_id: str, body: UpdateCartQuantityRequest) -> StatusResponse:
    command = UpdateCartQuantity(
        cart_id=cart_id,
        item_id=item_id,
        new_quantity=body.new_quantity,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.delete("/{cart_id}/items/{item_id}", response_model=StatusResponse)
async def remove_cart_item(cart_id: str, item_id: str) -> StatusResponse:
    current_domain.process(RemoveFromCart(cart_id=cart_id, item_id=item_id), asynchronous=False)
    return StatusResponse()


@cart_router.delete("/{cart_id}/items", response_model=StatusResponse)
async def clear_cart(cart_id: str) -> StatusResponse:
    current_domain.process(ClearCart(cart_id=cart_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


def _checkout_response(flow: CheckoutFlow) -> CheckoutResponse:
    summary = None if flow.is_complete else CheckoutSummary(**flow.summary())
    return CheckoutResponse(
        checkout_id=flow.id,
        cart_id=flow.cart_id,
        step=flow.step.value,
        payment_method=flow.payment.method,
        mobile_money_provider=flow.payment.provider,
        order_id=flow.order_id,
        summary=summary,
    )


@checkout_router.post("", status_code=201, response_model=CheckoutResponse)
async def start_checkout(body: StartCheckoutRequest) -> CheckoutResponse:
    flow = checkout_sessions.start(cart_id=body.cart_id, buyer_id=body.buyer_id)
    return _checkout_response(flow)


@checkout_router.get("/{checkout_id}", response_model=CheckoutResponse)
async def get_checkout(checkout_id: str) -> CheckoutResponse:
    return _checkout_response(checkout_sessions.get(checkout_id))


@checkout_router.put("/{checkout_id}/shipping", response_model=CheckoutResponse)
async def update_shipping(checkout_id: str, body: ShippingInfoRequest) -> CheckoutResponse:
    flow = checkout_sessions.get(checkout_id)
    flow.update_shipping(**body.model_dump(exclude_none=True))
    return _checkout_response(flow)


@checkout_router.post("/{checkout_id}/advance", response_model=CheckoutResponse)
async def advance_checkout(checkout_id: str) -> CheckoutResponse:
    flow = checkout_sessions.get(checkout_id)
    flow.advance()
    return _checkout_response(flow)


@checkout_router.post("/{checkout_id}/back", response_model=CheckoutResponse)
async def checkout_back(checkout_id: str) -> CheckoutResponse:
    flow = checkout_sessions.get(checkout_id)
    flow.back()
    return _checkout_response(flow)


@checkout_router.put("/{checkout_id}/payment", response_model=CheckoutResponse)
async def select_payment(checkout_id: str, body: PaymentSelectionRequest) -> CheckoutResponse:
    flow = checkout_sessions.get(checkout_id)
    flow.select_payment(method=body.method, provider=body.provider, payer_phone=body.payer_phone)
    return _checkout_response(flow)


@checkout_router.post("/{checkout_id}/submit", response_model=OrderPlacedResponse)
async def submit_checkout(checkout_id: str) -> OrderPlacedResponse:
    """Take payment and place the order.

    Card and mobile-money payments wait here until the processor reports back.
    """
    flow = checkout_sessions.get(checkout_id)
    if flow.step == CheckoutStep.CONFIRMATION:
        notice = flow.notice
    else:
        with log_context(checkout_id=flow.id, cart_id=flow.cart_id):
            await flow.submit()
        notice = flow.notice
    return OrderPlacedResponse(order_id=notice.order_id, total=notice.total, item_count=notice.item_count)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


def _order_response(order: Order) -> OrderResponse:
    presentation = order.presentation
    address = order.shipping_address
    return OrderResponse(
        order_id=str(order.id),
        buyer_id=str(order.buyer_id) if order.buyer_id else None,
        status=order.status,
        status_label=presentation.label,
        status_badge=presentation.badge,
        payment_method=order.payment_method,
        mobile_money_provider=order.mobile_money_provider,
        payment_status=order.payment_status,
        payment_reference=order.payment_reference,
        subtotal=order.subtotal,
        shipping_fee=order.shipping_fee,
        total=order.total,
        items=[
            OrderLineItemResponse(
                product_id=str(item.product_id),
                supplier_id=str(item.supplier_id),
                quantity=item.quantity,
                unit_price=item.unit_price,
                line_total=item.line_total,
            )
            for item in order.items
        ],
        shipping_address=(
            AddressResponse(
                name=address.name,
                email=address.email,
                phone=address.phone,
                address_line1=address.address_line1,
                address_line2=address.address_line2,
                city=address.city,
                region=address.region,
                postal_code=address.postal_code,
            )
            if address
            else None
        ),
        notes=order.notes,
    )


@order_router.get("/export.csv")
async def export_orders() -> Response:
    orders = current_domain.repository_for(Order).all_orders()
    filename = csv_filename(datetime.now(UTC).date())
    return Response(
        content=orders_to_csv(orders),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    order = current_domain.repository_for(Order).get(order_id)
    return _order_response(order)


@order_router.get("/{order_id}/invoice", response_class=HTMLResponse)
async def order_invoice(order_id: str) -> HTMLResponse:
    order = current_domain.repository_for(Order).get(order_id)
    return HTMLResponse(content=render_invoice(order))


@order_router.put("/{order_id}/confirm", response_model=StatusResponse)
async def confirm_order(order_id: str) -> StatusResponse:
    current_domain.process(ConfirmOrder(order_id=order_id), asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/processing", response_model=StatusResponse)
async def mark_processing(order_id: str) -> StatusResponse:
    current_domain.process(MarkOrderProcessing(order_id=order_id), asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/shipped", response_model=StatusResponse)
async def mark_shipped(order_id: str) -> StatusResponse:
    current_domain.process(MarkOrderShipped(order_id=order_id), asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/delivered", response_model=StatusResponse)
async def mark_delivered(order_id: str) -> StatusResponse:
    current_domain.process(MarkOrderDelivered(order_id=order_id), asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest) -> StatusResponse:
    with log_context(order_id=order_id):
        current_domain.process(CancelOrder(order_id=order_id, reason=body.reason), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Supplier fulfillment (nested under orders)
# ---------------------------------------------------------------------------
@order_router.get("/{order_id}/suppliers", response_model=list[SupplierGroupResponse])
async def list_supplier_groups(order_id: str) -> list[SupplierGroupResponse]:
    return [SupplierGroupResponse(**group.to_dict()) for group in supplier_groups(order_id)]


@order_router.put("/{order_id}/suppliers/{supplier_id}/shipped", response_model=StatusResponse)
async def mark_supplier_shipped(order_id: str, supplier_id: str) -> StatusResponse:
    current_domain.process(MarkSupplierShipped(order_id=order_id, supplier_id=supplier_id), asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/suppliers/{supplier_id}/delivered", response_model=StatusResponse)
async def mark_supplier_delivered(order_id: str, supplier_id: str) -> StatusResponse:
    current_domain.process(MarkSupplierDelivered(order_id=order_id, supplier_id=supplier_id), asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/suppliers/{supplier_id}/pay", response_model=StatusResponse)
async def pay_order_supplier(order_id: str, supplier_id: str) -> StatusResponse:
    with log_context(order_id=order_id, supplier_id=supplier_id):
        pay_supplier(order_id, supplier_id)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Stock Router
# ---------------------------------------------------------------------------
stock_router = APIRouter(prefix="/stock", tags=["stock"])


@stock_router.put("/{product_id}", response_model=StockResponse)
async def set_stock(product_id: str, body: SetStockRequest) -> StockResponse:
    level = get_stock_ledger().set_stock(
        product_id,
        stock=body.stock,
        unit_price=body.unit_price,
        supplier_id=body.supplier_id,
    )
    return StockResponse(**level.__dict__)


@stock_router.get("/{product_id}", response_model=StockResponse)
async def get_stock(product_id: str) -> StockResponse:
    level = get_stock_ledger().get(product_id)
    return StockResponse(**level.__dict__)


# ---------------------------------------------------------------------------
# Analytics Router
# ---------------------------------------------------------------------------
analytics_router = APIRouter(prefix="/analytics", tags=["analytics"])


@analytics_router.get("/suppliers/{supplier_id}/growth", response_model=GrowthResponse)
async def supplier_growth(supplier_id: str, time_range: TimeRange = Query(default=TimeRange.MONTH)) -> GrowthResponse:
    report = supplier_growth_report(supplier_id, time_range)
    return GrowthResponse(**report.to_dict())
