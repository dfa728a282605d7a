"""Pydantic request/response schemas for the Marketplace API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from typing import Literal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class CreateCartRequest(BaseModel):
    buyer_id: str | None = None
    session_id: str | None = None


class AddToCartRequest(BaseModel):
    product_id: str
    supplier_id: str
    unit_price: float = Field(ge=0)
    quantity: int = Field(ge=1)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "prod-tomatoes-1kg",
                    "supplier_id": "farmer-001",
                    "unit_price": 10.0,
                    "quantity": 2,
                }
            ]
        }
    }


class UpdateCartQuantityRequest(BaseModel):
    new_quantity: int = Field(ge=1)


class CartItemResponse(BaseModel):
    item_id: str
    product_id: str
    supplier_id: str
    unit_price: float
    quantity: int


class CartResponse(BaseModel):
    cart_id: str
    buyer_id: str | None = None
    items: list[CartItemResponse]
    subtotal: float


class CartIdResponse(BaseModel):
    cart_id: str


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class StartCheckoutRequest(BaseModel):
    cart_id: str
    buyer_id: str | None = None


class ShippingInfoRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None
    region: str | None = None
    postal_code: str | None = None
    notes: str | None = None
    save_as_default: bool | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Ama Mensah",
                    "email": "ama@example.com",
                    "phone": "0241234567",
                    "address_line1": "12 Oxford Street",
                    "city": "Accra",
                    "region": "greater-accra",
                    "save_as_default": True,
                }
            ]
        }
    }


class PaymentSelectionRequest(BaseModel):
    method: Literal["card", "mobile_money", "cash_on_delivery"]
    provider: Literal["mtn", "vodafone", "airteltigo"] | None = None
    payer_phone: str | None = None


class CheckoutSummary(BaseModel):
    region: str | None = None
    region_label: str
    item_count: int
    subtotal: float
    shipping_fee: float
    total: float


class CheckoutResponse(BaseModel):
    checkout_id: str
    cart_id: str
    step: str
    payment_method: str
    mobile_money_provider: str | None = None
    order_id: str | None = None
    summary: CheckoutSummary | None = None


class OrderPlacedResponse(BaseModel):
    order_id: str
    total: float
    item_count: int


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class AddressResponse(BaseModel):
    name: str
    email: str
    phone: str
    address_line1: str
    address_line2: str | None = None
    city: str
    region: str
    postal_code: str | None = None


class OrderLineItemResponse(BaseModel):
    product_id: str
    supplier_id: str
    quantity: int
    unit_price: float
    line_total: float


class OrderResponse(BaseModel):
    order_id: str
    buyer_id: str | None = None
    status: str
    status_label: str
    status_badge: str
    payment_method: str
    mobile_money_provider: str | None = None
    payment_status: str
    payment_reference: str | None = None
    subtotal: float
    shipping_fee: float
    total: float
    items: list[OrderLineItemResponse]
    shipping_address: AddressResponse | None = None
    notes: str | None = None


class CancelOrderRequest(BaseModel):
    reason: str | None = None


class SupplierGroupItemResponse(BaseModel):
    product_id: str
    quantity: int
    unit_price: float
    line_total: float


class SupplierGroupResponse(BaseModel):
    supplier_id: str
    items: list[SupplierGroupItemResponse]
    subtotal: float
    shipment_status: str
    payment_status: str
    fulfillment_id: str | None = None


# ---------------------------------------------------------------------------
# Stock
# ---------------------------------------------------------------------------
class SetStockRequest(BaseModel):
    stock: int = Field(ge=0)
    unit_price: float = Field(default=0.0, ge=0)
    supplier_id: str | None = None


class StockResponse(BaseModel):
    product_id: str
    stock: int
    unit_price: float
    supplier_id: str | None = None


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------
class SalesBucket(BaseModel):
    name: str
    sales: int


class GrowthResponse(BaseModel):
    supplier_id: str
    time_range: str
    revenue: float
    order_count: int
    average_order_value: float
    previous_revenue: float
    previous_order_count: int
    previous_average_order_value: float
    revenue_growth: str
    order_growth: str
    average_order_value_growth: str
    sales: list[SalesBucket]


class StatusResponse(BaseModel):
    status: str = "ok"
