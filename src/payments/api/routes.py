"""FastAPI routes for the payment gateway — processor callbacks and test controls."""

import os

from fastapi import APIRouter, Header, HTTPException, Request

from payments.api.schemas import (
    AuthorizationResponse,
    ConfigureGatewayRequest,
    GatewayConfigResponse,
    StatusResponse,
)
from payments.gateway import get_gateway
from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.paystack_adapter import PaystackGateway

payment_router = APIRouter(prefix="/payments", tags=["payments"])


def _paystack() -> PaystackGateway:
    gateway = get_gateway()
    if not isinstance(gateway, PaystackGateway):
        raise HTTPException(status_code=400, detail="The active payment gateway does not take callbacks")
    return gateway


@payment_router.post("/paystack/webhook", response_model=StatusResponse)
async def paystack_webhook(
    request: Request,
    x_paystack_signature: str = Header(default=""),
) -> StatusResponse:
    """Resolve a pending payment attempt from a signed Paystack webhook."""
    gateway = _paystack()
    payload = await request.body()
    if not gateway.verify_webhook_signature(payload, x_paystack_signature):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    resolved = gateway.handle_webhook(payload)
    return StatusResponse(status="processed" if resolved else "ignored")


@payment_router.get("/{reference}/authorization", response_model=AuthorizationResponse)
async def payment_authorization(reference: str) -> AuthorizationResponse:
    """Hosted checkout URL the buyer must visit to complete a pending payment."""
    url = _paystack().authorization_url(reference)
    if url is None:
        raise HTTPException(status_code=404, detail="No pending payment with that reference")
    return AuthorizationResponse(reference=reference, authorization_url=url)


@payment_router.post("/{reference}/cancel", response_model=StatusResponse)
async def cancel_payment(reference: str) -> StatusResponse:
    """The buyer closed the payment popup."""
    if not _paystack().cancel(reference):
        raise HTTPException(status_code=404, detail="No pending payment with that reference")
    return StatusResponse(status="cancelled")


@payment_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure the FakeGateway behavior (non-production only).

    This endpoint is only available when PROTEAN_ENV is not 'production'.
    It allows switching between success, cancellation, decline and outage
    for manual API testing.
    """
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(outcome=body.outcome, failure_reason=body.failure_reason)
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        outcome=gateway.outcome.value,
        failure_reason=gateway.failure_reason,
    )
