"""Paystack payment gateway adapter.

Card and mobile-money payments go through Paystack's hosted checkout:
- ``POST /transaction/initialize`` returns an authorization URL for the buyer
- the buyer completes or closes the popup
- Paystack posts a signed webhook (``charge.success`` / ``charge.failed``);
  a closed popup is reported by the storefront through the cancel route
- ``GET /transaction/verify/{reference}`` confirms the charge before we
  treat it as captured

HTTP calls use ``requests`` with tenacity retries on transport errors and
run off the event loop.
"""

import asyncio
import hashlib
import hmac
import json

import requests
import structlog
from requests import RequestException
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from payments.gateway.callbacks import CallbackOutcome, CallbackRegistry, callback_registry
from payments.gateway.port import (
    GatewayUnavailable,
    PaymentAttempt,
    PaymentCancelled,
    PaymentChannel,
    PaymentDeclined,
    PaymentGateway,
)

logger = structlog.get_logger(__name__)

# Paystack's names for the channels we offer
_CHANNELS = {
    PaymentChannel.CARD.value: ["card"],
    PaymentChannel.MOBILE_MONEY.value: ["mobile_money"],
}


def http_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type(RequestException),
    )


class PaystackGateway(PaymentGateway):
    """Production Paystack gateway adapter."""

    def __init__(
        self,
        secret_key: str,
        base_url: str = "https://api.paystack.co",
        currency: str = "GHS",
        callback_url: str = "",
        attempt_timeout: float | None = None,
        registry: CallbackRegistry | None = None,
        http_timeout: int = 10,
    ) -> None:
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.currency = currency
        self.callback_url = callback_url
        self.attempt_timeout = attempt_timeout
        self.registry = registry or callback_registry
        self.http_timeout = http_timeout

    # -------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------
    @property
    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

    @http_retry()
    def initialize_transaction(
        self,
        amount_minor_units: int,
        payer_email: str,
        channel: str,
        metadata: dict,
        reference: str,
    ) -> dict:
        url = f"{self.base_url}/transaction/initialize"
        body = {
            "amount": amount_minor_units,
            "email": payer_email,
            "currency": self.currency,
            "reference": reference,
            "channels": _CHANNELS.get(channel, [channel]),
            "metadata": metadata or {},
        }
        if self.callback_url:
            body["callback_url"] = self.callback_url

        logger.info("Paystack initialize", reference=reference, channel=channel, amount=amount_minor_units)
        resp = requests.post(url, json=body, headers=self._headers, timeout=self.http_timeout)
        resp.raise_for_status()
        return resp.json()["data"]

    @http_retry()
    def verify_transaction(self, reference: str) -> dict:
        url = f"{self.base_url}/transaction/verify/{reference}"
        logger.info("Paystack verify", reference=reference)
        resp = requests.get(url, headers=self._headers, timeout=self.http_timeout)
        resp.raise_for_status()
        return resp.json()["data"]

    # -------------------------------------------------------------------
    # Port
    # -------------------------------------------------------------------
    async def attempt(
        self,
        amount_minor_units: int,
        payer_email: str,
        channel: str,
        metadata: dict,
        reference: str,
    ) -> PaymentAttempt:
        try:
            data = await asyncio.to_thread(
                self.initialize_transaction,
                amount_minor_units,
                payer_email,
                channel,
                metadata,
                reference,
            )
        except RequestException as exc:
            logger.error("Paystack initialize failed", reference=reference, error=str(exc))
            raise GatewayUnavailable("Payment processor unavailable", reference=reference) from exc

        pending = self.registry.register(reference, data.get("authorization_url", ""))

        try:
            if self.attempt_timeout is None:
                outcome, message = await pending.future
            else:
                outcome, message = await asyncio.wait_for(pending.future, timeout=self.attempt_timeout)
        except asyncio.TimeoutError as exc:
            raise GatewayUnavailable("Payment was not completed in time", reference=reference) from exc
        finally:
            # Also covers the waiting request being cancelled
            self.registry.discard(reference)

        if outcome == CallbackOutcome.CANCELLED:
            raise PaymentCancelled(message or "Payment was cancelled", reference=reference)
        if outcome == CallbackOutcome.DECLINED:
            raise PaymentDeclined(message or "Payment was declined", reference=reference)

        try:
            verified = await asyncio.to_thread(self.verify_transaction, reference)
        except RequestException as exc:
            logger.error("Paystack verify failed", reference=reference, error=str(exc))
            raise GatewayUnavailable("Could not confirm payment", reference=reference) from exc

        if verified.get("status") != "success":
            raise PaymentDeclined(
                verified.get("gateway_response") or "Payment was declined",
                reference=reference,
            )

        return PaymentAttempt(reference=reference, channel=channel, metadata=dict(metadata or {}))

    def authorization_url(self, reference: str) -> str | None:
        """Return the hosted checkout URL for a pending attempt."""
        pending = self.registry.get(reference)
        return pending.authorization_url if pending else None

    # -------------------------------------------------------------------
    # Callbacks
    # -------------------------------------------------------------------
    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        expected = hmac.new(self.secret_key.encode(), payload, hashlib.sha512).hexdigest()
        return hmac.compare_digest(expected, signature or "")

    def handle_webhook(self, payload: bytes) -> bool:
        """Resolve the pending attempt a webhook refers to.

        The caller checks ``verify_webhook_signature`` first.
        """
        body = json.loads(payload)
        event = body.get("event")
        data = body.get("data") or {}
        reference = data.get("reference")
        if not reference:
            return False

        if event == "charge.success":
            return self.registry.resolve(reference, CallbackOutcome.SUCCESS)
        if event == "charge.failed":
            return self.registry.resolve(
                reference,
                CallbackOutcome.DECLINED,
                data.get("gateway_response") or "Payment was declined",
            )

        logger.info("Ignoring Paystack webhook event", paystack_event=event, reference=reference)
        return False

    def cancel(self, reference: str) -> bool:
        """The buyer closed the popup without paying."""
        return self.registry.resolve(reference, CallbackOutcome.CANCELLED)
