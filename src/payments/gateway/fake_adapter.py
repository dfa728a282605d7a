"""Configurable fake payment gateway for development and testing.

This adapter simulates the processor's popup without any external calls.
It can be configured at runtime to succeed, decline, be cancelled by the
buyer or be unreachable, which makes it useful for:
- Manual API testing via /payments/gateway/configure
- Automated tests with predictable outcomes
- Development without real processor credentials
"""

from enum import Enum

from payments.gateway.port import (
    GatewayUnavailable,
    PaymentAttempt,
    PaymentCancelled,
    PaymentDeclined,
    PaymentGateway,
)


class FakeOutcome(Enum):
    SUCCEED = "succeed"
    CANCEL = "cancel"
    DECLINE = "decline"
    UNAVAILABLE = "unavailable"


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.outcome: FakeOutcome = FakeOutcome.SUCCEED
        self.failure_reason: str = "Card declined"
        self.calls: list[dict] = []

    def configure(self, outcome: FakeOutcome | str, failure_reason: str = "Card declined") -> None:
        """Configure gateway behavior at runtime."""
        self.outcome = FakeOutcome(outcome)
        self.failure_reason = failure_reason

    async def attempt(
        self,
        amount_minor_units: int,
        payer_email: str,
        channel: str,
        metadata: dict,
        reference: str,
    ) -> PaymentAttempt:
        call = {
            "method": "attempt",
            "amount_minor_units": amount_minor_units,
            "payer_email": payer_email,
            "channel": channel,
            "metadata": dict(metadata or {}),
            "reference": reference,
        }
        self.calls.append(call)

        if self.outcome == FakeOutcome.CANCEL:
            raise PaymentCancelled("Payment was cancelled", reference=reference)
        if self.outcome == FakeOutcome.DECLINE:
            raise PaymentDeclined(self.failure_reason, reference=reference)
        if self.outcome == FakeOutcome.UNAVAILABLE:
            raise GatewayUnavailable("Payment processor unavailable", reference=reference)

        return PaymentAttempt(reference=reference, channel=channel, metadata=dict(metadata or {}))

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:  # noqa: ARG002
        return signature == "test-signature"
