"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement.
Checkout code only ever talks to this interface, so FakeGateway (dev/test)
and PaystackGateway (production) are interchangeable.

An attempt either resolves with the processor's transaction reference or
raises a ``GatewayError``. A failed attempt has no side effects: nothing is
charged and nothing is persisted.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum


class PaymentChannel(Enum):
    CARD = "card"
    MOBILE_MONEY = "mobile_money"


@dataclass(frozen=True)
class PaymentAttempt:
    """Result of a successful payment attempt."""

    reference: str
    status: str = "success"
    channel: str | None = None
    metadata: dict = field(default_factory=dict)


class GatewayError(Exception):
    """Base class for payment attempts that did not capture any money."""

    def __init__(self, message: str, reference: str | None = None):
        super().__init__(message)
        self.reference = reference


class PaymentCancelled(GatewayError):
    """The buyer closed the processor's payment dialog."""


class PaymentDeclined(GatewayError):
    """The processor refused the charge."""


class GatewayUnavailable(GatewayError):
    """The processor could not be reached or did not answer in time."""


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    async def attempt(
        self,
        amount_minor_units: int,
        payer_email: str,
        channel: str,
        metadata: dict,
        reference: str,
    ) -> PaymentAttempt:
        """Open the processor's interactive flow and wait for its outcome."""
        ...

    @abstractmethod
    def verify_webhook_signature(
        self,
        payload: bytes,
        signature: str,
    ) -> bool:
        """Verify that a webhook payload is authentically from the gateway."""
        ...
