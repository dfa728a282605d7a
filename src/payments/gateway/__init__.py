"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing
- PaystackGateway for production (PAYMENT_GATEWAY=paystack)
"""

from uuid import uuid4

from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def _build_gateway() -> PaymentGateway:
    from marketplace.utils import settings

    if settings.PAYMENT_GATEWAY == "paystack":
        from payments.gateway.paystack_adapter import PaystackGateway

        return PaystackGateway(
            secret_key=settings.PAYSTACK_SECRET_KEY,
            base_url=settings.PAYSTACK_BASE_URL,
            currency=settings.CURRENCY,
            callback_url=settings.PAYSTACK_CALLBACK_URL,
            attempt_timeout=settings.PAYMENT_ATTEMPT_TIMEOUT_SECONDS,
        )
    return FakeGateway()


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway. Defaults to FakeGateway."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _build_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None


def new_reference(prefix: str = "mkt") -> str:
    """Generate a unique transaction reference."""
    return f"{prefix}_{uuid4().hex}"
