"""Tests for the payment method chosen on the PAYMENT step."""

import pytest
from marketplace.checkout.flow import PaymentSelection
from protean.exceptions import ValidationError


class TestPaymentSelection:
    def test_card(self):
        PaymentSelection(method="card").validate()

    def test_cash_on_delivery(self):
        PaymentSelection(method="cash_on_delivery").validate()

    def test_mobile_money(self):
        PaymentSelection(method="mobile_money", provider="vodafone", payer_phone="0201234567").validate()

    def test_mobile_money_needs_provider_and_phone(self):
        with pytest.raises(ValidationError) as exc:
            PaymentSelection(method="mobile_money").validate()
        assert set(exc.value.messages) == {"provider", "payer_phone"}

    def test_unknown_provider(self):
        with pytest.raises(ValidationError) as exc:
            PaymentSelection(method="mobile_money", provider="mpesa", payer_phone="0201234567").validate()
        assert "provider" in exc.value.messages

    def test_unknown_method(self):
        with pytest.raises(ValidationError) as exc:
            PaymentSelection(method="cheque").validate()
        assert "payment_method" in exc.value.messages
