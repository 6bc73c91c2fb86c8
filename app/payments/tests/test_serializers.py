"""
Tests for payments API serializers.
"""

import uuid
from decimal import Decimal

import pytest

from payments.serializers import (
    CheckoutSessionRequestSerializer,
    CreatePaymentIntentSerializer,
    RefundByOrderSerializer,
    RefundDecisionSerializer,
)


def checkout_data(**overrides):
    data = {
        "order_id": str(uuid.uuid4()),
        "amount": "25.00",
        "service_fee": "2.50",
        "vendor_owner_id": str(uuid.uuid4()),
        "success_url": "https://app.example.com/paid",
        "cancel_url": "https://app.example.com/cart",
    }
    data.update(overrides)
    return data


class TestCheckoutSessionRequestSerializer:
    """Tests for CheckoutSessionRequestSerializer."""

    def test_valid(self):
        serializer = CheckoutSessionRequestSerializer(data=checkout_data())

        assert serializer.is_valid(), serializer.errors
        assert serializer.validated_data["amount"] == Decimal("25.00")
        assert serializer.validated_data["service_fee"] == Decimal("2.50")

    def test_service_fee_defaults_to_zero(self):
        data = checkout_data()
        del data["service_fee"]
        serializer = CheckoutSessionRequestSerializer(data=data)

        assert serializer.is_valid(), serializer.errors
        assert serializer.validated_data["service_fee"] == Decimal("0.00")

    def test_fee_equal_to_amount_allowed(self):
        serializer = CheckoutSessionRequestSerializer(
            data=checkout_data(amount="5.00", service_fee="5.00")
        )

        assert serializer.is_valid(), serializer.errors

    def test_fee_above_amount_rejected(self):
        serializer = CheckoutSessionRequestSerializer(
            data=checkout_data(amount="5.00", service_fee="5.01")
        )

        assert not serializer.is_valid()
        assert "service_fee" in serializer.errors

    @pytest.mark.parametrize(
        "field,value",
        [
            ("amount", "0.00"),
            ("amount", "-1.00"),
            ("amount", "1.001"),
            ("service_fee", "-0.01"),
            ("order_id", "not-a-uuid"),
            ("cancel_url", "cart"),
        ],
    )
    def test_invalid_fields(self, field, value):
        serializer = CheckoutSessionRequestSerializer(data=checkout_data(**{field: value}))

        assert not serializer.is_valid()
        assert field in serializer.errors


class TestCreatePaymentIntentSerializer:
    def test_currency_defaults_to_usd(self):
        serializer = CreatePaymentIntentSerializer(
            data={"order_id": str(uuid.uuid4()), "amount": "10.00"}
        )

        assert serializer.is_valid(), serializer.errors
        assert serializer.validated_data["currency"] == "USD"

    def test_currency_must_be_three_letters(self):
        serializer = CreatePaymentIntentSerializer(
            data={"order_id": str(uuid.uuid4()), "amount": "10.00", "currency": "US"}
        )

        assert not serializer.is_valid()
        assert "currency" in serializer.errors


class TestRefundSerializers:
    def test_reason_is_optional(self):
        serializer = RefundByOrderSerializer(data={"order_id": str(uuid.uuid4())})

        assert serializer.is_valid(), serializer.errors
        assert "reason" not in serializer.validated_data

    def test_decision_output(self):
        refund_id = uuid.uuid4()

        data = RefundDecisionSerializer(
            {"action": "refunded", "refund_id": refund_id, "message": "Refund created."}
        ).data

        assert data == {
            "action": "refunded",
            "refund_id": str(refund_id),
            "message": "Refund created.",
        }
