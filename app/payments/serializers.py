"""
DRF serializers for payments app.

This module provides request and response serializers for:
- Vendor onboarding
- Checkout sessions and direct payment intents
- Capture, refund and cancel operations

Amounts are decimals in major units with 2 decimal places.

Usage:
    serializer = CheckoutSessionRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    params = serializer.validated_data
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from payments.services.refund_decision_service import RefundAction
from payments.state_machines import OnboardingStatus

AMOUNT_FIELD_KWARGS = {"max_digits": 12, "decimal_places": 2}


# =============================================================================
# Vendor Onboarding
# =============================================================================


class ConnectLinkSerializer(serializers.Serializer):
    """Onboarding link response."""

    url = serializers.URLField(read_only=True)


class OnboardingStatusSerializer(serializers.Serializer):
    """
    Onboarding status response.

    provider_account_id is null until the vendor starts onboarding.
    """

    provider_account_id = serializers.CharField(read_only=True, allow_null=True)
    status = serializers.ChoiceField(choices=OnboardingStatus.choices, read_only=True)


class PaymentReadySerializer(serializers.Serializer):
    restaurant_id = serializers.UUIDField(read_only=True)
    payment_ready = serializers.BooleanField(read_only=True)


# =============================================================================
# Checkout & Payment Intents
# =============================================================================


class CheckoutSessionRequestSerializer(serializers.Serializer):
    """
    Checkout session request.

    Fields:
        order_id: Order being paid
        amount: Total charged to the customer
        service_fee: Platform fee retained from amount
        vendor_owner_id: User id of the receiving vendor
        success_url / cancel_url: Customer redirect targets
    """

    order_id = serializers.UUIDField()
    amount = serializers.DecimalField(min_value=Decimal("0.01"), **AMOUNT_FIELD_KWARGS)
    service_fee = serializers.DecimalField(
        min_value=Decimal("0.00"),
        default=Decimal("0.00"),
        **AMOUNT_FIELD_KWARGS,
    )
    vendor_owner_id = serializers.UUIDField()
    success_url = serializers.URLField()
    cancel_url = serializers.URLField()

    def validate(self, attrs: dict) -> dict:
        if attrs["service_fee"] > attrs["amount"]:
            raise serializers.ValidationError(
                {"service_fee": ["Service fee cannot exceed the amount."]}
            )
        return attrs


class CheckoutSessionResponseSerializer(serializers.Serializer):
    url = serializers.URLField(read_only=True)


class CreatePaymentIntentSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    amount = serializers.DecimalField(min_value=Decimal("0.01"), **AMOUNT_FIELD_KWARGS)
    currency = serializers.CharField(min_length=3, max_length=3, default="USD")


class PaymentIntentCreatedSerializer(serializers.Serializer):
    payment_intent_id = serializers.UUIDField(read_only=True)


class AuthorizePaymentSerializer(serializers.Serializer):
    payment_intent_id = serializers.UUIDField()
    payment_method_id = serializers.CharField(max_length=255)


class CapturePaymentSerializer(serializers.Serializer):
    payment_intent_id = serializers.UUIDField()


class OperationResultSerializer(serializers.Serializer):
    """Boolean outcome of capture/authorize operations."""

    success = serializers.BooleanField(read_only=True)


# =============================================================================
# Internal Order Operations
# =============================================================================


class OrderReferenceSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()


class RefundByOrderSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    reason = serializers.CharField(
        max_length=255,
        required=False,
        allow_blank=True,
        allow_null=True,
    )


class RefundDecisionSerializer(serializers.Serializer):
    """Decision engine outcome."""

    action = serializers.ChoiceField(
        choices=[action.value for action in RefundAction],
        read_only=True,
    )
    refund_id = serializers.UUIDField(read_only=True, allow_null=True)
    message = serializers.CharField(read_only=True)


class CancelResultSerializer(serializers.Serializer):
    cancelled = serializers.BooleanField(read_only=True)
