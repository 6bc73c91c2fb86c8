"""
Tests for CheckoutService.

Covers the destination-charge split (platform fee vs vendor transfer),
vendor readiness gating, persistence of the PENDING PaymentIntent and
processor failure handling.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from core.exceptions import ValidationError
from payments.exceptions import ProcessorError, ProcessorUnavailable, VendorNotReady
from payments.models import PaymentIntent
from payments.services import CheckoutRequest, CheckoutService
from payments.state_machines import OnboardingStatus, PaymentIntentStatus
from payments.tests.factories import PaymentIntentFactory, VendorAccountFactory


def make_request(vendor, **overrides) -> CheckoutRequest:
    values = {
        "order_id": uuid4(),
        "amount": Decimal("25.00"),
        "service_fee": Decimal("2.50"),
        "vendor_owner_id": vendor.owner_user_id,
        "success_url": "https://app.example.com/orders/1?paid=1",
        "cancel_url": "https://app.example.com/cart",
    }
    values.update(overrides)
    return CheckoutRequest(**values)


@pytest.mark.django_db
class TestBuildCheckoutSession:
    """Tests for build_checkout_session."""

    def test_creates_session_and_pending_intent(self, processor, ready_vendor):
        request = make_request(ready_vendor)

        session = CheckoutService.build_checkout_session(request)

        assert session.url == processor.checkout_url
        intent = PaymentIntent.objects.get(provider_intent_id="pi_checkout_1")
        assert session.payment_intent == intent
        assert intent.order_id == request.order_id
        assert intent.status == PaymentIntentStatus.PENDING
        assert intent.amount == Decimal("25.00")
        assert intent.service_fee == Decimal("2.50")
        assert intent.currency == "USD"

    def test_splits_amount_between_platform_and_vendor(self, processor, ready_vendor):
        CheckoutService.build_checkout_session(make_request(ready_vendor))

        params = processor.calls_to("create_checkout_session")[0]["params"]
        assert params.amount_cents == 2500
        assert params.application_fee_cents == 250
        assert params.destination_account_id == ready_vendor.provider_account_id
        assert params.currency == "usd"

    def test_zero_fee_allowed(self, processor, ready_vendor):
        CheckoutService.build_checkout_session(
            make_request(ready_vendor, service_fee=Decimal("0.00"))
        )

        params = processor.calls_to("create_checkout_session")[0]["params"]
        assert params.application_fee_cents == 0

    def test_rounds_half_up_to_cents(self, processor, ready_vendor):
        CheckoutService.build_checkout_session(
            make_request(ready_vendor, amount=Decimal("10.005"), service_fee=Decimal("1.005"))
        )

        params = processor.calls_to("create_checkout_session")[0]["params"]
        assert params.amount_cents == 1001
        assert params.application_fee_cents == 101

    def test_retried_checkout_uses_new_attempt_key(self, processor, ready_vendor):
        order_id = uuid4()
        PaymentIntentFactory(order_id=order_id)

        CheckoutService.build_checkout_session(make_request(ready_vendor, order_id=order_id))

        params = processor.calls_to("create_checkout_session")[0]["params"]
        assert params.idempotency_key.startswith(f"checkout_session:{order_id}:2:")

    def test_session_without_intent_id_persists_nothing(self, processor, ready_vendor):
        processor.checkout_payment_intent_id = None

        session = CheckoutService.build_checkout_session(make_request(ready_vendor))

        assert session.payment_intent is None
        assert PaymentIntent.objects.count() == 0


@pytest.mark.django_db
class TestCheckoutRejections:
    """Tests for refused checkouts."""

    def test_unknown_vendor_not_ready(self, processor, ready_vendor):
        request = make_request(ready_vendor, vendor_owner_id=uuid4())

        with pytest.raises(VendorNotReady):
            CheckoutService.build_checkout_session(request)

        assert processor.calls_to("create_checkout_session") == []

    def test_incomplete_onboarding_not_ready(self, processor):
        vendor = VendorAccountFactory(onboarding_status=OnboardingStatus.RESTRICTED)

        with pytest.raises(VendorNotReady) as exc_info:
            CheckoutService.build_checkout_session(make_request(vendor))

        assert exc_info.value.error_code == "VENDOR_NOT_READY"
        assert PaymentIntent.objects.count() == 0

    def test_fee_above_amount_rejected(self, processor, ready_vendor):
        with pytest.raises(ValidationError) as exc_info:
            CheckoutService.build_checkout_session(
                make_request(ready_vendor, service_fee=Decimal("30.00"))
            )

        assert exc_info.value.error_code == "INVALID_SERVICE_FEE"
        assert processor.calls == []

    def test_zero_amount_rejected(self, processor, ready_vendor):
        with pytest.raises(ValidationError):
            CheckoutService.build_checkout_session(
                make_request(
                    ready_vendor, amount=Decimal("0.00"), service_fee=Decimal("0.00")
                )
            )

    def test_processor_unavailable_persists_nothing(self, processor, ready_vendor):
        processor.fail_next("create_checkout_session", ProcessorUnavailable("timeout"))

        with pytest.raises(ProcessorUnavailable):
            CheckoutService.build_checkout_session(make_request(ready_vendor))

        assert PaymentIntent.objects.count() == 0

    def test_missing_url_is_processor_error(self, processor, ready_vendor):
        processor.checkout_url = None

        with pytest.raises(ProcessorError):
            CheckoutService.build_checkout_session(make_request(ready_vendor))

        assert PaymentIntent.objects.count() == 0
