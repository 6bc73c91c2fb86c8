"""
Tests for Stripe adapter.

Tests cover:
- Idempotency key generation
- Request shape of each Stripe call
- Error translation for each exception type
- Webhook verification
"""

import uuid

import pytest
import stripe

from payments.adapters import (
    CheckoutSessionParams,
    IdempotencyKeyGenerator,
    RefundParams,
    StripeAdapter,
)
from payments.exceptions import (
    ProcessorCardDeclined,
    ProcessorRateLimited,
    ProcessorRequestError,
    ProcessorUnavailable,
    WebhookSignatureError,
)


# =============================================================================
# IdempotencyKeyGenerator Tests
# =============================================================================


class TestIdempotencyKeyGenerator:
    """Tests for IdempotencyKeyGenerator."""

    def test_generate_key_format(self):
        """Should generate key in correct format."""
        entity_id = uuid.uuid4()
        key = IdempotencyKeyGenerator.generate(
            operation="checkout_session",
            entity_id=entity_id,
            attempt=1,
        )

        parts = key.split(":")
        assert len(parts) == 4
        assert parts[0] == "checkout_session"
        assert parts[1] == str(entity_id)
        assert parts[2] == "1"
        assert len(parts[3]) == 8

    def test_same_inputs_produce_same_key(self):
        """Same inputs should produce same key (deterministic)."""
        entity_id = f"{uuid.uuid4()}_pi_123"

        key1 = IdempotencyKeyGenerator.generate("refund_by_order", entity_id)
        key2 = IdempotencyKeyGenerator.generate("refund_by_order", entity_id)

        assert key1 == key2

    def test_different_attempts_produce_different_keys(self):
        entity_id = uuid.uuid4()

        key1 = IdempotencyKeyGenerator.generate("checkout_session", entity_id, attempt=1)
        key2 = IdempotencyKeyGenerator.generate("checkout_session", entity_id, attempt=2)

        assert key1 != key2

    def test_different_operations_produce_different_keys(self):
        entity_id = uuid.uuid4()

        key1 = IdempotencyKeyGenerator.generate("capture", entity_id)
        key2 = IdempotencyKeyGenerator.generate("refund_by_order", entity_id)

        assert key1 != key2

    def test_hash_depends_on_secret_key(self, settings):
        settings.SECRET_KEY = "first-secret"
        key1 = IdempotencyKeyGenerator.generate("capture", "pi_123")

        settings.SECRET_KEY = "second-secret"
        key2 = IdempotencyKeyGenerator.generate("capture", "pi_123")

        assert key1.rsplit(":", 1)[0] == key2.rsplit(":", 1)[0]
        assert key1 != key2


# =============================================================================
# Successful Operation Tests
# =============================================================================


class TestStripeAdapterAccounts:
    """Tests for connected account operations."""

    def test_create_account(self, mock_stripe_account):
        owner_id = uuid.uuid4()

        result = StripeAdapter.create_account(owner_id, idempotency_key="key-1")

        assert result.id == "acct_test123"
        assert result.charges_enabled is False
        mock_stripe_account.create.assert_called_once_with(
            type="standard",
            country="US",
            metadata={"OwnerUserId": str(owner_id)},
            idempotency_key="key-1",
        )

    def test_create_onboarding_link(self, mock_stripe_account):
        url = StripeAdapter.create_onboarding_link(
            "acct_test123",
            return_url="https://app.example.com/vendor?stripe=return",
            refresh_url="https://app.example.com/vendor?stripe=refresh",
        )

        assert url == "https://connect.stripe.com/setup/s/acct_test123"
        mock_stripe_account.link.create.assert_called_once_with(
            account="acct_test123",
            type="account_onboarding",
            return_url="https://app.example.com/vendor?stripe=return",
            refresh_url="https://app.example.com/vendor?stripe=refresh",
        )

    def test_get_account(self, mock_stripe_account):
        result = StripeAdapter.get_account("acct_test123")

        assert result.charges_enabled is True
        assert result.payouts_enabled is True
        assert result.details_submitted is True
        assert result.raw_response["object"] == "account"


class TestStripeAdapterCheckout:
    """Tests for checkout session creation."""

    def test_destination_charge_request(self, mock_stripe_checkout_session):
        order_id = uuid.uuid4()
        params = CheckoutSessionParams(
            order_id=order_id,
            amount_cents=2500,
            application_fee_cents=250,
            destination_account_id="acct_vendor",
            success_url="https://app.example.com/paid",
            cancel_url="https://app.example.com/cart",
            idempotency_key="checkout_session:abc:1:deadbeef",
        )

        result = StripeAdapter.create_checkout_session(params)

        assert result.id == "cs_test123"
        assert result.url == "https://checkout.stripe.com/c/pay/cs_test123"
        assert result.payment_intent_id == "pi_from_session"

        kwargs = mock_stripe_checkout_session.create.call_args.kwargs
        assert kwargs["mode"] == "payment"
        assert kwargs["client_reference_id"] == str(order_id)
        assert kwargs["line_items"][0]["price_data"]["unit_amount"] == 2500
        assert kwargs["payment_intent_data"]["application_fee_amount"] == 250
        assert kwargs["payment_intent_data"]["transfer_data"] == {
            "destination": "acct_vendor"
        }
        assert kwargs["payment_intent_data"]["metadata"] == {"OrderId": str(order_id)}
        assert kwargs["expand"] == ["payment_intent"]
        assert kwargs["idempotency_key"] == "checkout_session:abc:1:deadbeef"

    def test_product_name_is_truncated(self, mock_stripe_checkout_session):
        params = CheckoutSessionParams(
            order_id=uuid.uuid4(),
            amount_cents=100,
            application_fee_cents=0,
            destination_account_id="acct_vendor",
            success_url="https://app.example.com/paid",
            cancel_url="https://app.example.com/cart",
        )

        StripeAdapter.create_checkout_session(params)

        kwargs = mock_stripe_checkout_session.create.call_args.kwargs
        name = kwargs["line_items"][0]["price_data"]["product_data"]["name"]
        assert len(name) <= 24


class TestStripeAdapterPaymentIntents:
    """Tests for PaymentIntent operations."""

    def test_create_payment_intent(self, mock_stripe_payment_intent):
        result = StripeAdapter.create_payment_intent(
            amount_cents=999,
            currency="usd",
            metadata={"OrderId": "order-1"},
            idempotency_key="create:1",
        )

        assert result.status == "requires_payment_method"
        assert result.client_secret == "pi_test123456_secret_abc123"
        mock_stripe_payment_intent.create.assert_called_once_with(
            amount=999,
            currency="usd",
            metadata={"OrderId": "order-1"},
            automatic_payment_methods={"enabled": True},
            idempotency_key="create:1",
        )

    def test_confirm_payment_intent(self, mock_stripe_payment_intent):
        result = StripeAdapter.confirm_payment_intent("pi_test123456", "pm_card_visa")

        assert result.status == "requires_capture"
        assert result.latest_charge == "ch_test123456"
        mock_stripe_payment_intent.confirm.assert_called_once_with(
            "pi_test123456", payment_method="pm_card_visa"
        )

    def test_confirm_reports_last_payment_error(
        self, mock_stripe_payment_intent, mock_payment_intent
    ):
        mock_stripe_payment_intent.confirm.return_value = mock_payment_intent(
            status="requires_payment_method",
            last_payment_error={"message": "Your card has expired."},
        )

        result = StripeAdapter.confirm_payment_intent("pi_test123456", "pm_1")

        assert result.last_error == "Your card has expired."

    def test_capture_passes_idempotency_key(self, mock_stripe_payment_intent):
        result = StripeAdapter.capture("pi_test123456", idempotency_key="capture:pi:1:abc")

        assert result.status == "succeeded"
        mock_stripe_payment_intent.capture.assert_called_once_with(
            "pi_test123456", idempotency_key="capture:pi:1:abc"
        )

    def test_cancel(self, mock_stripe_payment_intent):
        result = StripeAdapter.cancel("pi_test123456")

        assert result.status == "canceled"
        mock_stripe_payment_intent.cancel.assert_called_once_with(
            "pi_test123456", cancellation_reason="requested_by_customer"
        )


class TestStripeAdapterRefunds:
    """Tests for refund creation."""

    def test_refund_reverses_transfer_and_fee(self, mock_stripe_refund):
        result = StripeAdapter.refund(
            RefundParams(
                provider_intent_id="pi_test123456",
                amount_cents=2500,
                reason="requested_by_customer",
                idempotency_key="refund_by_order:x:1:abc",
            )
        )

        assert result.id == "re_test123456"
        assert result.status == "succeeded"
        assert result.amount_cents == 2500
        assert result.payment_intent_id == "pi_test123456"
        mock_stripe_refund.create.assert_called_once_with(
            payment_intent="pi_test123456",
            amount=2500,
            reason="requested_by_customer",
            reverse_transfer=True,
            refund_application_fee=True,
            idempotency_key="refund_by_order:x:1:abc",
        )


# =============================================================================
# Error Translation Tests
# =============================================================================


class TestStripeAdapterErrorTranslation:
    """Tests for Stripe error translation to domain exceptions."""

    def test_card_error(self, mock_stripe_payment_intent, card_error):
        mock_stripe_payment_intent.confirm.side_effect = card_error

        with pytest.raises(ProcessorCardDeclined) as exc_info:
            StripeAdapter.confirm_payment_intent("pi_test123456", "pm_1")

        assert exc_info.value.decline_code == "insufficient_funds"
        assert exc_info.value.provider_code == "card_declined"
        assert exc_info.value.is_retryable is False

    def test_invalid_request_error(self, mock_stripe_payment_intent, invalid_request_error):
        mock_stripe_payment_intent.capture.side_effect = invalid_request_error

        with pytest.raises(ProcessorRequestError) as exc_info:
            StripeAdapter.capture("pi_missing")

        assert exc_info.value.provider_code == "resource_missing"
        assert exc_info.value.is_retryable is False

    def test_rate_limit_error(self, mock_stripe_refund, rate_limit_error):
        mock_stripe_refund.create.side_effect = rate_limit_error

        with pytest.raises(ProcessorRateLimited) as exc_info:
            StripeAdapter.refund(
                RefundParams(
                    provider_intent_id="pi_1",
                    amount_cents=100,
                    reason="duplicate",
                    idempotency_key="k",
                )
            )

        assert exc_info.value.is_retryable is True

    def test_api_connection_error(self, mock_stripe_payment_intent, api_connection_error):
        mock_stripe_payment_intent.cancel.side_effect = api_connection_error

        with pytest.raises(ProcessorUnavailable) as exc_info:
            StripeAdapter.cancel("pi_test123456")

        assert exc_info.value.provider_code == "api_connection_error"
        assert exc_info.value.is_retryable is True

    def test_api_error(self, mock_stripe_checkout_session, api_error):
        mock_stripe_checkout_session.create.side_effect = api_error
        params = CheckoutSessionParams(
            order_id=uuid.uuid4(),
            amount_cents=100,
            application_fee_cents=10,
            destination_account_id="acct_vendor",
            success_url="https://app.example.com/paid",
            cancel_url="https://app.example.com/cart",
        )

        with pytest.raises(ProcessorUnavailable):
            StripeAdapter.create_checkout_session(params)

    def test_authentication_error_is_permanent(self, mock_stripe_account, authentication_error):
        mock_stripe_account.retrieve.side_effect = authentication_error

        with pytest.raises(ProcessorRequestError) as exc_info:
            StripeAdapter.get_account("acct_test123")

        assert exc_info.value.provider_code == "authentication_error"
        assert exc_info.value.is_retryable is False

    def test_unknown_error_is_unavailable(self, mock_stripe_payment_intent):
        mock_stripe_payment_intent.capture.side_effect = RuntimeError("socket closed")

        with pytest.raises(ProcessorUnavailable) as exc_info:
            StripeAdapter.capture("pi_test123456")

        assert exc_info.value.provider_code == "unknown_error"
        assert isinstance(exc_info.value.__cause__, RuntimeError)


# =============================================================================
# Webhook Verification Tests
# =============================================================================


class TestVerifyWebhook:
    """Tests for StripeAdapter.verify_webhook."""

    def test_returns_event_dict(self, mock_stripe_webhook, settings):
        settings.STRIPE_WEBHOOK_SECRET = "whsec_test"

        event = StripeAdapter.verify_webhook(b"{}", "t=1,v1=abc")

        assert event["id"] == "evt_test123"
        mock_stripe_webhook.construct_event.assert_called_once_with(
            b"{}", "t=1,v1=abc", "whsec_test"
        )

    def test_bad_signature(self, mock_stripe_webhook):
        mock_stripe_webhook.construct_event.side_effect = stripe.SignatureVerificationError(
            "Unable to verify webhook signature.", "bad_signature"
        )

        with pytest.raises(WebhookSignatureError) as exc_info:
            StripeAdapter.verify_webhook(b"{}", "bad_signature")

        assert exc_info.value.provider_code == "signature_verification_failed"

    def test_malformed_payload(self, mock_stripe_webhook):
        mock_stripe_webhook.construct_event.side_effect = ValueError("Expecting value")

        with pytest.raises(WebhookSignatureError) as exc_info:
            StripeAdapter.verify_webhook(b"not json", "t=1,v1=abc")

        assert exc_info.value.provider_code == "invalid_payload"
